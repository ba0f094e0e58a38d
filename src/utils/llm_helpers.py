"""
LLM Helpers Module

Chat completion client and response parsing helpers. All chat calls go through
ChatCompletionClient; prompts come from prompts/ via render_prompt.

Example Usage:
    from src.utils.llm_helpers import ChatCompletionClient, extract_json_from_markdown

    chat = ChatCompletionClient(config.services, http_client)
    content = await chat.complete(prompt, temperature=0.3, json_mode=True)
    payload = json.loads(extract_json_from_markdown(content))
"""

from typing import Any, Optional

import httpx
import structlog

from src.models.config import ServiceSettings
from src.utils.errors import LLMServiceError
from src.utils.json_path import get_value_by_path
from src.utils.prompt_loader import get_default_loader

logger = structlog.get_logger(__name__)


def extract_json_from_markdown(response_text: str) -> str:
    """Extract JSON from LLM response, removing markdown code block markers if present.

    Args:
        response_text: Raw text response from LLM

    Returns:
        Clean JSON string with code block markers removed
    """
    json_text = response_text.strip()

    if json_text.startswith("```json"):
        json_text = json_text[7:]
    elif json_text.startswith("```"):
        json_text = json_text[3:]

    if json_text.endswith("```"):
        json_text = json_text[:-3]

    return json_text.strip()


class ChatCompletionClient:
    """Client for an OpenAI-compatible chat completion endpoint."""

    def __init__(self, services: ServiceSettings, http_client: httpx.AsyncClient):
        """
        Args:
            services: Endpoint, model and credential settings
            http_client: Shared async HTTP client
        """
        self.services = services
        self.http_client = http_client

    @property
    def available(self) -> bool:
        """True when an API key is configured."""
        return self.services.llm_configured

    async def complete(
        self,
        prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 1000,
        json_mode: bool = False,
        system_prompt: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> str:
        """
        Send one chat completion request and return the message content.

        Args:
            prompt: User message
            temperature: Sampling temperature
            max_tokens: Completion token limit
            json_mode: Request a JSON object response format
            system_prompt: Optional system message (defaults to prompts/base/system.j2)
            correlation_id: Optional correlation ID for logging

        Returns:
            Completion text, stripped. May be empty if the model returned no text.

        Raises:
            LLMServiceError: If no API key is configured, the request fails,
                the status is not 2xx, or the body is not JSON
        """
        log = logger.bind(correlation_id=correlation_id) if correlation_id else logger

        if not self.available:
            raise LLMServiceError("LLM API key is not configured")

        if system_prompt is None:
            system_prompt = get_default_loader().get_system_prompt(
                json_only=json_mode, correlation_id=correlation_id
            )

        payload: dict[str, Any] = {
            "model": self.services.chat_model,
            "messages": [
                {"role": "system", "content": system_prompt.strip()},
                {"role": "user", "content": prompt},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        log.debug(
            "LLM call initiated",
            url=self.services.chat_url,
            model=self.services.chat_model,
            prompt_length=len(prompt),
        )

        try:
            response = await self.http_client.post(
                self.services.chat_url,
                json=payload,
                headers={"Authorization": f"Bearer {self.services.llm_api_key}"},
                timeout=self.services.http_timeout,
            )
        except httpx.HTTPError as e:
            log.error("LLM call failed", error=str(e), error_type=type(e).__name__)
            raise LLMServiceError(f"Chat completion request failed: {e}") from e

        if response.is_error:
            log.error(
                "LLM API error",
                status_code=response.status_code,
                body=response.text[:200],
            )
            raise LLMServiceError(
                f"Chat completion request failed (status {response.status_code}). "
                f"Response: {response.text[:100]}",
                status_code=response.status_code,
            )

        try:
            result = response.json()
        except ValueError as e:
            log.error("LLM response is not JSON", body=response.text[:200])
            raise LLMServiceError("Chat completion response is not valid JSON") from e

        content = get_value_by_path(result, "choices.0.message.content")
        if not isinstance(content, str):
            log.warning("LLM response has no message content", response=str(result)[:200])
            return ""

        log.debug("LLM call succeeded", response_length=len(content))
        return content.strip()
