"""Text embedding client.

Every failure degrades to None so ranking can continue without similarity.
"""

import math
from typing import Any, Optional

import httpx
import structlog

from src.models.config import ServiceSettings
from src.utils.json_path import get_value_by_path

logger = structlog.get_logger(__name__)


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def coerce_vector(value: Any) -> Optional[list[float]]:
    """Return value as a list of floats, or None if it is not a numeric vector."""
    if not isinstance(value, list) or not value:
        return None
    if not all(_is_number(v) for v in value):
        return None
    return [float(v) for v in value]


class EmbeddingClient:
    """Wraps the remote embedding endpoint."""

    def __init__(self, services: ServiceSettings, http_client: httpx.AsyncClient):
        self.services = services
        self.http_client = http_client

    @property
    def available(self) -> bool:
        return self.services.llm_configured

    async def embed(
        self, text: str, correlation_id: Optional[str] = None
    ) -> Optional[list[float]]:
        """
        Embed text into a vector.

        Args:
            text: Text to embed
            correlation_id: Optional correlation ID for logging

        Returns:
            Embedding vector, or None when the text is blank, no API key is
            configured, or the request or response is unusable
        """
        log = logger.bind(correlation_id=correlation_id) if correlation_id else logger

        if not self.available:
            log.warning("LLM API key is not set, skipping text embedding")
            return None
        if not text or not text.strip():
            log.warning("Empty text provided for embedding, skipping")
            return None

        log.debug(
            "Requesting embedding",
            url=self.services.embedding_url,
            text_preview=text[:50],
        )

        try:
            response = await self.http_client.post(
                self.services.embedding_url,
                json={"model": self.services.embedding_model, "input": [text]},
                headers={"Authorization": f"Bearer {self.services.llm_api_key}"},
                timeout=self.services.http_timeout,
            )
        except httpx.HTTPError as e:
            log.error(
                "Embedding request failed", error=str(e), error_type=type(e).__name__
            )
            return None

        if response.is_error:
            log.error(
                "Embedding API error",
                status_code=response.status_code,
                body=response.text[:200],
            )
            return None

        try:
            result = response.json()
        except ValueError:
            log.error("Embedding response is not JSON", body=response.text[:200])
            return None

        vector = coerce_vector(
            get_value_by_path(result, self.services.embedding_vector_path)
        )
        if vector is None:
            log.error(
                "Failed to extract embedding vector from response",
                vector_path=self.services.embedding_vector_path,
                response=str(result)[:500],
            )
            return None

        return vector
