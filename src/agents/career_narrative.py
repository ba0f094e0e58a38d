"""Career narrative generation for recommended labs.

Narratives are cosmetic: every failure returns a readable fallback string.
"""

from typing import Optional

from src.models.config import AppConfig
from src.models.lab import LabRecommendation
from src.utils.errors import LLMServiceError
from src.utils.llm_helpers import ChatCompletionClient
from src.utils.logger import get_logger
from src.utils.prompt_loader import render_prompt

NARRATIVE_DISABLED = (
    "[AI unavailable] AI-based career scenario generation is currently disabled "
    "(missing API key)."
)
NARRATIVE_EMPTY = (
    "The AI could not generate career information for this lab. "
    "Please explore it directly."
)
NARRATIVE_ERROR_PREFIX = "[Error] A problem occurred while generating the AI career scenario"


class CareerNarrativeGenerator:
    """Generates a short career outlook per lab with one LLM call each."""

    def __init__(self, config: AppConfig, chat_client: ChatCompletionClient):
        self.params = config.generation
        self.chat_client = chat_client

    async def generate_career_narrative(
        self,
        lab_name: str,
        keywords: list[str],
        correlation_id: Optional[str] = None,
    ) -> str:
        """
        Generate a 1-2 sentence career outlook for a lab.

        Args:
            lab_name: Lab name
            keywords: Lab research keywords
            correlation_id: Optional correlation ID for logging

        Returns:
            Narrative text, or a fallback message on any failure
        """
        logger = get_logger(
            correlation_id=correlation_id, phase="narrative", component="career_narrative"
        )

        if not self.chat_client.available:
            logger.warning("LLM API key is not set, skipping career narrative", lab=lab_name)
            return NARRATIVE_DISABLED

        prompt = render_prompt(
            "career/narrative.j2",
            correlation_id=correlation_id,
            lab_name=lab_name,
            keywords=keywords,
        )

        try:
            narrative = await self.chat_client.complete(
                prompt,
                temperature=self.params.narrative_temperature,
                max_tokens=self.params.narrative_max_tokens,
                correlation_id=correlation_id,
            )
        except LLMServiceError as e:
            logger.error("Career narrative request failed", lab=lab_name, error=str(e))
            return f"{NARRATIVE_ERROR_PREFIX}: {e}"

        if not narrative:
            logger.warning("LLM returned an empty career narrative", lab=lab_name)
            return NARRATIVE_EMPTY

        return narrative

    async def backfill(
        self,
        labs: list[LabRecommendation],
        correlation_id: Optional[str] = None,
    ) -> list[LabRecommendation]:
        """Replace placeholder narratives in place, one lab at a time."""
        for lab in labs:
            if lab.needs_career_scenario:
                lab.career_scenario = await self.generate_career_narrative(
                    lab.name, lab.keywords, correlation_id=correlation_id
                )
        return labs
