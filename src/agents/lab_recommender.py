"""
Lab Recommendation Agent

Turns ranked ORCID candidates into structured lab and mentor recommendations
with one chat completion call, then normalizes whatever JSON the model returned
into complete LabRecommendation objects.

Mock mode: without an LLM API key, or without any ranked candidates, the
built-in MOCK_RECOMMENDATIONS set is returned instead of calling the model.
"""

import json
import math
from typing import Any, Optional
from urllib.parse import quote

from src.models.candidate import ScoredCandidate
from src.models.config import AppConfig
from src.models.lab import (
    CAREER_SCENARIO_PLACEHOLDER,
    DEFAULT_MATCH_RATE,
    LabRecommendation,
    MentorRecommendation,
    PublicationTrend,
    clamp_match_rate,
)
from src.models.profile import UserProfile
from src.utils.errors import RecommendationParseError
from src.utils.llm_helpers import ChatCompletionClient, extract_json_from_markdown
from src.utils.logger import get_logger
from src.utils.prompt_loader import render_prompt

# Keys checked, in order, when the model wraps the array in an object
WRAPPER_KEYS = ("recommendations", "labs", "results")

MOCK_RECOMMENDATIONS: list[LabRecommendation] = [
    LabRecommendation(
        id="mock-lab-ai-detailed",
        logo_url="https://picsum.photos/seed/mockdetailedai/100/100",
        name="[Mock] Future AI Convergence Research Center",
        keywords=["Artificial Intelligence", "Data Science", "HCI", "Robotics"],
        match_rate=88,
        projects=[
            "Advanced human-robot interaction",
            "Explainable AI (XAI) model development",
            "Healthcare data analytics platform",
        ],
        publication_trends=[
            PublicationTrend(year="2021", count=8),
            PublicationTrend(year="2022", count=12),
            PublicationTrend(year="2023", count=18),
        ],
        member_count=25,
        mentors=[
            MentorRecommendation(
                id="mock-mentor-ai-1",
                avatar_url="https://picsum.photos/seed/mockmA1/80/80",
                name="Prof. Minho Lee",
                title="Center Director, Professor of Computer Science",
                profile="Machine learning and data mining; leads many industry projects",
            ),
            MentorRecommendation(
                id="mock-mentor-ai-2",
                avatar_url="https://picsum.photos/seed/mockmA2/80/80",
                name="Dr. Seojun Park",
                title="Senior Researcher (Ph.D.)",
                profile="Natural language processing and applied deep learning; promising early-career researcher",
            ),
        ],
        career_scenario=(
            "[Mock] The center researches core AI technology and its applications. "
            "Researchers grow quickly through project-based learning and conference "
            "presentations, and many go on to leading AI groups in academia and industry."
        ),
    ),
]


def mock_recommendations() -> list[LabRecommendation]:
    """Fresh copies of the mock set, safe for callers to mutate."""
    return [lab.model_copy(deep=True) for lab in MOCK_RECOMMENDATIONS]


def image_seed(value: Any) -> Optional[str]:
    """URL-safe image seed derived from a name (lowercased, separators stripped)."""
    if not isinstance(value, str):
        return None
    seed = "".join(ch for ch in value.lower() if ch not in "-_ \t\n")
    return quote(seed, safe="") or None


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _non_empty_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _string_list(value: Any) -> Optional[list[str]]:
    if not isinstance(value, list):
        return None
    return [str(v).strip() for v in value if v is not None and str(v).strip()]


def _count(value: Any) -> int:
    try:
        count = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(0, count)


def normalize_publication_trends(value: Any) -> list[PublicationTrend]:
    if not isinstance(value, list):
        return []
    trends = []
    for entry in value:
        if not isinstance(entry, dict) or entry.get("year") is None:
            continue
        trends.append(
            PublicationTrend(year=str(entry["year"]), count=_count(entry.get("count")))
        )
    return trends


def normalize_mentor(raw: Any, lab_index: int, mentor_index: int) -> Optional[MentorRecommendation]:
    if not isinstance(raw, dict):
        return None
    name = _non_empty_str(raw.get("name"))
    seed = image_seed(name) or str(mentor_index)
    return MentorRecommendation(
        id=_non_empty_str(raw.get("id"))
        or LabRecommendation.generate_id("temp-mentor", name, lab_index, mentor_index),
        avatar_url=_non_empty_str(raw.get("avatarUrl"))
        or f"https://picsum.photos/seed/ds_mentor_{seed}/80/80",
        name=name or "Unnamed mentor",
        title=_non_empty_str(raw.get("title")) or "No title information",
        profile=_non_empty_str(raw.get("profile")) or "No profile information",
    )


def normalize_recommendation(raw: dict[str, Any], index: int) -> LabRecommendation:
    """
    Build a complete LabRecommendation from one model-produced object.

    Missing or invalid fields are replaced with defaults so the result always
    has the full response shape.

    Args:
        raw: One object from the model's JSON array
        index: Position of the object in the array (used for placeholder IDs)

    Returns:
        Normalized LabRecommendation
    """
    name = _non_empty_str(raw.get("name"))
    seed = image_seed(name) or str(index)

    match_rate = raw.get("matchRate")
    match_rate = clamp_match_rate(float(match_rate)) if _is_number(match_rate) else DEFAULT_MATCH_RATE

    projects = _string_list(raw.get("projects"))

    member_count = raw.get("memberCount")
    member_count = max(0, int(member_count)) if _is_number(member_count) else 0

    mentors_raw = raw.get("mentors")
    mentors = []
    if isinstance(mentors_raw, list):
        for m_index, mentor_raw in enumerate(mentors_raw):
            mentor = normalize_mentor(mentor_raw, index, m_index)
            if mentor is not None:
                mentors.append(mentor)

    return LabRecommendation(
        id=_non_empty_str(raw.get("id"))
        or LabRecommendation.generate_id("temp-lab", name, index),
        logo_url=_non_empty_str(raw.get("logoUrl"))
        or f"https://picsum.photos/seed/ds_lab_{seed}/100/100",
        name=name or "Unnamed lab",
        keywords=_string_list(raw.get("keywords")) or [],
        match_rate=match_rate,
        projects=projects if projects is not None else ["No information"],
        publication_trends=normalize_publication_trends(raw.get("publicationTrends")),
        member_count=member_count,
        mentors=mentors,
        career_scenario=_non_empty_str(raw.get("careerScenario"))
        or CAREER_SCENARIO_PLACEHOLDER,
    )


def parse_recommendation_payload(content: str) -> list[dict[str, Any]]:
    """
    Parse model output into a list of raw recommendation objects.

    Args:
        content: Completion text, optionally wrapped in a markdown code block

    Returns:
        Raw recommendation dicts (non-object array entries are dropped)

    Raises:
        RecommendationParseError: If the text is not JSON, or no array can be
            located (top-level array, or one of WRAPPER_KEYS in an object)
    """
    try:
        parsed = json.loads(extract_json_from_markdown(content))
    except json.JSONDecodeError as e:
        raise RecommendationParseError(f"LLM response is not valid JSON: {e}") from e

    if isinstance(parsed, dict):
        for key in WRAPPER_KEYS:
            if isinstance(parsed.get(key), list):
                parsed = parsed[key]
                break
        else:
            raise RecommendationParseError(
                "LLM response is not in the expected array format "
                f"(object has none of the keys: {', '.join(WRAPPER_KEYS)})"
            )

    if not isinstance(parsed, list):
        raise RecommendationParseError("LLM response is not a JSON array")

    return [item for item in parsed if isinstance(item, dict)]


class LabRecommender:
    """Synthesizes lab recommendations from ranked candidates."""

    def __init__(self, config: AppConfig, chat_client: ChatCompletionClient):
        self.params = config.generation
        self.chat_client = chat_client

    async def synthesize(
        self,
        profile: UserProfile,
        ranked: list[ScoredCandidate],
        correlation_id: Optional[str] = None,
    ) -> list[LabRecommendation]:
        """
        Ask the LLM for lab recommendations based on the ranked candidates.

        Args:
            profile: Validated user profile
            ranked: Candidates, most similar first
            correlation_id: Optional correlation ID for logging

        Returns:
            Normalized recommendations, or the mock set when no API key is
            configured or there are no candidates

        Raises:
            LLMServiceError: If the chat completion request fails
            RecommendationParseError: If the response cannot be parsed
        """
        logger = get_logger(
            correlation_id=correlation_id, phase="synthesis", component="lab_recommender"
        )

        if not self.chat_client.available:
            logger.warning("LLM API key is not set, returning mock recommendations")
            return mock_recommendations()

        if not ranked:
            logger.info("No candidates to analyze, returning mock recommendations")
            return mock_recommendations()

        prompt = render_prompt(
            "recommendation/lab_synthesis.j2",
            correlation_id=correlation_id,
            profile=profile,
            user_query=profile.embedding_text(),
            candidates=ranked,
            placeholder=CAREER_SCENARIO_PLACEHOLDER,
        )
        logger.debug(
            "Candidates passed to LLM",
            candidate_ids=[c.id for c in ranked],
            prompt_preview=prompt[:500],
        )

        content = await self.chat_client.complete(
            prompt,
            temperature=self.params.synthesis_temperature,
            max_tokens=self.params.synthesis_max_tokens,
            json_mode=True,
            correlation_id=correlation_id,
        )
        if not content:
            logger.error("LLM returned no content for recommendations")
            raise RecommendationParseError("LLM did not return a valid response")

        logger.debug("Raw recommendation content", content_preview=content[:500])

        try:
            raw_labs = parse_recommendation_payload(content)
        except RecommendationParseError as e:
            logger.error(
                "Failed to parse recommendations", error=str(e), content=content[:500]
            )
            raise

        labs = [normalize_recommendation(raw, i) for i, raw in enumerate(raw_labs)]
        logger.info(
            "Received recommendations from LLM",
            count=len(labs),
            lab_ids=[lab.id for lab in labs],
        )
        return labs
