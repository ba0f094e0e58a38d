"""
Recommendation Coordinator Module

Orchestrates one recommendation request:

    Search -> Embed + Rank -> Synthesize -> Reconcile match rates -> Backfill narratives

Every component is built from one AppConfig and one shared httpx.AsyncClient.
"""

import re
import uuid
from typing import Optional

import httpx

from src.agents.candidate_ranking import CandidateRanker
from src.agents.career_narrative import CareerNarrativeGenerator
from src.agents.lab_recommender import LabRecommender, mock_recommendations
from src.models.candidate import ScoredCandidate
from src.models.config import AppConfig
from src.models.lab import LabRecommendation
from src.models.profile import UserProfile
from src.utils.embeddings import EmbeddingClient
from src.utils.llm_helpers import ChatCompletionClient
from src.utils.logger import get_logger
from src.utils.orcid_client import OrcidClient

_SEPARATORS = re.compile(r"[-_\s]")


def normalize_identifier(identifier: Optional[str]) -> Optional[str]:
    """Lowercase an identifier and strip separators ("0000-0002-1825-0097" -> "0000000218250097")."""
    if not identifier:
        return None
    return _SEPARATORS.sub("", identifier.lower()) or None


def reconcile_match_rates(
    labs: list[LabRecommendation], ranked: list[ScoredCandidate]
) -> list[LabRecommendation]:
    """
    Reconcile LLM match rates with computed similarity, in place.

    A lab is matched to a ranked candidate by normalized identifier. When the
    match has a non-zero similarity, similarity_score is set to the similarity
    as a percentage, and a lower LLM match rate is raised to it.

    Args:
        labs: Synthesized recommendations
        ranked: Candidates passed to the synthesizer

    Returns:
        The same lab objects
    """
    by_id = {}
    for candidate in ranked:
        key = normalize_identifier(candidate.id)
        if key is not None and key not in by_id:
            by_id[key] = candidate

    for lab in labs:
        candidate = by_id.get(normalize_identifier(lab.id))
        if candidate is None or candidate.similarity <= 0:
            continue

        similarity_pct = candidate.similarity * 100
        lab.similarity_score = round(similarity_pct, 2)
        if lab.match_rate < similarity_pct:
            lab.match_rate = round(similarity_pct)

    return labs


class RecommendationCoordinator:
    """
    Runs the recommendation pipeline for one user profile at a time.

    Holds no per-request state; one instance serves all requests.
    """

    def __init__(self, config: AppConfig, http_client: httpx.AsyncClient):
        """
        Args:
            config: Application configuration
            http_client: Shared async HTTP client for all outbound calls
        """
        self.config = config

        chat_client = ChatCompletionClient(config.services, http_client)
        self.ranker = CandidateRanker(
            config,
            OrcidClient(config.services, http_client),
            EmbeddingClient(config.services, http_client),
        )
        self.recommender = LabRecommender(config, chat_client)
        self.narrator = CareerNarrativeGenerator(config, chat_client)

    async def recommend(
        self, profile: UserProfile, correlation_id: Optional[str] = None
    ) -> list[LabRecommendation]:
        """
        Produce lab recommendations for a validated profile.

        Args:
            profile: Validated user profile
            correlation_id: Correlation ID for logging (auto-generated if None)

        Returns:
            Recommendations with reconciled match rates and career narratives

        Raises:
            DirectorySearchError: If the ORCID search fails
            LLMServiceError: If the recommendation chat call fails
            RecommendationParseError: If the model output has no usable array
        """
        if correlation_id is None:
            correlation_id = str(uuid.uuid4())

        logger = get_logger(
            correlation_id=correlation_id, phase="coordinator", component="recommendation_coordinator"
        )
        logger.info(
            "Recommendation request started",
            major=profile.major,
            keywords=profile.keywords,
            education_level=profile.education_level,
        )

        records = await self.ranker.search_candidates(profile, correlation_id=correlation_id)
        logger.info("Directory search complete", raw_count=len(records))

        ranking = await self.ranker.rank(profile, records, correlation_id=correlation_id)

        labs = await self.recommender.synthesize(
            profile, ranking.candidates, correlation_id=correlation_id
        )
        reconcile_match_rates(labs, ranking.candidates)

        if not labs and not self.config.services.llm_configured:
            logger.warning("No recommendations and no API key, falling back to mock data")
            labs = mock_recommendations()
        elif not labs:
            logger.warning("LLM returned no recommendations", raw_count=ranking.raw_count)

        await self.narrator.backfill(labs, correlation_id=correlation_id)

        logger.info(
            "Recommendation request complete",
            count=len(labs),
            degraded_ranking=ranking.degraded,
            match_rates={lab.id: lab.match_rate for lab in labs},
        )
        return labs
