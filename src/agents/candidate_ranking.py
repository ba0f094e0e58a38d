"""
Candidate Ranking Agent

Retrieves researcher candidates from ORCID and ranks them by embedding
similarity to the user's profile.

Degraded mode: when the user embedding is unavailable (no API key, empty text,
embedding service failure) similarity scoring is skipped and the first
`fallback_k` raw candidates are returned with similarity 0.
"""

import asyncio
from typing import Any, Optional

from src.models.candidate import CandidateText, RankingResult, ScoredCandidate
from src.models.config import AppConfig
from src.models.profile import UserProfile
from src.utils.embeddings import EmbeddingClient
from src.utils.logger import get_logger
from src.utils.orcid_client import OrcidClient, extract_candidate_text
from src.utils.similarity import cosine_similarity


def extract_candidates(records: list[Any]) -> list[CandidateText]:
    """Extract CandidateText from raw records, dropping records without id or text."""
    candidates = []
    for record in records:
        candidate = extract_candidate_text(record)
        if candidate is not None:
            candidates.append(candidate)
    return candidates


def select_top_candidates(
    scored: list[ScoredCandidate], min_similarity: float, top_k: int
) -> list[ScoredCandidate]:
    """Filter by minimum similarity, sort descending and keep the top K.

    Args:
        scored: Candidates with similarity scores
        min_similarity: Candidates must score strictly above this value
        top_k: Maximum number of candidates to keep

    Returns:
        Most similar candidates first; ties keep their directory order
    """
    kept = [c for c in scored if c.similarity > min_similarity]
    kept.sort(key=lambda c: c.similarity, reverse=True)
    return kept[:top_k]


class CandidateRanker:
    """Orchestrates directory search, embedding and similarity ranking."""

    def __init__(
        self,
        config: AppConfig,
        orcid_client: OrcidClient,
        embedder: EmbeddingClient,
    ):
        self.params = config.ranking
        self.orcid_client = orcid_client
        self.embedder = embedder

    async def search_candidates(
        self, profile: UserProfile, correlation_id: Optional[str] = None
    ) -> list[dict[str, Any]]:
        """Fetch raw candidate records for the profile's search query.

        Raises:
            DirectorySearchError: If the directory search fails
        """
        return await self.orcid_client.search(
            profile.search_query(),
            limit=self.params.search_rows,
            correlation_id=correlation_id,
        )

    async def rank(
        self,
        profile: UserProfile,
        records: list[dict[str, Any]],
        correlation_id: Optional[str] = None,
    ) -> RankingResult:
        """
        Rank raw candidate records by similarity to the user profile.

        Args:
            profile: Validated user profile
            records: Raw records from the directory search
            correlation_id: Optional correlation ID for logging

        Returns:
            RankingResult with candidates ordered most similar first
        """
        logger = get_logger(
            correlation_id=correlation_id, phase="ranking", component="candidate_ranker"
        )

        user_embedding = await self.embedder.embed(
            profile.embedding_text(), correlation_id=correlation_id
        )

        if user_embedding is None or not records:
            logger.warning(
                "User embedding unavailable or no candidates, using raw directory order",
                has_user_embedding=user_embedding is not None,
                raw_count=len(records),
            )
            return RankingResult(
                candidates=self._fallback_candidates(records),
                raw_count=len(records),
                degraded=True,
            )

        candidates = extract_candidates(records)
        logger.info(
            "Calculating similarity scores",
            raw_count=len(records),
            embeddable_count=len(candidates),
        )

        embeddings = await asyncio.gather(
            *(self.embedder.embed(c.text, correlation_id=correlation_id) for c in candidates)
        )

        scored = []
        for candidate, embedding in zip(candidates, embeddings):
            similarity = 0.0
            if embedding is not None:
                similarity = min(1.0, max(0.0, cosine_similarity(user_embedding, embedding)))
            scored.append(
                ScoredCandidate(id=candidate.id, text=candidate.text, similarity=similarity)
            )
            logger.debug("Candidate scored", orcid_id=candidate.id, similarity=similarity)

        top = select_top_candidates(
            scored, self.params.min_similarity, self.params.top_k
        )

        if not top:
            logger.warning(
                "No candidates passed the similarity threshold, using raw directory order",
                min_similarity=self.params.min_similarity,
                fallback_k=self.params.fallback_k,
            )
            return RankingResult(
                candidates=self._fallback_candidates(records),
                raw_count=len(records),
                degraded=False,
            )

        logger.info(
            "Candidates ranked",
            ranked_count=len(top),
            top_similarity=top[0].similarity,
            candidate_ids=[c.id for c in top],
        )
        return RankingResult(candidates=top, raw_count=len(records), degraded=False)

    def _fallback_candidates(self, records: list[dict[str, Any]]) -> list[ScoredCandidate]:
        """First fallback_k raw records that have an id and text, similarity 0."""
        return [
            ScoredCandidate(id=c.id, text=c.text, similarity=0.0)
            for c in extract_candidates(records[: self.params.fallback_k])
        ]
