"""Candidate researcher models produced by the ranking pipeline."""

from pydantic import BaseModel, Field


class CandidateText(BaseModel):
    """Identifier and embeddable text extracted from a raw ORCID record."""

    id: str
    text: str


class ScoredCandidate(BaseModel):
    """Candidate with its similarity to the user profile.

    similarity is 0.0 when the candidate's embedding failed or when ranking ran
    in degraded mode without a user embedding.
    """

    id: str
    text: str
    similarity: float = Field(default=0.0, ge=0.0, le=1.0)


class RankingResult(BaseModel):
    """Output of one ranking run."""

    candidates: list[ScoredCandidate] = Field(default_factory=list)
    raw_count: int = Field(default=0, ge=0, description="Records returned by the directory")
    degraded: bool = Field(
        default=False, description="True when similarity scoring was skipped"
    )
