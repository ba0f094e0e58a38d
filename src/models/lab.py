"""
Lab Recommendation Models

Pydantic models for the lab and mentor recommendations returned by the API.
Attribute names are snake_case; the wire format is camelCase via aliases.
"""

import hashlib
import math
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

CAREER_SCENARIO_PLACEHOLDER = "AI career scenario pending generation..."
# Substring that marks a narrative as not yet generated
CAREER_SCENARIO_PENDING_MARKER = "pending generation"

DEFAULT_MATCH_RATE = 75


def clamp_match_rate(value: float) -> int:
    """Round a match rate and clamp it into [0, 100]."""
    if not math.isfinite(value):
        return DEFAULT_MATCH_RATE
    return int(min(100, max(0, round(value))))


class RecommendationModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    def to_response(self) -> dict[str, Any]:
        """Serialize with camelCase keys, omitting unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class MentorRecommendation(RecommendationModel):
    """Suggested mentor within a recommended lab."""

    id: str
    avatar_url: Optional[str] = Field(default=None, alias="avatarUrl")
    name: str
    title: str
    profile: str


class PublicationTrend(RecommendationModel):
    """Publication count for one year."""

    year: str
    count: int = Field(default=0, ge=0)

    @field_validator("year", mode="before")
    @classmethod
    def year_as_string(cls, v: Any) -> str:
        return str(v)


class LabRecommendation(RecommendationModel):
    """Recommended research lab.

    Attributes:
        id: ORCID iD of the lab's lead researcher, or a temp-lab-* placeholder
        logo_url: Lab logo image URL
        name: Lab name
        keywords: Research keywords
        match_rate: Fit with the user, integer in [0, 100]
        projects: Current or representative projects
        publication_trends: Publication counts per year
        member_count: Estimated lab size
        mentors: Suggested mentors
        career_scenario: Short career outlook text
        similarity_score: Embedding similarity as a percentage, if computed
    """

    id: str
    logo_url: str = Field(..., alias="logoUrl")
    name: str
    keywords: list[str] = Field(default_factory=list)
    match_rate: int = Field(default=DEFAULT_MATCH_RATE, alias="matchRate")
    projects: list[str] = Field(default_factory=list)
    publication_trends: list[PublicationTrend] = Field(
        default_factory=list, alias="publicationTrends"
    )
    member_count: int = Field(default=0, ge=0, alias="memberCount")
    mentors: list[MentorRecommendation] = Field(default_factory=list)
    career_scenario: str = Field(
        default=CAREER_SCENARIO_PLACEHOLDER, alias="careerScenario"
    )
    similarity_score: Optional[float] = Field(default=None, alias="similarityScore")

    @field_validator("match_rate", mode="before")
    @classmethod
    def validate_match_rate(cls, v: Any) -> int:
        """Clamp any numeric match rate into [0, 100]."""
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError("matchRate must be a number")
        return clamp_match_rate(float(v))

    @property
    def needs_career_scenario(self) -> bool:
        return (
            not self.career_scenario.strip()
            or CAREER_SCENARIO_PENDING_MARKER in self.career_scenario
        )

    @staticmethod
    def generate_id(prefix: str, *parts: Any) -> str:
        """Generate a deterministic placeholder ID.

        Args:
            prefix: ID prefix (e.g., "temp-lab")
            *parts: Values identifying the record (name, position)

        Returns:
            "<prefix>-" followed by the first 12 characters of the SHA256 of the parts
        """
        composite_key = ":".join(str(p) for p in parts)
        hash_digest = hashlib.sha256(composite_key.encode("utf-8")).hexdigest()
        return f"{prefix}-{hash_digest[:12]}"
