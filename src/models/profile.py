"""
User Profile Data Models
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserProfile(BaseModel):
    """Academic profile submitted with a recommendation request.

    Attributes:
        major: Field of study (e.g., "Computer Science")
        keywords: Comma-separated interest keywords (e.g., "machine learning, HCI")
        education_level: Current education level (e.g., "masters_student")
        additional_info: Optional free text about goals or background
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    major: str = Field(..., description="Major is required.")
    keywords: str = Field(..., description="At least one interest keyword is required.")
    education_level: str = Field(
        ..., alias="educationLevel", description="Education level is required."
    )
    additional_info: Optional[str] = Field(default=None, alias="additionalInfo")

    @field_validator("major", "keywords", "education_level")
    @classmethod
    def require_non_empty(cls, v: str) -> str:
        """Reject empty or whitespace-only required fields."""
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("additional_info")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()

    def search_query(self) -> str:
        """Free-text query for the researcher directory."""
        return f"{self.keywords} {self.major}"

    def embedding_text(self) -> str:
        """Text embedded once per request to represent the user."""
        parts = [self.major, self.keywords, self.education_level, self.additional_info or ""]
        return " ".join(parts).strip()

    def keyword_list(self) -> list[str]:
        return [k.strip() for k in self.keywords.split(",") if k.strip()]
