"""
Advice Table Models

One row of risk_assessment_advice: an inclusive score range, the risk level
label it represents, and the advice text shown to the patient.
"""

from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator


class AdviceEntry(BaseModel):
    """
    Admin-editable advice row.

    Ranges are expected not to overlap, but nothing in the backend enforces
    it; the scoring engine tolerates gaps and overlaps.
    """

    id: Optional[str] = Field(None, description="Backend row id")
    min_score: int = Field(..., ge=0, description="Lowest total score covered (inclusive)")
    max_score: int = Field(..., ge=0, description="Highest total score covered (inclusive)")
    risk_level: str = Field(..., min_length=1, description="Risk level label, compared case-insensitively")
    advice: str = Field(..., description="Advice text shown with the result")

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v):
        return None if v is None else str(v)

    @field_validator("risk_level", mode="before")
    @classmethod
    def strip_level(cls, v):
        return v.strip() if isinstance(v, str) else v

    @model_validator(mode="after")
    def check_range(self) -> "AdviceEntry":
        if self.min_score > self.max_score:
            raise ValueError(f"min_score ({self.min_score}) is greater than max_score ({self.max_score})")
        return self

    def covers(self, total_score: int) -> bool:
        return self.min_score <= total_score <= self.max_score

    def matches_level(self, risk_level: str) -> bool:
        return self.risk_level.casefold() == str(risk_level).strip().casefold()

    def to_row(self) -> dict:
        """Column payload for writes (id excluded)."""
        return {
            "min_score": self.min_score,
            "max_score": self.max_score,
            "risk_level": self.risk_level,
            "advice": self.advice,
        }
