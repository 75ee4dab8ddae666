"""
Questionnaire Request/Response Models
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator

from glaucoma_risk.catalog.models import CatalogPage
from glaucoma_risk.scoring.models import AssessmentAudit, RiskResult


def _stringify_answers(v: Any) -> Any:
    """Numbers become strings so '22' and 22 pick the same option; None stays unanswered."""
    if not isinstance(v, dict):
        return v
    cleaned: Dict[str, Optional[str]] = {}
    for key, value in v.items():
        if value is None or isinstance(value, str):
            cleaned[str(key)] = value
        elif isinstance(value, bool):
            raise ValueError(f"Answer for {key} must be a string or number, not a boolean")
        elif isinstance(value, (int, float)):
            cleaned[str(key)] = str(value)
        else:
            raise ValueError(f"Answer for {key} must be a string or number")
    return cleaned


class ScoreRequest(BaseModel):
    """Answers keyed by question id."""
    answers: Dict[str, Optional[str]] = Field(default_factory=dict, description="Question id -> answer value")

    @field_validator("answers", mode="before")
    @classmethod
    def normalize_answers(cls, v):
        return _stringify_answers(v)


class SubmitRequest(ScoreRequest):
    """A completed questionnaire to score and store."""
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def strip_names(cls, v):
        return v.strip() if isinstance(v, str) else v


class ScoreResponse(BaseModel):
    result: RiskResult
    audit: AssessmentAudit


class SubmitResponse(BaseModel):
    id: str = Field(..., description="Stored questionnaire id")
    result: RiskResult
    audit: AssessmentAudit


class CatalogResponse(BaseModel):
    pages: List[CatalogPage] = Field(default_factory=list)
    question_count: int = 0
