"""
Risk Scoring Models

Result and audit models produced by the scoring engine and the assessment
service.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field


class AdviceSource(str, Enum):
    """Which matching strategy supplied the advice text."""
    SCORE_RANGE = "score_range"
    RISK_LEVEL = "risk_level"
    BUILTIN = "builtin"
    NONE = "none"


class ContributingFactor(BaseModel):
    """A question/answer pair that raised the total score."""
    question: str = Field(..., description="Question text")
    answer: str = Field(..., description="Answer value as submitted (trimmed)")
    score: int = Field(..., gt=0, description="Points added by this answer")


class RiskResult(BaseModel):
    """
    Outcome of scoring one answer set.

    contributing_factors follows catalog order and only lists positive
    contributions.
    """
    total_score: int = Field(..., ge=0)
    contributing_factors: List[ContributingFactor] = Field(default_factory=list)
    risk_level: str = Field(..., description="Matched advice level, or the computed tier")
    advice: str = Field(..., description="Advice text for the patient")
    advice_source: AdviceSource = Field(
        default=AdviceSource.NONE,
        description="Strategy that produced the advice"
    )


class AssessmentAudit(BaseModel):
    """Determinism audit for one assessment."""
    engine_version: str
    catalog_size: int = Field(..., ge=0, description="Questions in the catalog used for scoring")
    advice_rows: int = Field(..., ge=0, description="Advice rows available for matching")
    input_hash: str = Field(..., description="Hash of answers + catalog + advice table")
    output_hash: str = Field(..., description="Hash of the RiskResult")
    degraded: bool = Field(default=False, description="True when scoring failed and a fallback result was returned")
    assessed_at: datetime = Field(default_factory=datetime.utcnow)


class Assessment(BaseModel):
    """RiskResult plus its audit block."""
    result: RiskResult
    audit: AssessmentAudit
    submission_id: Optional[str] = None
