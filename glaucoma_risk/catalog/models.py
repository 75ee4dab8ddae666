"""
Question Catalog Models

Pydantic models for questionnaire items and their scored options, plus the
records produced when a backend row fails validation.
"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator


class QuestionType(str, Enum):
    """Input type of a questionnaire item. Only SELECT carries scored options."""
    TEXT = "text"
    NUMBER = "number"
    SELECT = "select"


class QuestionOption(BaseModel):
    """One selectable answer of a select question."""

    value: str = Field(..., min_length=1, description="Machine-comparable token (e.g. 'yes', '22_and_above')")
    label: str = Field(..., description="Display text")
    score: int = Field(default=0, ge=0, description="Contribution to the total risk score when selected")
    display_order: Optional[int] = Field(default=None, description="Position within the option list")


class Question(BaseModel):
    """
    One questionnaire item.

    `category` only controls which page the question is shown on; it never
    affects scoring.
    """

    id: str = Field(..., description="Canonical UUID")
    text: str = Field(..., description="Display label")
    type: QuestionType = Field(default=QuestionType.TEXT)
    category: str = Field(default="general", description="Page/step grouping key (e.g. 'medical_history')")
    options: List[QuestionOption] = Field(default_factory=list)
    display_order: int = Field(default=0, description="Ordering within category")
    tooltip: Optional[str] = Field(default=None, description="Help text shown next to the question")

    @field_validator("tooltip", mode="before")
    @classmethod
    def trim_tooltip(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @property
    def is_scorable(self) -> bool:
        return self.type == QuestionType.SELECT and bool(self.options)


class CatalogPage(BaseModel):
    """Questions of one category, in display order."""
    category: str
    questions: List[Question] = Field(default_factory=list)


class MalformedQuestion(BaseModel):
    """
    A backend row excluded from the catalog.

    Recorded and logged, never raised.
    """
    question_id: Optional[str] = Field(None, description="Raw id as found in the backend row")
    text: Optional[str] = None
    reason_codes: List[str] = Field(default_factory=list)


# Reason codes
class ReasonCode:
    """Reason codes for excluded catalog rows."""

    INVALID_ID = "INVALID_ID"
    MISSING_TEXT = "MISSING_TEXT"
