"""
Question Catalog

Fetches the active questions and their scored options, excludes malformed
rows, and hands a clean ordered catalog to the scoring engine.

This module does NOT score answers.
"""

from .models import (
    Question,
    QuestionOption,
    QuestionType,
    CatalogPage,
    MalformedQuestion,
    ReasonCode,
)
from .validate import (
    is_valid_question_id,
    normalize_question_type,
    build_catalog,
    candidate_question_ids,
    group_by_category,
)
from .loader import CatalogLoader, CatalogUnavailable

__all__ = [
    "Question",
    "QuestionOption",
    "QuestionType",
    "CatalogPage",
    "MalformedQuestion",
    "ReasonCode",
    "is_valid_question_id",
    "normalize_question_type",
    "build_catalog",
    "candidate_question_ids",
    "group_by_category",
    "CatalogLoader",
    "CatalogUnavailable",
]
