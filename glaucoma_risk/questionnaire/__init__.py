"""
Patient questionnaire: request models, submission storage and the HTTP router.

The router lives in glaucoma_risk.questionnaire.router and is mounted by
api_server.py.
"""

from .models import (
    ScoreRequest,
    SubmitRequest,
    ScoreResponse,
    SubmitResponse,
    CatalogResponse,
)
from .repository import SubmissionRepository, SubmissionError

__all__ = [
    "ScoreRequest",
    "SubmitRequest",
    "ScoreResponse",
    "SubmitResponse",
    "CatalogResponse",
    "SubmissionRepository",
    "SubmissionError",
]
