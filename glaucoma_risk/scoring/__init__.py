"""
Risk Scoring

Pure engine that turns an answer set into a RiskResult. The async
orchestration (fetching, timeouts, audit) lives in
glaucoma_risk.scoring.service.
"""

from .models import (
    AdviceSource,
    ContributingFactor,
    RiskResult,
    AssessmentAudit,
    Assessment,
)
from .engine import (
    ENGINE_VERSION,
    BUILTIN_ADVICE,
    UNKNOWN_ADVICE,
    normalize_answer,
    find_option,
    score_question,
    classify_risk_level,
    match_advice,
    score_answers,
    degraded_result,
)

__all__ = [
    "AdviceSource",
    "ContributingFactor",
    "RiskResult",
    "AssessmentAudit",
    "Assessment",
    "ENGINE_VERSION",
    "BUILTIN_ADVICE",
    "UNKNOWN_ADVICE",
    "normalize_answer",
    "find_option",
    "score_question",
    "classify_risk_level",
    "match_advice",
    "score_answers",
    "degraded_result",
]
