"""
Risk Scoring Engine
===================
Maps a patient's questionnaire answers to a total score, the list of
contributing factors, a risk tier and advice text.

Scoring is fully data-driven: only select questions with scored options can
contribute, and every score comes from the option the patient picked. No
question id, answer value or demographic field is special-cased.

Advice matching, first hit wins:
1. advice row whose [min_score, max_score] covers the total
2. advice row whose risk_level equals the computed tier (case-insensitive)
3. built-in advice for the computed tier

This module:
- Is pure: same inputs always produce the same RiskResult
- Never raises for unanswered questions, unknown option values or a missing
  advice row

This module MUST NOT:
- Fetch data
- Cache anything between calls
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from glaucoma_risk.advice.models import AdviceEntry
from glaucoma_risk.catalog.models import Question, QuestionOption
from glaucoma_risk.config import RiskLevel, RiskThresholds, DEFAULT_THRESHOLDS

from .models import AdviceSource, ContributingFactor, RiskResult

logger = logging.getLogger(__name__)

ENGINE_VERSION = "1.0.0"

BUILTIN_ADVICE: Dict[RiskLevel, str] = {
    RiskLevel.LOW: (
        "Low risk. Regular eye exams as recommended by your optometrist are sufficient."
    ),
    RiskLevel.MODERATE: (
        "Moderate risk. Consider more frequent eye exams and discuss with your doctor "
        "about potential preventive measures."
    ),
    RiskLevel.HIGH: (
        "High risk. Regular monitoring is strongly recommended. Discuss with your specialist "
        "about comprehensive eye exams and treatment options."
    ),
}

UNKNOWN_ADVICE = (
    "Unable to calculate a risk score right now. Please try again or contact your eye care provider."
)


# ============================================================
# ANSWERS AND OPTIONS
# ============================================================

def normalize_answer(raw: Any) -> Optional[str]:
    """Trimmed answer string, or None when the question counts as unanswered."""
    if raw is None:
        return None
    text = raw.strip() if isinstance(raw, str) else str(raw).strip()
    return text or None


def lookup_answer(answers: Mapping[str, Any], question_id: str) -> Any:
    """Answer for question_id; ids are UUIDs so key case is ignored."""
    if question_id in answers:
        return answers[question_id]
    wanted = question_id.lower()
    for key, value in answers.items():
        if isinstance(key, str) and key.strip().lower() == wanted:
            return value
    return None


def find_option(question: Question, answer: str) -> Optional[QuestionOption]:
    """First option whose value equals answer, ignoring case."""
    wanted = answer.casefold()
    for option in question.options:
        if option.value.strip().casefold() == wanted:
            return option
    return None


def score_question(question: Question, raw_answer: Any) -> Optional[ContributingFactor]:
    """
    Contribution of one question, or None when it adds nothing.

    None covers: unanswered, not a select question, no options, no matching
    option, matched option worth 0.
    """
    answer = normalize_answer(raw_answer)
    if answer is None:
        return None
    if not question.is_scorable:
        return None

    option = find_option(question, answer)
    if option is None:
        logger.debug(f"No option of question {question.id} matches {answer!r}")
        return None
    if option.score <= 0:
        return None

    return ContributingFactor(question=question.text, answer=answer, score=option.score)


# ============================================================
# TIERS AND ADVICE
# ============================================================

def classify_risk_level(total_score: int, thresholds: RiskThresholds = DEFAULT_THRESHOLDS) -> RiskLevel:
    return thresholds.classify(total_score)


def match_advice(
    total_score: int,
    risk_level: RiskLevel,
    advice: Sequence[AdviceEntry],
) -> Tuple[Optional[AdviceEntry], AdviceSource]:
    """
    Pick the advice row for a score.

    Returns (entry, source); entry is None when neither the score range nor the
    risk level matched, in which case the caller falls back to BUILTIN_ADVICE.
    """
    for entry in advice:
        if entry.covers(total_score):
            return entry, AdviceSource.SCORE_RANGE

    for entry in advice:
        if entry.matches_level(risk_level.value):
            return entry, AdviceSource.RISK_LEVEL

    return None, AdviceSource.BUILTIN


# ============================================================
# ENTRY POINT
# ============================================================

def score_answers(
    answers: Mapping[str, Any],
    catalog: Sequence[Question],
    advice: Sequence[AdviceEntry],
    thresholds: RiskThresholds = DEFAULT_THRESHOLDS,
) -> RiskResult:
    """
    Score an answer set against the catalog and advice table.

    Args:
        answers: Question id -> submitted answer
        catalog: Questions in catalog order (drives factor order)
        advice: Advice rows, ordered by min_score
        thresholds: Tier boundaries

    Returns:
        RiskResult
    """
    total_score = 0
    factors: List[ContributingFactor] = []

    for question in catalog:
        factor = score_question(question, lookup_answer(answers, question.id))
        if factor is None:
            continue
        total_score += factor.score
        factors.append(factor)

    computed_level = classify_risk_level(total_score, thresholds)
    entry, source = match_advice(total_score, computed_level, advice)

    if entry is not None:
        risk_level = entry.risk_level
        advice_text = entry.advice
    else:
        risk_level = computed_level.value
        advice_text = BUILTIN_ADVICE[computed_level]

    logger.debug(
        f"Scored {len(factors)} factors: total={total_score} level={risk_level} advice_source={source.value}"
    )

    return RiskResult(
        total_score=total_score,
        contributing_factors=factors,
        risk_level=risk_level,
        advice=advice_text,
        advice_source=source,
    )


def degraded_result() -> RiskResult:
    """Valid placeholder returned when scoring cannot proceed."""
    return RiskResult(
        total_score=0,
        contributing_factors=[],
        risk_level=RiskLevel.UNKNOWN.value,
        advice=UNKNOWN_ADVICE,
        advice_source=AdviceSource.NONE,
    )
