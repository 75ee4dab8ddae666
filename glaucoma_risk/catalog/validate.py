"""
Catalog Validation

Turns raw backend rows into the validated catalog model.

Principle: a row that fails validation is excluded and reported, never fatal.
"""

import re
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from .models import (
    Question,
    QuestionOption,
    QuestionType,
    CatalogPage,
    MalformedQuestion,
    ReasonCode,
)

logger = logging.getLogger(__name__)

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

# Legacy question_type values seen in the questions table
TYPE_ALIASES = {
    "select": QuestionType.SELECT,
    "dropdown": QuestionType.SELECT,
    "radio": QuestionType.SELECT,
    "number": QuestionType.NUMBER,
    "numeric": QuestionType.NUMBER,
    "text": QuestionType.TEXT,
}


def is_valid_question_id(value: Any) -> bool:
    """True if value is a canonical UUID string."""
    if not isinstance(value, str):
        return False
    return bool(UUID_PATTERN.match(value))


def normalize_question_type(raw: Any) -> QuestionType:
    """Map a backend question_type to QuestionType. Unknown types are text."""
    key = str(raw or "").strip().lower()
    return TYPE_ALIASES.get(key, QuestionType.TEXT)


def _coerce_score(raw: Any) -> Optional[int]:
    """Integer score or None if the value is not a non-negative integer."""
    if raw is None:
        return 0
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw if raw >= 0 else None
    if isinstance(raw, float):
        if raw.is_integer() and raw >= 0:
            return int(raw)
        return None
    if isinstance(raw, str):
        try:
            return _coerce_score(float(raw.strip()))
        except ValueError:
            return None
    return None


def parse_option_row(row: Dict[str, Any]) -> Optional[QuestionOption]:
    """
    Build a QuestionOption from a dropdown_options row.

    Returns None (and logs) for rows without a value or with a negative /
    non-integer score.
    """
    value = row.get("option_value")
    if value is None or not str(value).strip():
        logger.warning(f"Dropping option {row.get('id')} of question {row.get('question_id')}: empty option_value")
        return None

    score = _coerce_score(row.get("score"))
    if score is None:
        logger.warning(
            f"Dropping option {row.get('id')} of question {row.get('question_id')}: "
            f"invalid score {row.get('score')!r}"
        )
        return None

    value = str(value).strip()
    label = row.get("option_text")
    try:
        return QuestionOption(
            value=value,
            label=str(label) if label else value,
            score=score,
            display_order=row.get("display_order"),
        )
    except ValidationError as e:
        logger.warning(f"Dropping option {row.get('id')}: {e}")
        return None


def _coerce_order(raw: Any) -> int:
    try:
        return int(raw or 0)
    except (TypeError, ValueError):
        return 0


def _option_sort_key(indexed: Tuple[int, QuestionOption]) -> Tuple[int, int, int]:
    position, option = indexed
    if option.display_order is None:
        return (1, 0, position)
    return (0, option.display_order, position)


def group_options(option_rows: Iterable[Dict[str, Any]]) -> Dict[str, List[QuestionOption]]:
    """Group option rows by lower-cased question_id, ordered by display_order then fetch order."""
    grouped: Dict[str, List[QuestionOption]] = {}
    for row in option_rows:
        question_id = row.get("question_id")
        if not question_id:
            continue
        option = parse_option_row(row)
        if option is not None:
            grouped.setdefault(str(question_id).lower(), []).append(option)

    return {
        qid: [opt for _, opt in sorted(enumerate(options), key=_option_sort_key)]
        for qid, options in grouped.items()
    }


def validate_question_row(row: Dict[str, Any]) -> List[str]:
    """Return reason codes for a questions row (empty list = valid)."""
    reasons: List[str] = []
    if not is_valid_question_id(row.get("id")):
        reasons.append(ReasonCode.INVALID_ID)
    if not str(row.get("question") or "").strip():
        reasons.append(ReasonCode.MISSING_TEXT)
    return reasons


def is_active_row(row: Dict[str, Any]) -> bool:
    """Soft-deleted rows carry is_active = false. Rows predating the column are active."""
    return row.get("is_active") is not False


def candidate_question_ids(question_rows: Iterable[Dict[str, Any]]) -> List[str]:
    """Ids of active, valid select questions (the only ones that take options), in fetch order."""
    ids: List[str] = []
    for row in question_rows:
        if not is_active_row(row) or validate_question_row(row):
            continue
        if normalize_question_type(row.get("question_type")) != QuestionType.SELECT:
            continue
        if row["id"] not in ids:
            ids.append(row["id"])
    return ids


def build_catalog(
    question_rows: Iterable[Dict[str, Any]],
    option_rows: Iterable[Dict[str, Any]],
) -> Tuple[List[Question], List[MalformedQuestion]]:
    """
    Build the ordered catalog from raw rows.

    Rules:
    - Inactive (soft-deleted) rows are skipped silently
    - Invalid id -> excluded (INVALID_ID)
    - Empty question text -> excluded (MISSING_TEXT)
    - Options attach by question_id; orphan options are ignored
    - Order: (category, display_order), ties keep fetch order

    Returns:
        (catalog, malformed rows)
    """
    options_by_question = group_options(option_rows)
    catalog: List[Question] = []
    malformed: List[MalformedQuestion] = []

    for row in question_rows:
        if not is_active_row(row):
            continue

        reasons = validate_question_row(row)
        if reasons:
            raw_id = row.get("id")
            logger.warning(f"Excluding catalog row {raw_id!r}: {', '.join(reasons)}")
            malformed.append(MalformedQuestion(
                question_id=None if raw_id is None else str(raw_id),
                text=None if row.get("question") is None else str(row.get("question")),
                reason_codes=reasons,
            ))
            continue

        question_id = row["id"]
        question_type = normalize_question_type(row.get("question_type"))
        options = options_by_question.get(question_id.lower(), []) if question_type == QuestionType.SELECT else []

        catalog.append(Question(
            id=question_id,
            text=str(row["question"]).strip(),
            type=question_type,
            category=str(row.get("page_category") or "general"),
            options=options,
            display_order=_coerce_order(row.get("display_order")),
            tooltip=row.get("tooltip"),
        ))

    catalog.sort(key=lambda q: (q.category, q.display_order))
    return catalog, malformed


def group_by_category(catalog: List[Question]) -> List[CatalogPage]:
    """Split the catalog into pages, keeping first-seen category order."""
    pages: Dict[str, CatalogPage] = {}
    for question in catalog:
        page = pages.get(question.category)
        if page is None:
            page = pages[question.category] = CatalogPage(category=question.category)
        page.questions.append(question)
    return list(pages.values())
