"""
Question Catalog Loader

Reads the questions and dropdown_options tables and returns the validated,
ordered catalog consumed by the scoring engine.

A failed fetch raises CatalogUnavailable. An empty catalog is only returned
when the backend really holds no active questions.
"""

import logging
from typing import List, Optional

from glaucoma_risk.backend import BackendClient, BackendError, in_filter

from .models import Question, MalformedQuestion
from .validate import build_catalog, candidate_question_ids

logger = logging.getLogger(__name__)

QUESTIONS_TABLE = "questions"
OPTIONS_TABLE = "dropdown_options"


class CatalogUnavailable(Exception):
    """The question catalog could not be fetched from the backend."""
    pass


class CatalogLoader:
    """
    Loads the active question catalog.

    The loader keeps no catalog cache; every call reads the backend. The
    rows excluded by the most recent load are kept in `last_report`.
    """

    def __init__(self, client: BackendClient):
        self.client = client
        self._last_report: List[MalformedQuestion] = []

    @property
    def last_report(self) -> List[MalformedQuestion]:
        """Rows excluded by the most recent successful load."""
        return list(self._last_report)

    async def load_catalog(self) -> List[Question]:
        """
        Fetch questions (ordered by category, display_order), then the options
        of the questions that survive validation, in one query.

        Raises:
            CatalogUnavailable: backend read failed
        """
        try:
            question_rows = await self.client.select(
                QUESTIONS_TABLE,
                order=[("page_category", True), ("display_order", True)],
            )
            question_rows = [row for row in question_rows if isinstance(row, dict)]

            question_ids = candidate_question_ids(question_rows)
            option_rows: List[dict] = []
            if question_ids:
                option_rows = await self.client.select(
                    OPTIONS_TABLE,
                    filters={"question_id": in_filter(question_ids)},
                    order=[("created_at", True), ("id", True)],
                )
        except BackendError as e:
            logger.error(f"Catalog fetch failed: {e}")
            raise CatalogUnavailable(f"Question catalog unavailable: {e}") from e

        catalog, malformed = build_catalog(
            question_rows,
            (row for row in option_rows if isinstance(row, dict)),
        )
        self._last_report = malformed

        logger.info(
            f"Fetched {len(question_rows)} questions, returning {len(catalog)} "
            f"({len(malformed)} excluded as malformed)"
        )
        return catalog

    async def count_active(self) -> Optional[int]:
        """Active question count for health checks; None if the backend is unreachable."""
        try:
            return len(await self.load_catalog())
        except CatalogUnavailable:
            return None
