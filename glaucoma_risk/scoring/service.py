"""
Assessment Service
==================
Fetches the catalog and the advice table concurrently, scores the answers
and produces the audit block.

Failure rules:
- CatalogUnavailable / AdviceUnavailable propagate unchanged; nothing is
  scored on partial data.
- Fetches that exceed the timeout raise AssessmentTimeout.
- Cancellation of the caller propagates.
- An unexpected failure inside the engine is logged and answered with the
  degraded "Unknown" result.
"""

import asyncio
import logging
from typing import Any, List, Mapping, Optional, Tuple

from glaucoma_risk.advice.models import AdviceEntry
from glaucoma_risk.advice.store import AdviceStore
from glaucoma_risk.catalog.loader import CatalogLoader
from glaucoma_risk.catalog.models import Question
from glaucoma_risk.config import RiskThresholds, DEFAULT_THRESHOLDS
from glaucoma_risk.questionnaire.models import SubmitRequest
from glaucoma_risk.questionnaire.repository import SubmissionRepository
from glaucoma_risk.shared.hashing import canonical_hash

from .engine import ENGINE_VERSION, score_answers, degraded_result
from .models import Assessment, AssessmentAudit

logger = logging.getLogger(__name__)

_UNSET = object()


class AssessmentError(Exception):
    """Base class for assessment failures raised by this service."""
    pass


class AssessmentTimeout(AssessmentError, TimeoutError):
    """Catalog/advice fetches did not finish within the timeout."""
    pass


class AssessmentService:
    """
    Orchestrates one risk assessment.

    Usage:
        service = AssessmentService(loader, store, timeout=15)
        assessment = await service.assess({"<question-uuid>": "yes"})
    """

    def __init__(
        self,
        catalog_loader: CatalogLoader,
        advice_store: AdviceStore,
        thresholds: RiskThresholds = DEFAULT_THRESHOLDS,
        timeout: Optional[float] = None,
        repository: Optional[SubmissionRepository] = None,
    ):
        self.catalog_loader = catalog_loader
        self.advice_store = advice_store
        self.thresholds = thresholds
        self.timeout = timeout
        self.repository = repository

    async def load_inputs(self, timeout: Any = _UNSET) -> Tuple[List[Question], List[AdviceEntry]]:
        """
        Fetch catalog and advice table concurrently.

        Args:
            timeout: Seconds; None waits forever; omitted uses the service default

        Raises:
            AssessmentTimeout, CatalogUnavailable, AdviceUnavailable
        """
        limit = self.timeout if timeout is _UNSET else timeout

        catalog_task = asyncio.ensure_future(self.catalog_loader.load_catalog())
        advice_task = asyncio.ensure_future(self.advice_store.load_advice_table())
        tasks = (catalog_task, advice_task)

        try:
            catalog, advice = await asyncio.wait_for(asyncio.gather(*tasks), timeout=limit)
        except asyncio.TimeoutError as e:
            logger.warning(f"Catalog/advice fetch exceeded {limit}s")
            raise AssessmentTimeout(f"Catalog and advice fetch exceeded {limit}s") from e
        finally:
            # gather() leaves the sibling running when one task fails
            for task in tasks:
                if not task.done():
                    task.cancel()

        return catalog, advice

    def score(
        self,
        answers: Mapping[str, Any],
        catalog: List[Question],
        advice: List[AdviceEntry],
    ) -> Assessment:
        """Score pre-fetched inputs and attach the audit block."""
        input_hash = canonical_hash({
            "answers": dict(answers),
            "catalog": catalog,
            "advice": advice,
            "thresholds": self.thresholds,
        })

        degraded = False
        try:
            result = score_answers(answers, catalog, advice, self.thresholds)
        except Exception:
            logger.exception("Risk scoring failed; returning degraded result")
            result = degraded_result()
            degraded = True

        audit = AssessmentAudit(
            engine_version=ENGINE_VERSION,
            catalog_size=len(catalog),
            advice_rows=len(advice),
            input_hash=input_hash,
            output_hash=canonical_hash(result),
            degraded=degraded,
        )
        return Assessment(result=result, audit=audit)

    async def assess(self, answers: Mapping[str, Any], timeout: Any = _UNSET) -> Assessment:
        """
        Fetch inputs and score one answer set.

        Raises:
            AssessmentTimeout, CatalogUnavailable, AdviceUnavailable
        """
        catalog, advice = await self.load_inputs(timeout)
        assessment = self.score(answers, catalog, advice)
        logger.info(
            f"Assessed {len(answers)} answers: total={assessment.result.total_score} "
            f"level={assessment.result.risk_level} degraded={assessment.audit.degraded}"
        )
        return assessment

    async def submit(self, submission: SubmitRequest, timeout: Any = _UNSET) -> Assessment:
        """
        Score a completed questionnaire and store it.

        Raises:
            AssessmentTimeout, CatalogUnavailable, AdviceUnavailable, SubmissionError
        """
        if self.repository is None:
            raise AssessmentError("No submission repository configured")

        assessment = await self.assess(submission.answers, timeout)
        questionnaire_id = await self.repository.save(submission, assessment.result)
        return assessment.model_copy(update={"submission_id": questionnaire_id})

    async def resubmit(self, questionnaire_id: str, submission: SubmitRequest, timeout: Any = _UNSET) -> Assessment:
        """
        Re-score an edited questionnaire and replace the stored copy.

        Raises:
            AssessmentTimeout, CatalogUnavailable, AdviceUnavailable, SubmissionError
        """
        if self.repository is None:
            raise AssessmentError("No submission repository configured")

        assessment = await self.assess(submission.answers, timeout)
        await self.repository.update(questionnaire_id, submission, assessment.result)
        return assessment.model_copy(update={"submission_id": questionnaire_id})
