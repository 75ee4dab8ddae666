"""
Questionnaire Endpoints

GET  /api/v1/questionnaire/catalog  - active questions grouped into pages
POST /api/v1/questionnaire/score    - score answers without storing them
POST /api/v1/questionnaire/submit   - score and store a completed questionnaire
PUT  /api/v1/questionnaire/submit/{id} - re-score and replace a stored questionnaire

Upstream unavailability maps to 503 (retryable), fetch timeouts to 504.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException

from glaucoma_risk.advice.store import AdviceUnavailable
from glaucoma_risk.catalog.loader import CatalogLoader, CatalogUnavailable
from glaucoma_risk.catalog.validate import group_by_category
from glaucoma_risk.dependencies import get_assessment_service, get_catalog_loader
from glaucoma_risk.scoring.service import AssessmentService, AssessmentTimeout

from .models import CatalogResponse, ScoreRequest, ScoreResponse, SubmitRequest, SubmitResponse
from .repository import SubmissionError

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/questionnaire",
    tags=["questionnaire"],
)


def unavailable(e: Exception) -> HTTPException:
    return HTTPException(
        status_code=503,
        detail={"error": str(e), "retryable": True},
    )


def timed_out(e: AssessmentTimeout) -> HTTPException:
    return HTTPException(
        status_code=504,
        detail={"error": str(e), "retryable": True},
    )


@router.get("/catalog", response_model=CatalogResponse)
async def get_catalog(loader: CatalogLoader = Depends(get_catalog_loader)):
    """Active questions grouped by page category, in display order."""
    try:
        catalog = await loader.load_catalog()
    except CatalogUnavailable as e:
        raise unavailable(e)

    return CatalogResponse(pages=group_by_category(catalog), question_count=len(catalog))


@router.post("/score", response_model=ScoreResponse)
async def score(
    request: ScoreRequest,
    service: AssessmentService = Depends(get_assessment_service),
):
    """Score an answer set. Nothing is stored."""
    try:
        assessment = await service.assess(request.answers)
    except (CatalogUnavailable, AdviceUnavailable) as e:
        raise unavailable(e)
    except AssessmentTimeout as e:
        raise timed_out(e)

    return ScoreResponse(result=assessment.result, audit=assessment.audit)


@router.post("/submit", response_model=SubmitResponse)
async def submit(
    request: SubmitRequest,
    service: AssessmentService = Depends(get_assessment_service),
):
    """Score a completed questionnaire and store it."""
    try:
        assessment = await service.submit(request)
    except (CatalogUnavailable, AdviceUnavailable) as e:
        raise unavailable(e)
    except AssessmentTimeout as e:
        raise timed_out(e)
    except SubmissionError as e:
        logger.error(f"Questionnaire not stored: {e}")
        raise HTTPException(status_code=502, detail={"error": str(e), "retryable": False})

    return SubmitResponse(
        id=assessment.submission_id,
        result=assessment.result,
        audit=assessment.audit,
    )


@router.put("/submit/{questionnaire_id}", response_model=SubmitResponse)
async def resubmit(
    questionnaire_id: str,
    request: SubmitRequest,
    service: AssessmentService = Depends(get_assessment_service),
):
    """Re-score an edited questionnaire and replace the stored copy."""
    try:
        assessment = await service.resubmit(questionnaire_id, request)
    except (CatalogUnavailable, AdviceUnavailable) as e:
        raise unavailable(e)
    except AssessmentTimeout as e:
        raise timed_out(e)
    except SubmissionError as e:
        logger.error(f"Questionnaire {questionnaire_id} not updated: {e}")
        raise HTTPException(status_code=502, detail={"error": str(e), "retryable": False})

    return SubmitResponse(
        id=assessment.submission_id,
        result=assessment.result,
        audit=assessment.audit,
    )
