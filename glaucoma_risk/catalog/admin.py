"""
Catalog Admin Endpoints

Read-only report of question rows excluded from the active catalog.

Security: Requires ADMIN_API_KEY header for all endpoints.
"""

from datetime import datetime
from typing import List
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from glaucoma_risk.dependencies import get_catalog_loader
from glaucoma_risk.shared.admin_auth import verify_admin_key
from glaucoma_risk.shared.hashing import canonical_hash

from .loader import CatalogLoader, CatalogUnavailable
from .models import MalformedQuestion


router = APIRouter(
    prefix="/api/v1/admin/risk/catalog",
    tags=["admin", "catalog"],
)


class ValidationReportResponse(BaseModel):
    """Malformed question report response."""
    success: bool = True
    active_questions: int
    excluded_questions: int
    malformed: List[MalformedQuestion]
    report_hash: str
    generated_at: datetime = Field(default_factory=datetime.utcnow)


@router.get("/validation", response_model=ValidationReportResponse)
async def get_validation_report(
    admin_key: str = Depends(verify_admin_key),
    loader: CatalogLoader = Depends(get_catalog_loader),
):
    """
    Reload the catalog and list the rows that were excluded, with reason codes.
    """
    try:
        catalog = await loader.load_catalog()
    except CatalogUnavailable as e:
        raise HTTPException(status_code=503, detail={"error": str(e), "retryable": True})

    malformed = loader.last_report
    return ValidationReportResponse(
        active_questions=len(catalog),
        excluded_questions=len(malformed),
        malformed=malformed,
        report_hash=canonical_hash(malformed),
    )
