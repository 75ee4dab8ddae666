"""
Advice Admin Endpoints

Manage the score range -> risk level -> advice table.

Security: Requires ADMIN_API_KEY header for all endpoints.
"""

from datetime import datetime
from typing import List
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from glaucoma_risk.dependencies import get_advice_store
from glaucoma_risk.shared.admin_auth import verify_admin_key

from .models import AdviceEntry
from .store import AdviceStore, AdviceUnavailable, AdviceWriteError

router = APIRouter(
    prefix="/api/v1/admin/risk",
    tags=["admin", "risk"],
)


class AdviceListResponse(BaseModel):
    success: bool = True
    total: int
    entries: List[AdviceEntry]
    generated_at: datetime = Field(default_factory=datetime.utcnow)


class AdviceWriteResponse(BaseModel):
    success: bool = True
    entry: AdviceEntry


class AdviceDeleteResponse(BaseModel):
    success: bool = True
    id: str
    deleted: bool


@router.get("/advice", response_model=AdviceListResponse)
async def list_advice(
    admin_key: str = Depends(verify_admin_key),
    store: AdviceStore = Depends(get_advice_store),
):
    """Advice rows ordered by min_score."""
    try:
        entries = await store.load_advice_table()
    except AdviceUnavailable as e:
        raise HTTPException(status_code=503, detail={"error": str(e), "retryable": True})

    return AdviceListResponse(total=len(entries), entries=entries)


@router.put("/advice", response_model=AdviceWriteResponse)
async def put_advice(
    entry: AdviceEntry,
    admin_key: str = Depends(verify_admin_key),
    store: AdviceStore = Depends(get_advice_store),
):
    """
    Create or replace an advice row.

    With an id the row is updated; without one it is merged on risk_level.
    """
    try:
        saved = await store.upsert_advice(entry)
    except AdviceWriteError as e:
        raise HTTPException(status_code=502, detail={"error": str(e)})

    return AdviceWriteResponse(entry=saved)


@router.delete("/advice/{advice_id}", response_model=AdviceDeleteResponse)
async def delete_advice(
    advice_id: str,
    admin_key: str = Depends(verify_admin_key),
    store: AdviceStore = Depends(get_advice_store),
):
    try:
        deleted = await store.delete_advice(advice_id)
    except AdviceWriteError as e:
        raise HTTPException(status_code=502, detail={"error": str(e)})

    if not deleted:
        raise HTTPException(status_code=404, detail=f"Advice row {advice_id} not found")

    return AdviceDeleteResponse(id=advice_id, deleted=True)
