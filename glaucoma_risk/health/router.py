"""
Deployment Health Check Endpoint
================================
Liveness and component status of the deployed risk scoring service.
"""

import os
from datetime import datetime
from fastapi import APIRouter, Depends

from glaucoma_risk import __version__
from glaucoma_risk.advice.store import AdviceStore, AdviceUnavailable
from glaucoma_risk.catalog.loader import CatalogLoader
from glaucoma_risk.config import load_thresholds, assessment_timeout
from glaucoma_risk.dependencies import get_advice_store, get_catalog_loader
from glaucoma_risk.scoring.engine import ENGINE_VERSION

router = APIRouter(prefix="/api/v1/health", tags=["Health"])


@router.get("/quick")
def quick_health():
    """Quick health check - minimal overhead."""
    return {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "version": __version__,
    }


@router.get("/deployment")
async def deployment_health(
    loader: CatalogLoader = Depends(get_catalog_loader),
    store: AdviceStore = Depends(get_advice_store),
):
    """
    Component-level status: configuration, catalog and advice table.
    """
    status = {
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "api_version": __version__,
        "environment": os.environ.get("DEPLOY_ENVIRONMENT", "unknown"),
        "components": {}
    }

    thresholds = load_thresholds()
    status["components"]["scoring_engine"] = {
        "status": "healthy",
        "version": ENGINE_VERSION,
        "low_max": thresholds.low_max,
        "moderate_max": thresholds.moderate_max,
        "assessment_timeout_seconds": assessment_timeout(),
    }

    status["components"]["backend"] = {
        "status": "configured" if loader.client.is_configured else "not_configured",
    }

    active = await loader.count_active()
    if active is None:
        status["components"]["catalog"] = {"status": "error", "error": "Catalog unavailable"}
    else:
        status["components"]["catalog"] = {
            "status": "healthy",
            "active_questions": active,
            "excluded_questions": len(loader.last_report),
        }

    try:
        advice = await store.load_advice_table()
        status["components"]["advice"] = {
            "status": "healthy",
            "rows": len(advice),
            "cache_warm": store.cache.is_warm,
        }
    except AdviceUnavailable as e:
        status["components"]["advice"] = {"status": "error", "error": str(e)}

    healthy = all(
        c.get("status") in ("healthy", "configured")
        for c in status["components"].values()
    )
    status["overall_status"] = "healthy" if healthy else "degraded"

    return status
