"""
Process-wide service instances for the FastAPI routers.

Every router resolves its collaborators through these providers, so tests
swap them with app.dependency_overrides.
"""

from functools import lru_cache

from glaucoma_risk.advice.store import AdviceCache, AdviceStore
from glaucoma_risk.backend import BackendClient
from glaucoma_risk.catalog.loader import CatalogLoader
from glaucoma_risk.config import advice_cache_ttl, assessment_timeout, load_thresholds
from glaucoma_risk.questionnaire.repository import SubmissionRepository
from glaucoma_risk.scoring.service import AssessmentService


@lru_cache(maxsize=1)
def get_backend_client() -> BackendClient:
    return BackendClient()


@lru_cache(maxsize=1)
def get_catalog_loader() -> CatalogLoader:
    return CatalogLoader(get_backend_client())


@lru_cache(maxsize=1)
def get_advice_store() -> AdviceStore:
    # One store per process so admin writes invalidate the cache the scorer reads
    return AdviceStore(
        get_backend_client(),
        thresholds=load_thresholds(),
        cache=AdviceCache(ttl_seconds=advice_cache_ttl()),
    )


@lru_cache(maxsize=1)
def get_assessment_service() -> AssessmentService:
    return AssessmentService(
        get_catalog_loader(),
        get_advice_store(),
        thresholds=load_thresholds(),
        timeout=assessment_timeout(),
        repository=SubmissionRepository(get_backend_client()),
    )


def reset_dependencies() -> None:
    """Drop cached instances (picks up changed environment)."""
    for provider in (get_backend_client, get_catalog_loader, get_advice_store, get_assessment_service):
        provider.cache_clear()
