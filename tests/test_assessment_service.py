"""
Assessment Service Tests

Mandatory coverage:
- Catalog + advice fetched concurrently, then scored
- Upstream failures propagate typed, nothing scored on partial data
- Fetch timeout -> AssessmentTimeout
- Engine failure -> degraded "Unknown" result
- Audit hashes stable across identical runs
- Submissions stored through the insert RPC
"""

import asyncio
from typing import List
from unittest.mock import patch

import pytest

from glaucoma_risk.advice.models import AdviceEntry
from glaucoma_risk.advice.store import AdviceStore, AdviceUnavailable, AdviceCache
from glaucoma_risk.catalog.loader import CatalogLoader, CatalogUnavailable
from glaucoma_risk.catalog.models import Question
from glaucoma_risk.questionnaire.models import SubmitRequest
from glaucoma_risk.questionnaire.repository import SubmissionError, SubmissionRepository
from glaucoma_risk.scoring.engine import ENGINE_VERSION, UNKNOWN_ADVICE
from glaucoma_risk.scoring.service import AssessmentError, AssessmentService, AssessmentTimeout

from conftest import FAMILY_GLAUCOMA, IOP_BASELINE, OCULAR_STEROID


HIGH_RISK_ANSWERS = {
    FAMILY_GLAUCOMA: "yes",
    OCULAR_STEROID: "yes",
    IOP_BASELINE: "22_and_above",
}

ADVICE = [
    AdviceEntry(id="1", min_score=0, max_score=2, risk_level="Low", advice="Routine exams."),
    AdviceEntry(id="3", min_score=6, max_score=100, risk_level="High", advice="See a specialist."),
]


class StaticLoader(CatalogLoader):
    """CatalogLoader serving a fixed catalog, optionally slow or failing."""

    def __init__(self, catalog: List[Question], delay: float = 0, error: Exception = None):
        super().__init__(client=None)
        self.catalog = catalog
        self.delay = delay
        self.error = error
        self.cancelled = False

    async def load_catalog(self):
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error:
            raise self.error
        return list(self.catalog)


class StaticStore(AdviceStore):
    """AdviceStore serving a fixed table, optionally slow or failing."""

    def __init__(self, entries: List[AdviceEntry], delay: float = 0, error: Exception = None):
        super().__init__(client=None, cache=AdviceCache(ttl_seconds=0))
        self.entries = entries
        self.delay = delay
        self.error = error
        self.calls = 0
        self.cancelled = False

    async def load_advice_table(self):
        self.calls += 1
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error:
            raise self.error
        return list(self.entries)


class TestAssess:
    """Tests for assess()."""

    def test_scores_fetched_inputs(self, high_risk_catalog):
        service = AssessmentService(StaticLoader(high_risk_catalog), StaticStore(ADVICE))

        assessment = asyncio.run(service.assess(HIGH_RISK_ANSWERS))

        assert assessment.result.total_score == 6
        assert assessment.result.advice == "See a specialist."
        assert assessment.audit.engine_version == ENGINE_VERSION
        assert assessment.audit.catalog_size == len(high_risk_catalog)
        assert assessment.audit.advice_rows == 2
        assert assessment.audit.degraded is False

    def test_catalog_unavailable_propagates(self):
        store = StaticStore(ADVICE)
        service = AssessmentService(StaticLoader([], error=CatalogUnavailable("down")), store)

        with pytest.raises(CatalogUnavailable):
            asyncio.run(service.assess(HIGH_RISK_ANSWERS))

    def test_advice_unavailable_propagates(self, high_risk_catalog):
        service = AssessmentService(StaticLoader(high_risk_catalog), StaticStore([], error=AdviceUnavailable("down")))

        with pytest.raises(AdviceUnavailable):
            asyncio.run(service.assess(HIGH_RISK_ANSWERS))

    def test_failure_cancels_sibling_fetch(self, high_risk_catalog):
        loader = StaticLoader(high_risk_catalog, delay=5)
        service = AssessmentService(loader, StaticStore([], error=AdviceUnavailable("down")))

        with pytest.raises(AdviceUnavailable):
            asyncio.run(service.assess(HIGH_RISK_ANSWERS))

        assert loader.cancelled

    def test_timeout(self, high_risk_catalog):
        loader = StaticLoader(high_risk_catalog, delay=5)
        service = AssessmentService(loader, StaticStore(ADVICE), timeout=0.05)

        with pytest.raises(AssessmentTimeout):
            asyncio.run(service.assess(HIGH_RISK_ANSWERS))

        assert loader.cancelled

    def test_caller_cancellation_propagates(self, high_risk_catalog):
        loader = StaticLoader(high_risk_catalog, delay=5)
        store = StaticStore(ADVICE, delay=5)
        service = AssessmentService(loader, store, timeout=30)

        async def scenario():
            task = asyncio.ensure_future(service.assess(HIGH_RISK_ANSWERS))
            await asyncio.sleep(0.05)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        with patch("glaucoma_risk.scoring.service.score_answers") as engine:
            asyncio.run(scenario())

        engine.assert_not_called()
        assert loader.cancelled
        assert store.cancelled

    def test_timeout_is_timeout_error(self):
        assert issubclass(AssessmentTimeout, TimeoutError)
        assert issubclass(AssessmentTimeout, AssessmentError)

    def test_call_timeout_overrides_default(self, high_risk_catalog):
        service = AssessmentService(StaticLoader(high_risk_catalog, delay=5), StaticStore(ADVICE), timeout=None)

        with pytest.raises(AssessmentTimeout):
            asyncio.run(service.assess(HIGH_RISK_ANSWERS, timeout=0.05))

    def test_engine_failure_degrades(self, high_risk_catalog):
        service = AssessmentService(StaticLoader(high_risk_catalog), StaticStore(ADVICE))

        with patch("glaucoma_risk.scoring.service.score_answers", side_effect=RuntimeError("boom")):
            assessment = asyncio.run(service.assess(HIGH_RISK_ANSWERS))

        assert assessment.result.total_score == 0
        assert assessment.result.risk_level == "Unknown"
        assert assessment.result.contributing_factors == []
        assert assessment.result.advice == UNKNOWN_ADVICE
        assert assessment.audit.degraded is True

    def test_audit_hashes_stable(self, high_risk_catalog):
        service = AssessmentService(StaticLoader(high_risk_catalog), StaticStore(ADVICE))

        first = asyncio.run(service.assess(HIGH_RISK_ANSWERS))
        second = asyncio.run(service.assess(dict(reversed(list(HIGH_RISK_ANSWERS.items())))))

        assert first.audit.input_hash == second.audit.input_hash
        assert first.audit.output_hash == second.audit.output_hash
        assert first.audit.input_hash.startswith("sha256:")

    def test_audit_input_hash_tracks_answers(self, high_risk_catalog):
        service = AssessmentService(StaticLoader(high_risk_catalog), StaticStore(ADVICE))

        first = asyncio.run(service.assess(HIGH_RISK_ANSWERS))
        second = asyncio.run(service.assess({FAMILY_GLAUCOMA: "no"}))

        assert first.audit.input_hash != second.audit.input_hash


class TestSubmit:
    """Tests for submit() and the submission repository."""

    def submission(self):
        return SubmitRequest(first_name="Ada", last_name="Lovelace", answers=HIGH_RISK_ANSWERS)

    def test_submit_stores_result(self, backend, high_risk_catalog):
        backend.rpc["insert_patient_questionnaire"] = "9a7c1f0e-2b3d-4e5f-8a9b-0c1d2e3f4a5b"
        service = AssessmentService(
            StaticLoader(high_risk_catalog),
            StaticStore(ADVICE),
            repository=SubmissionRepository(backend.client()),
        )

        assessment = asyncio.run(service.submit(self.submission()))

        assert assessment.submission_id == "9a7c1f0e-2b3d-4e5f-8a9b-0c1d2e3f4a5b"
        payload = backend.requests[-1].read()
        assert b'"total_score":6' in payload.replace(b" ", b"")
        assert b'"risk_level":"High"' in payload.replace(b" ", b"")

    def test_submit_nothing_stored_when_catalog_down(self, backend):
        service = AssessmentService(
            StaticLoader([], error=CatalogUnavailable("down")),
            StaticStore(ADVICE),
            repository=SubmissionRepository(backend.client()),
        )

        with pytest.raises(CatalogUnavailable):
            asyncio.run(service.submit(self.submission()))

        assert backend.requests == []

    def test_missing_id_raises(self, backend, high_risk_catalog):
        backend.rpc["insert_patient_questionnaire"] = None
        repository = SubmissionRepository(backend.client())
        service = AssessmentService(StaticLoader(high_risk_catalog), StaticStore(ADVICE), repository=repository)

        with pytest.raises(SubmissionError):
            asyncio.run(service.submit(self.submission()))

    def test_rpc_failure_raises(self, backend, high_risk_catalog):
        backend.failures["insert_patient_questionnaire"] = 500
        service = AssessmentService(
            StaticLoader(high_risk_catalog),
            StaticStore(ADVICE),
            repository=SubmissionRepository(backend.client()),
        )

        with pytest.raises(SubmissionError):
            asyncio.run(service.submit(self.submission()))

    def test_update_false_raises(self, backend, high_risk_catalog):
        backend.rpc["update_patient_questionnaire"] = False
        repository = SubmissionRepository(backend.client())
        assessment = asyncio.run(
            AssessmentService(StaticLoader(high_risk_catalog), StaticStore(ADVICE)).assess(HIGH_RISK_ANSWERS)
        )

        with pytest.raises(SubmissionError):
            asyncio.run(repository.update("some-id", self.submission(), assessment.result))

    def test_update_ok(self, backend, high_risk_catalog):
        backend.rpc["update_patient_questionnaire"] = True
        repository = SubmissionRepository(backend.client())
        assessment = asyncio.run(
            AssessmentService(StaticLoader(high_risk_catalog), StaticStore(ADVICE)).assess(HIGH_RISK_ANSWERS)
        )

        asyncio.run(repository.update("some-id", self.submission(), assessment.result))

        assert backend.requests[-1].url.path == "/rest/v1/rpc/update_patient_questionnaire"

    def test_resubmit_updates_stored_copy(self, backend, high_risk_catalog):
        backend.rpc["update_patient_questionnaire"] = True
        service = AssessmentService(
            StaticLoader(high_risk_catalog),
            StaticStore(ADVICE),
            repository=SubmissionRepository(backend.client()),
        )

        assessment = asyncio.run(service.resubmit("stored-id", self.submission()))

        assert assessment.submission_id == "stored-id"
        request = backend.requests[-1]
        assert request.url.path == "/rest/v1/rpc/update_patient_questionnaire"
        assert b'"id":"stored-id"' in request.read().replace(b" ", b"")

    def test_no_repository(self, high_risk_catalog):
        service = AssessmentService(StaticLoader(high_risk_catalog), StaticStore(ADVICE))

        with pytest.raises(AssessmentError):
            asyncio.run(service.submit(self.submission()))


# Run tests
if __name__ == "__main__":
    pytest.main([__file__, "-v"])
