"""
Shared fixtures: catalog builders and an in-memory PostgREST backend.
"""

import json
import os
import sys
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from glaucoma_risk.backend import BackendClient
from glaucoma_risk.catalog.models import Question, QuestionOption, QuestionType


FAMILY_GLAUCOMA = "6f1d2c3b-0a4e-4b7f-9c21-1d5e8a7b3c01"
OCULAR_STEROID = "6f1d2c3b-0a4e-4b7f-9c21-1d5e8a7b3c02"
IOP_BASELINE = "6f1d2c3b-0a4e-4b7f-9c21-1d5e8a7b3c03"
RACE = "6f1d2c3b-0a4e-4b7f-9c21-1d5e8a7b3c04"
AGE = "6f1d2c3b-0a4e-4b7f-9c21-1d5e8a7b3c05"
FIRST_NAME = "6f1d2c3b-0a4e-4b7f-9c21-1d5e8a7b3c06"


def select_question(qid: str, text: str, options: Dict[str, int], category: str = "medical_history", order: int = 0) -> Question:
    return Question(
        id=qid,
        text=text,
        type=QuestionType.SELECT,
        category=category,
        display_order=order,
        options=[QuestionOption(value=v, label=v, score=s) for v, s in options.items()],
    )


@pytest.fixture
def high_risk_catalog() -> List[Question]:
    """The family history / steroid / IOP catalog, plus an unscored text question."""
    return [
        Question(id=FIRST_NAME, text="First name", type=QuestionType.TEXT, category="patient_info"),
        select_question(FAMILY_GLAUCOMA, "Family history of glaucoma?", {"yes": 2, "no": 0}, order=1),
        select_question(OCULAR_STEROID, "Ocular steroid use?", {"yes": 2, "no": 0}, order=2),
        select_question(
            IOP_BASELINE,
            "Baseline IOP",
            {"22_and_above": 2, "21_and_under": 0},
            category="clinical_measurements",
            order=1,
        ),
    ]


# ============================================================
# IN-MEMORY BACKEND
# ============================================================

class FakeBackend:
    """
    Minimal PostgREST stand-in served through httpx.MockTransport.

    tables: table name -> rows returned for GET
    rpc: function name -> JSON result
    failures: table/function name -> HTTP status to answer with
    """

    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.tables = tables or {}
        self.rpc: Dict[str, Any] = {}
        self.failures: Dict[str, int] = {}
        self.requests: List[httpx.Request] = []
        self.write_result: Optional[Callable[[httpx.Request], Any]] = None

    def count(self, method: str, name: str) -> int:
        return sum(
            1 for r in self.requests
            if r.method == method and r.url.path.endswith(f"/{name}")
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.split("/rest/v1/", 1)[1]
        name = path.split("/")[-1]

        if name in self.failures:
            return httpx.Response(self.failures[name], json={"message": f"{name} failed"})

        if path.startswith("rpc/"):
            return httpx.Response(200, json=self.rpc.get(name))

        if request.method == "GET":
            return httpx.Response(200, json=self.tables.get(name, []))

        if self.write_result is not None:
            return httpx.Response(200, json=self.write_result(request))

        body = json.loads(request.content) if request.content else {}
        return httpx.Response(201, json=[body])

    def client(self) -> BackendClient:
        return BackendClient(
            base_url="https://backend.test",
            api_key="service-key",
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()
