"""
Submission Repository

Stores scored questionnaires through the backend's
insert_patient_questionnaire / update_patient_questionnaire functions.
"""

import logging
from typing import Any, Dict

from glaucoma_risk.backend import BackendClient, BackendError
from glaucoma_risk.scoring.models import RiskResult

from .models import SubmitRequest

logger = logging.getLogger(__name__)

INSERT_FUNCTION = "insert_patient_questionnaire"
UPDATE_FUNCTION = "update_patient_questionnaire"


class SubmissionError(Exception):
    """A questionnaire could not be stored."""
    pass


def build_rpc_params(submission: SubmitRequest, result: RiskResult) -> Dict[str, Any]:
    """RPC payload: patient name, raw answers and the scored result."""
    return {
        "first_name": submission.first_name,
        "last_name": submission.last_name,
        "answers": {k: v for k, v in submission.answers.items()},
        "total_score": result.total_score,
        "risk_level": result.risk_level,
        "contributing_factors": [f.model_dump() for f in result.contributing_factors],
        "advice": result.advice,
    }


def _extract_id(data: Any) -> str:
    # The function returns either the new uuid or a row carrying it
    if isinstance(data, list) and data:
        data = data[0]
    if isinstance(data, dict):
        data = data.get("id") or data.get(INSERT_FUNCTION)
    if data is None or not str(data).strip():
        raise SubmissionError("Backend returned no questionnaire id")
    return str(data)


class SubmissionRepository:

    def __init__(self, client: BackendClient):
        self.client = client

    async def save(self, submission: SubmitRequest, result: RiskResult) -> str:
        """
        Store a new questionnaire and return its id.

        Raises:
            SubmissionError: backend rejected the call or returned no id
        """
        try:
            data = await self.client.rpc(INSERT_FUNCTION, build_rpc_params(submission, result))
        except BackendError as e:
            logger.error(f"Questionnaire insert failed: {e}")
            raise SubmissionError(f"Could not store questionnaire: {e}") from e

        questionnaire_id = _extract_id(data)
        logger.info(f"Stored questionnaire {questionnaire_id} (score={result.total_score}, level={result.risk_level})")
        return questionnaire_id

    async def update(self, questionnaire_id: str, submission: SubmitRequest, result: RiskResult) -> None:
        """
        Replace a stored questionnaire.

        Raises:
            SubmissionError: backend rejected the call or reported no update
        """
        params = build_rpc_params(submission, result)
        params["id"] = questionnaire_id
        try:
            data = await self.client.rpc(UPDATE_FUNCTION, params)
        except BackendError as e:
            logger.error(f"Questionnaire update failed: {e}")
            raise SubmissionError(f"Could not update questionnaire {questionnaire_id}: {e}") from e

        if data is False:
            raise SubmissionError(f"Questionnaire {questionnaire_id} was not updated")
        logger.info(f"Updated questionnaire {questionnaire_id}")
