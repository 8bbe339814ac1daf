import logging
from typing import Any, Dict, Optional, Protocol, runtime_checkable

import httpx
from pydantic import ValidationError

from talent_mapping.errors import NotFoundError, TransportError
from talent_mapping.submission.schemas import SubmissionPayload, SubmitResponse

logger = logging.getLogger(__name__)

SUBMIT_PATH = "/api/assessment/submit"
STATUS_PATH = "/api/assessment/status/{job_id}"
RESULT_PATH = "/api/archive/results/{result_id}"

INSUFFICIENT_TOKENS_MESSAGE = (
    "Insufficient tokens to process your assessment. "
    "Please contact support or try again later."
)


@runtime_checkable
class ResultTransport(Protocol):
    """What the session and the poller need from the scoring backend."""

    async def submit_assessment(self, payload: SubmissionPayload) -> str:
        ...

    async def get_result_by_id(self, result_id: str) -> Dict[str, Any]:
        ...


class AssessmentApiClient:
    """
    Thin async client for the scoring backend.

    A fresh ``httpx.AsyncClient`` is opened per call; cancelling the awaiting
    task aborts the in-flight request. ``transport`` is handed to httpx and is
    how tests plug in ``httpx.MockTransport``.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        auth_token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.auth_token = auth_token
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        return headers

    async def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        async with httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self._transport
        ) as client:
            try:
                logger.debug(f"Sending {method} request to {path}")
                response = await client.request(method, path, json=json, headers=self._headers())
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if status == 404:
                    logger.debug(f"{method} {path} returned 404")
                    raise NotFoundError(f"Resource not found: {path}") from e
                if status == 402:
                    logger.warning(f"{method} {path} rejected: insufficient tokens")
                    raise TransportError(INSUFFICIENT_TOKENS_MESSAGE, status_code=402) from e
                logger.error(f"HTTP error occurred on {method} {path}: {status} - {e.response.text}")
                raise TransportError(f"Request failed with status {status}", status_code=status) from e
            except httpx.RequestError as e:
                logger.error(f"Request error occurred on {method} {path}: {e}")
                raise TransportError(f"Request error: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"Invalid JSON in response from {path}", status_code=response.status_code
            ) from e

    async def submit_assessment(self, payload: SubmissionPayload) -> str:
        """
        Submits a completed assessment for asynchronous analysis.

        Returns:
            The job id assigned by the backend.

        Raises:
            TransportError: On any HTTP failure or a malformed acknowledgment.
        """
        body = await self._request("POST", SUBMIT_PATH, json=payload.to_wire())
        try:
            ack = SubmitResponse.model_validate(body)
        except ValidationError as e:
            raise TransportError(f"Unexpected submission response: {e}") from e
        if not ack.success:
            raise TransportError("Backend rejected the assessment submission")
        logger.info(f"Assessment submitted, job id {ack.data.job_id}")
        return ack.data.job_id

    async def get_assessment_status(self, job_id: str) -> Dict[str, Any]:
        return await self._request("GET", STATUS_PATH.format(job_id=job_id))

    async def get_result_by_id(self, result_id: str) -> Dict[str, Any]:
        """Fetches an analysis result. Raises NotFoundError while it does not exist yet."""
        return await self._request("GET", RESULT_PATH.format(result_id=result_id))
