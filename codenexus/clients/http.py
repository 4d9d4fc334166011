from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from codenexus.domain.contracts import RESULT_PATHS, SUBMIT_PATH, RawResultResponse
from codenexus.domain.errors import DomainValidationError, SubmissionError
from codenexus.domain.models import ResultKind, SubmissionHandle, SubmissionRequest
from codenexus.lib.wire import decode_submission, encode_submission
from codenexus.settings import ClientSettings

logger = logging.getLogger("codenexus.client")


class HttpServiceClient:
    """httpx-backed client for the submit and result endpoints.

    Implements both SubmissionClient and ResultClient over one connection pool.
    """

    def __init__(
        self,
        *,
        settings: ClientSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=settings.base_url,
            timeout=settings.request_timeout_ms / 1000,
            transport=transport,
        )

    async def submit(self, request: SubmissionRequest) -> SubmissionHandle:
        data, files = encode_submission(request)
        try:
            response = await self._client.post(SUBMIT_PATH, data=data, files=files)
        except httpx.HTTPError as exc:
            raise SubmissionError("network_failure", str(exc) or type(exc).__name__) from exc

        if response.is_error:
            raise SubmissionError("service_rejected", f"{response.status_code} {response.text[:200]}")

        try:
            handle = decode_submission(response.json(), requested_language=request.language)
        except (ValueError, ValidationError, DomainValidationError) as exc:
            raise SubmissionError("malformed", "submit response is not a valid job descriptor") from exc

        logger.info(
            "submission accepted",
            extra={"submission_id": handle.submission_id},
        )
        return handle

    async def fetch_result(self, *, kind: ResultKind, submission_id: str) -> RawResultResponse:
        path = RESULT_PATHS[kind].format(submission_id=submission_id)
        try:
            response = await self._client.get(path)
        except httpx.HTTPError as exc:
            return RawResultResponse(status_code=0, error=str(exc) or type(exc).__name__)
        if response.is_error:
            return RawResultResponse(status_code=response.status_code)
        try:
            body = response.json()
        except ValueError:
            body = None
        return RawResultResponse(status_code=response.status_code, body=body)

    async def aclose(self) -> None:
        await self._client.aclose()
