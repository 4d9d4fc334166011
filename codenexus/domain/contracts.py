from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from codenexus.domain.models import ResultKind, SubmissionHandle, SubmissionRequest

SUBMIT_PATH = "/submit"
RESULT_PATHS: dict[ResultKind, str] = {
    ResultKind.EXECUTION: "/results/{submission_id}",
    ResultKind.ANALYSIS: "/analysis/{submission_id}",
}


@dataclass(frozen=True)
class RawResultResponse:
    """One answer from a result endpoint before classification."""

    status_code: int
    body: Any = None
    # Transport failure description; status_code is 0 when set.
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and 200 <= self.status_code < 300


@runtime_checkable
class SubmissionClient(Protocol):
    """One-shot submit call.

    Implementations perform exactly one network request per invocation and
    raise SubmissionError on any failure. They never retry.
    """

    async def submit(self, request: SubmissionRequest) -> SubmissionHandle: ...


@runtime_checkable
class ResultClient(Protocol):
    """Single fetch of a result endpoint.

    Transport failures are reported through RawResultResponse.error rather
    than raised; the poller treats them as "not ready".
    """

    async def fetch_result(self, *, kind: ResultKind, submission_id: str) -> RawResultResponse: ...
