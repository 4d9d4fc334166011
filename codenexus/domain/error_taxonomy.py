from __future__ import annotations

from typing import Literal

from codenexus.domain.errors import (
    PollTimeout,
    ServiceReportedFailure,
    SubmissionError,
)

# Canonical error vocabulary shared by the client, pollers and orchestrator.
ErrorCode = Literal[
    "network_failure",
    "service_rejected",
    "malformed",
    "result_not_ready",
    "poll_timeout",
    "service_reported_failure",
    "internal_error",
]

RetryClassification = Literal["recoverable", "terminal"]

CANONICAL_ERROR_CODES: tuple[ErrorCode, ...] = (
    "network_failure",
    "service_rejected",
    "malformed",
    "result_not_ready",
    "poll_timeout",
    "service_reported_failure",
    "internal_error",
)

# Only poll-level "not ready" answers are retried. A failed submission is never
# retried automatically because the service creates a new job per call.
RECOVERABLE_ERROR_CODES: frozenset[ErrorCode] = frozenset({"result_not_ready"})


def is_canonical_error_code(code: str) -> bool:
    return code in CANONICAL_ERROR_CODES


def classify_error(code: ErrorCode) -> RetryClassification:
    if code in RECOVERABLE_ERROR_CODES:
        return "recoverable"
    return "terminal"


def error_code_for(exc: BaseException) -> ErrorCode:
    if isinstance(exc, SubmissionError):
        return exc.reason
    if isinstance(exc, PollTimeout):
        return "poll_timeout"
    if isinstance(exc, ServiceReportedFailure):
        return "service_reported_failure"
    return "internal_error"
