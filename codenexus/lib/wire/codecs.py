from __future__ import annotations

from datetime import UTC, datetime

from codenexus.domain.languages import LANGUAGES, source_filename, validate_language
from codenexus.domain.models import (
    AnalysisOutcome,
    ExecutionOutcome,
    SubmissionHandle,
    SubmissionRequest,
)
from codenexus.lib.wire.types import AnalysisResponse, ExecutionResponse, SubmitResponse

EXECUTION_SUCCESS_STATUS = "success"
# Explicit "not ready" markers an execution body may carry on a 2xx answer.
PENDING_STATUSES = frozenset({"pending", "queued", "running", "processing"})

MultipartFiles = dict[str, tuple[str, bytes, str]]


def encode_submission(request: SubmissionRequest) -> tuple[dict[str, str], MultipartFiles]:
    """Return (form fields, files) for the multipart POST /submit body."""
    filename = source_filename(request.language)
    files: MultipartFiles = {
        "code": (filename, request.source_code.encode("utf-8"), "text/plain"),
    }
    if request.stdin:
        files["stdin"] = (filename, request.stdin.encode("utf-8"), "text/plain")
    return {"language": request.language}, files


def decode_submission(payload: object, *, requested_language: str | None = None) -> SubmissionHandle:
    """Build a handle from the job descriptor.

    The echoed language is matched case-insensitively; one that still does not
    resolve is replaced by the requested language when that is given.
    """
    response = SubmitResponse.model_validate(payload)
    echoed = response.job.language.strip().lower()
    if echoed not in LANGUAGES and requested_language is not None:
        echoed = requested_language
    language = validate_language(echoed)
    return SubmissionHandle(
        submission_id=response.submission_id,
        echoed_language=language.id,
        created_at=datetime.now(UTC),
        code_key=response.job.code_key,
        input_key=response.job.input_key,
        status=response.status,
    )


def is_pending_execution(response: ExecutionResponse) -> bool:
    return response.status.lower() in PENDING_STATUSES


def decode_execution(payload: object) -> ExecutionResponse:
    return ExecutionResponse.model_validate(payload)


def execution_outcome(response: ExecutionResponse) -> ExecutionOutcome:
    return ExecutionOutcome(
        succeeded=response.status == EXECUTION_SUCCESS_STATUS,
        stdout=response.stdout,
        stderr=response.stderr,
        status=response.status,
    )


def decode_analysis(payload: object) -> AnalysisResponse:
    return AnalysisResponse.model_validate(payload)


def analysis_outcome(response: AnalysisResponse) -> AnalysisOutcome:
    metrics = response.analysis.metrics
    raw_output = response.analysis.raw_output
    if raw_output is None and isinstance(metrics, str):
        raw_output = metrics
    return AnalysisOutcome(
        succeeded=response.success,
        tool=response.tool,
        metrics=_numeric_metrics(metrics) if isinstance(metrics, dict) else {},
        raw_findings=list(response.analysis.results or response.results),
        raw_output=raw_output,
        errors=list(response.analysis.errors),
        timestamp=response.timestamp,
    )


def _numeric_metrics(metrics: dict[str, object]) -> dict[str, dict[str, float]]:
    # Keep only mapping entries; inside each, keep counters that are numbers.
    structured: dict[str, dict[str, float]] = {}
    for name, entry in metrics.items():
        if not isinstance(entry, dict):
            continue
        counters = {
            key: value
            for key, value in entry.items()
            if isinstance(value, (int, float)) and not isinstance(value, bool)
        }
        structured[name] = counters
    return structured
