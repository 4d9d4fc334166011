from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime

from codenexus.domain.contracts import RawResultResponse
from codenexus.domain.errors import SubmissionError
from codenexus.domain.models import ResultKind, SubmissionHandle, SubmissionRequest

DEFAULT_METRIC_COUNTERS: dict[str, int] = {
    "CONFIDENCE.HIGH": 0,
    "CONFIDENCE.LOW": 0,
    "CONFIDENCE.MEDIUM": 0,
    "CONFIDENCE.UNDEFINED": 0,
    "SEVERITY.HIGH": 0,
    "SEVERITY.LOW": 0,
    "SEVERITY.MEDIUM": 0,
    "SEVERITY.UNDEFINED": 0,
    "loc": 2,
    "nosec": 0,
    "skipped_tests": 0,
}


def not_ready(status_code: int = 404) -> RawResultResponse:
    return RawResultResponse(status_code=status_code)


def execution_body(
    *,
    stdout: str = "",
    stderr: str = "",
    status: str = "success",
    language: str = "python",
) -> RawResultResponse:
    return RawResultResponse(
        status_code=200,
        body={
            "language": language,
            "status": status,
            "success": status == "success",
            "stdout": stdout,
            "stderr": stderr,
        },
    )


def analysis_body(
    *,
    success: bool = True,
    tool: str = "bandit",
    language: str = "python",
    metrics: dict[str, object] | None = None,
    raw_output: str | None = None,
) -> RawResultResponse:
    analysis: dict[str, object] = {
        "errors": [],
        "generated_at": "2024-01-01T00:00:00Z",
        "results": [],
    }
    if raw_output is not None:
        analysis["raw_output"] = raw_output
    else:
        analysis["metrics"] = (
            metrics
            if metrics is not None
            else {"./code.py": dict(DEFAULT_METRIC_COUNTERS), "_totals": dict(DEFAULT_METRIC_COUNTERS)}
        )
    return RawResultResponse(
        status_code=200,
        body={
            "success": success,
            "language": language,
            "tool": tool,
            "timestamp": "2024-01-01T00:00:00Z",
            "analysis": analysis,
        },
    )


@dataclass
class StubServiceClient:
    """Scripted stand-in for the remote service.

    Each result script is consumed one response per fetch; the last response
    repeats once the script is down to one entry. An empty script answers with
    a terminal success.
    """

    execution_responses: list[RawResultResponse] = field(default_factory=list)
    analysis_responses: list[RawResultResponse] = field(default_factory=list)
    submit_error: SubmissionError | None = None
    # Fetches for a kind block on its gate until the test releases it.
    gates: dict[ResultKind, asyncio.Event] = field(default_factory=dict)
    submissions: list[SubmissionRequest] = field(default_factory=list)
    fetches: list[tuple[ResultKind, str]] = field(default_factory=list)

    async def submit(self, request: SubmissionRequest) -> SubmissionHandle:
        self.submissions.append(request)
        if self.submit_error is not None:
            raise self.submit_error
        return SubmissionHandle(
            submission_id=f"sub-{len(self.submissions)}",
            echoed_language=request.language,
            created_at=datetime.now(UTC),
            code_key=f"code/sub-{len(self.submissions)}",
            input_key=f"input/sub-{len(self.submissions)}" if request.stdin else None,
            status="queued",
        )

    async def fetch_result(self, *, kind: ResultKind, submission_id: str) -> RawResultResponse:
        self.fetches.append((kind, submission_id))
        gate = self.gates.get(kind)
        if gate is not None:
            await gate.wait()

        script = self.execution_responses if kind is ResultKind.EXECUTION else self.analysis_responses
        if not script:
            if kind is ResultKind.EXECUTION:
                return execution_body(stdout="Try CodeNexus\n")
            return analysis_body()
        if len(script) > 1:
            return script.pop(0)
        return script[0]

    def fetch_count(self, kind: ResultKind) -> int:
        return sum(1 for fetched_kind, _ in self.fetches if fetched_kind is kind)
