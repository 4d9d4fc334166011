from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from codenexus.domain.error_taxonomy import ErrorCode
from codenexus.domain.languages import LanguageId


@dataclass(frozen=True)
class SubmissionRequest:
    language: LanguageId
    source_code: str
    stdin: str | None = None


@dataclass(frozen=True)
class SubmissionHandle:
    submission_id: str
    echoed_language: LanguageId
    created_at: datetime
    code_key: str | None = None
    input_key: str | None = None
    status: str | None = None


class ResultKind(StrEnum):
    EXECUTION = "execution"
    ANALYSIS = "analysis"


class PollOutcome(StrEnum):
    PENDING = "pending"
    SUCCESS = "success"
    RETRYABLE_FAILURE = "retryable_failure"
    TERMINAL_FAILURE = "terminal_failure"


@dataclass(frozen=True)
class ExecutionOutcome:
    succeeded: bool
    stdout: str
    stderr: str
    status: str = ""


@dataclass(frozen=True)
class AnalysisOutcome:
    succeeded: bool
    tool: str
    # Per-file counters keyed by path plus an aggregate "_totals" entry.
    # Empty for languages that only report free-form text.
    metrics: dict[str, dict[str, float]] = field(default_factory=dict)
    raw_findings: list[dict[str, object]] = field(default_factory=list)
    raw_output: str | None = None
    errors: list[object] = field(default_factory=list)
    timestamp: str | None = None


ResultPayload = ExecutionOutcome | AnalysisOutcome


@dataclass(frozen=True)
class PollAttempt:
    kind: ResultKind
    attempt_number: int
    outcome: PollOutcome
    payload: ResultPayload | None = None
    detail: str = ""
    error_code: ErrorCode | None = None

    @property
    def is_terminal(self) -> bool:
        return self.outcome in (PollOutcome.SUCCESS, PollOutcome.TERMINAL_FAILURE)


class OrchestratorPhase(StrEnum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    POLLING = "polling"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class OrchestratorState:
    epoch: int = 0
    phase: OrchestratorPhase = OrchestratorPhase.IDLE
    submission_id: str | None = None
    execution_outcome: ExecutionOutcome | None = None
    analysis_outcome: AnalysisOutcome | None = None
    # Merged, user-facing text. Only set once the epoch reaches Done.
    output: str | None = None
    analysis_report: str | None = None
    error_message: str | None = None
    error_codes: tuple[ErrorCode, ...] = ()

    @property
    def is_terminal(self) -> bool:
        return self.phase in (OrchestratorPhase.DONE, OrchestratorPhase.FAILED)

    @property
    def is_loading(self) -> bool:
        return self.phase in (OrchestratorPhase.SUBMITTING, OrchestratorPhase.POLLING)
