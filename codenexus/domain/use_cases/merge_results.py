from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TypeVar

from codenexus.domain.analysis_report import render_analysis_report
from codenexus.domain.error_taxonomy import ErrorCode, error_code_for
from codenexus.domain.errors import DomainError, PollTimeout, ServiceReportedFailure
from codenexus.domain.models import (
    AnalysisOutcome,
    ExecutionOutcome,
    OrchestratorPhase,
    PollAttempt,
    PollOutcome,
)

COMPONENT_ID = "domain.results.merge"
ERROR_HEADER = "There was an error:"

PayloadT = TypeVar("PayloadT", ExecutionOutcome, AnalysisOutcome)


@dataclass(frozen=True)
class MergedResult:
    phase: OrchestratorPhase
    execution_outcome: ExecutionOutcome | None
    analysis_outcome: AnalysisOutcome | None
    output: str | None
    analysis_report: str | None
    error_message: str | None
    error_codes: tuple[ErrorCode, ...]


def merge_results(*, execution: PollAttempt | None, analysis: PollAttempt | None) -> MergedResult:
    """Join the two terminal poll attempts of one submission.

    Execution output is never held back by analysis: stdout when the program
    succeeded, stderr otherwise. Analysis is attached only when it succeeded;
    a failed analysis contributes to the error message instead of the report.
    """
    errors: list[DomainError] = []

    execution_outcome = _payload(execution, ExecutionOutcome, errors)
    analysis_outcome = _payload(analysis, AnalysisOutcome, errors)

    output: str | None = None
    if execution_outcome is not None:
        output = execution_outcome.stdout if execution_outcome.succeeded else execution_outcome.stderr

    analysis_report: str | None = None
    if analysis_outcome is not None:
        if analysis_outcome.succeeded:
            analysis_report = render_analysis_report(analysis_outcome)
        else:
            tool = analysis_outcome.tool or "analyzer"
            errors.append(ServiceReportedFailure(f"Static analysis ({tool}) reported failure"))

    if execution_outcome is None and analysis_outcome is None:
        phase = OrchestratorPhase.FAILED
    else:
        phase = OrchestratorPhase.DONE

    return MergedResult(
        phase=phase,
        execution_outcome=execution_outcome,
        analysis_outcome=analysis_outcome,
        output=output,
        analysis_report=analysis_report,
        error_message=aggregate_error_message(str(error) for error in errors),
        error_codes=tuple(error_code_for(error) for error in errors),
    )


def aggregate_error_message(messages: Iterable[str]) -> str | None:
    collected = [message for message in messages if message]
    if not collected:
        return None
    return "\n".join([ERROR_HEADER, *collected])


def _payload(
    attempt: PollAttempt | None,
    expected_type: type[PayloadT],
    errors: list[DomainError],
) -> PayloadT | None:
    if attempt is None:
        return None
    if attempt.outcome is PollOutcome.TERMINAL_FAILURE:
        errors.append(PollTimeout(attempt.detail))
        return None
    if attempt.outcome is PollOutcome.SUCCESS and isinstance(attempt.payload, expected_type):
        return attempt.payload
    return None
