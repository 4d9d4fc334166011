from __future__ import annotations

from codenexus.api.schemas import (
    AnalysisOutcomeResponse,
    ExecutionOutcomeResponse,
    SessionResponse,
    StartRunResponse,
    StateResponse,
)
from codenexus.domain.models import OrchestratorState
from codenexus.services.session import EditorSession

COMPONENT_ID_SESSION = "api.get_session"
COMPONENT_ID_STATE = "api.get_state"
COMPONENT_ID_RUN = "api.start_run"


async def get_session_handler(*, session: EditorSession) -> SessionResponse:
    snapshot = session.snapshot()
    return SessionResponse(
        language=snapshot.language,
        code=snapshot.code,
        stdin=snapshot.stdin,
        file_error=snapshot.file_error,
        epoch=session.orchestrator.epoch,
    )


async def get_state_handler(*, session: EditorSession) -> StateResponse:
    return state_response(session.orchestrator.state)


async def start_run_handler(*, session: EditorSession) -> StartRunResponse:
    """Kick off a run in the background; clients follow it through GET /state."""
    session.start_run()
    state = session.orchestrator.state
    return StartRunResponse(epoch=state.epoch, phase=state.phase)


def state_response(state: OrchestratorState) -> StateResponse:
    execution = state.execution_outcome
    analysis = state.analysis_outcome
    return StateResponse(
        epoch=state.epoch,
        phase=state.phase,
        loading=state.is_loading,
        submission_id=state.submission_id,
        execution_outcome=(
            ExecutionOutcomeResponse(
                succeeded=execution.succeeded,
                stdout=execution.stdout,
                stderr=execution.stderr,
            )
            if execution is not None
            else None
        ),
        analysis_outcome=(
            AnalysisOutcomeResponse(
                succeeded=analysis.succeeded,
                tool=analysis.tool,
                metrics=analysis.metrics,
                raw_output=analysis.raw_output,
                findings_total=len(analysis.raw_findings),
            )
            if analysis is not None
            else None
        ),
        output=state.output,
        analysis_report=state.analysis_report,
        error_message=state.error_message,
        error_codes=list(state.error_codes),
    )
