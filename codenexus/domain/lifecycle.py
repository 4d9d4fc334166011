from __future__ import annotations

from codenexus.domain.errors import DomainInvariantError
from codenexus.domain.models import OrchestratorPhase

# Every phase may fall back to IDLE: editing code or switching language
# invalidates the current epoch wherever it is.
ALLOWED_TRANSITIONS: dict[OrchestratorPhase, set[OrchestratorPhase]] = {
    OrchestratorPhase.IDLE: {OrchestratorPhase.SUBMITTING, OrchestratorPhase.IDLE},
    OrchestratorPhase.SUBMITTING: {
        OrchestratorPhase.POLLING,
        OrchestratorPhase.FAILED,
        OrchestratorPhase.SUBMITTING,
        OrchestratorPhase.IDLE,
    },
    OrchestratorPhase.POLLING: {
        OrchestratorPhase.POLLING,
        OrchestratorPhase.DONE,
        OrchestratorPhase.FAILED,
        OrchestratorPhase.SUBMITTING,
        OrchestratorPhase.IDLE,
    },
    OrchestratorPhase.DONE: {OrchestratorPhase.SUBMITTING, OrchestratorPhase.IDLE},
    OrchestratorPhase.FAILED: {OrchestratorPhase.SUBMITTING, OrchestratorPhase.IDLE},
}


def ensure_transition(*, from_phase: OrchestratorPhase, to_phase: OrchestratorPhase) -> None:
    if to_phase not in ALLOWED_TRANSITIONS[from_phase]:
        raise DomainInvariantError(f"invalid phase transition {from_phase} -> {to_phase}")
