from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import Callable
from functools import partial

from codenexus.domain.contracts import ResultClient, SubmissionClient
from codenexus.domain.error_taxonomy import error_code_for
from codenexus.domain.errors import SubmissionError
from codenexus.domain.lifecycle import ensure_transition
from codenexus.domain.models import (
    AnalysisOutcome,
    ExecutionOutcome,
    OrchestratorPhase,
    OrchestratorState,
    PollAttempt,
    PollOutcome,
    ResultKind,
    SubmissionRequest,
)
from codenexus.domain.use_cases.merge_results import aggregate_error_message, merge_results
from codenexus.polling.cancellation import CancellationToken
from codenexus.polling.join import join_terminal
from codenexus.polling.poller import ResultPoller

StateListener = Callable[[OrchestratorState], None]
logger = logging.getLogger("codenexus.orchestrator")


class Orchestrator:
    """Owns the submit/poll/merge lifecycle and the only shared state.

    Every update is tagged with the epoch it was started under and dropped if
    that epoch is no longer current, so a late answer from an earlier run can
    never overwrite a newer run or a cleared editor. All mutation happens on the
    event loop thread; the epoch check is the only synchronization needed.
    """

    def __init__(
        self,
        *,
        submission_client: SubmissionClient,
        result_client: ResultClient,
        max_attempts: int = 12,
        interval_ms: int = 10000,
    ) -> None:
        self._submission_client = submission_client
        self._poller = ResultPoller(client=result_client, max_attempts=max_attempts, interval_ms=interval_ms)
        self._state = OrchestratorState()
        self._token: CancellationToken | None = None
        self._listeners: list[StateListener] = []
        self._runs: set[asyncio.Task[OrchestratorState]] = set()

    @property
    def state(self) -> OrchestratorState:
        return self._state

    @property
    def epoch(self) -> int:
        return self._state.epoch

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def run(self, request: SubmissionRequest) -> OrchestratorState:
        """Submit once and wait until this run settles or is superseded.

        The returned state always carries this run's epoch; a superseded run
        returns an Idle state rather than the newer run's result.
        """
        return await self.start(request)

    def start(self, request: SubmissionRequest) -> asyncio.Task[OrchestratorState]:
        """Open a new epoch and drive it in the background.

        The epoch is advanced before this returns, so callers can read it from
        ``state`` immediately.
        """
        token = self._open_epoch(OrchestratorPhase.SUBMITTING)
        task = asyncio.create_task(self._drive(request, token), name=f"run-{token.epoch}")
        self._runs.add(task)
        task.add_done_callback(self._runs.discard)
        return task

    def invalidate(self, *, reason: str = "invalidated") -> int:
        """Abandon the current epoch (code edit, language switch) and go Idle."""
        token = self._open_epoch(OrchestratorPhase.IDLE)
        logger.info("epoch invalidated: %s", reason, extra={"epoch": token.epoch, "phase": "idle"})
        return token.epoch

    def _open_epoch(self, phase: OrchestratorPhase) -> CancellationToken:
        if self._token is not None:
            self._token.cancel()
        epoch = self._state.epoch + 1
        ensure_transition(from_phase=self._state.phase, to_phase=phase)
        self._token = CancellationToken(epoch)
        self._publish(OrchestratorState(epoch=epoch, phase=phase))
        return self._token

    async def _drive(self, request: SubmissionRequest, token: CancellationToken) -> OrchestratorState:
        epoch = token.epoch
        log_extra = {"epoch": epoch}
        try:
            logger.info("submitting", extra={**log_extra, "phase": "submitting"})
            try:
                handle = await self._submission_client.submit(request)
            except SubmissionError as exc:
                logger.warning(
                    "submission failed",
                    extra={**log_extra, "error_code": exc.reason},
                )
                self._apply(
                    epoch,
                    phase=OrchestratorPhase.FAILED,
                    error_message=aggregate_error_message([str(exc)]),
                    error_codes=(exc.reason,),
                )
                return self._settled(epoch)

            log_extra["submission_id"] = handle.submission_id
            if not self._apply(epoch, phase=OrchestratorPhase.POLLING, submission_id=handle.submission_id):
                logger.info("submission superseded before polling", extra=log_extra)
                return self._settled(epoch)

            streams = {
                kind: self._poller.poll(handle.submission_id, kind, token)
                for kind in (ResultKind.EXECUTION, ResultKind.ANALYSIS)
            }
            results = await join_terminal(streams, on_attempt=partial(self._record_attempt, epoch))

            merged = merge_results(
                execution=results[ResultKind.EXECUTION],
                analysis=results[ResultKind.ANALYSIS],
            )
            if self._apply(
                epoch,
                phase=merged.phase,
                execution_outcome=merged.execution_outcome,
                analysis_outcome=merged.analysis_outcome,
                output=merged.output,
                analysis_report=merged.analysis_report,
                error_message=merged.error_message,
                error_codes=merged.error_codes,
            ):
                logger.info("run settled", extra={**log_extra, "phase": str(merged.phase)})
        except Exception as exc:
            logger.exception("run crashed", extra=log_extra)
            self._apply(
                epoch,
                phase=OrchestratorPhase.FAILED,
                error_message=aggregate_error_message([f"internal error: {exc}"]),
                error_codes=(error_code_for(exc),),
            )
        return self._settled(epoch)

    def _settled(self, epoch: int) -> OrchestratorState:
        if epoch == self._state.epoch:
            return self._state
        # Superseded runs resolve to an Idle state under their own epoch.
        return OrchestratorState(epoch=epoch)

    def _record_attempt(self, epoch: int, kind: ResultKind, attempt: PollAttempt) -> None:
        if attempt.outcome is not PollOutcome.SUCCESS:
            return
        # Partial result: stays in POLLING until both pollers are terminal.
        if isinstance(attempt.payload, ExecutionOutcome):
            applied = self._apply(epoch, execution_outcome=attempt.payload)
        elif isinstance(attempt.payload, AnalysisOutcome):
            applied = self._apply(epoch, analysis_outcome=attempt.payload)
        else:
            return
        if applied:
            logger.info(
                "result received",
                extra={"epoch": epoch, "kind": str(kind), "attempt": attempt.attempt_number},
            )

    def _apply(self, epoch: int, **changes: object) -> bool:
        if epoch != self._state.epoch:
            logger.info("stale update discarded", extra={"epoch": epoch})
            return False
        phase = changes.get("phase")
        if isinstance(phase, OrchestratorPhase):
            ensure_transition(from_phase=self._state.phase, to_phase=phase)
        self._publish(dataclasses.replace(self._state, **changes))
        return True

    def _publish(self, state: OrchestratorState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("state listener failed", extra={"epoch": state.epoch})
