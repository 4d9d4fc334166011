from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass

from pydantic import ValidationError

from codenexus.domain.contracts import RawResultResponse, ResultClient
from codenexus.domain.error_taxonomy import classify_error
from codenexus.domain.models import PollAttempt, PollOutcome, ResultKind
from codenexus.lib.wire import (
    analysis_outcome,
    decode_analysis,
    decode_execution,
    execution_outcome,
    is_pending_execution,
)
from codenexus.polling.cancellation import CancellationToken

logger = logging.getLogger("codenexus.poller")


@dataclass
class ResultPoller:
    """Fixed-delay, fixed-cap polling of one result endpoint.

    Attempts are strictly sequential. The token is checked before every
    attempt and after every response, so a response that lands after
    cancellation is dropped instead of yielded.
    """

    client: ResultClient
    max_attempts: int = 12
    interval_ms: int = 10000

    async def poll(
        self,
        submission_id: str,
        kind: ResultKind,
        token: CancellationToken,
    ) -> AsyncIterator[PollAttempt]:
        log_extra = {"submission_id": submission_id, "kind": str(kind), "epoch": token.epoch}
        for attempt_number in range(1, self.max_attempts + 1):
            if token.cancelled:
                logger.info("poll cancelled before attempt", extra={**log_extra, "attempt": attempt_number})
                return

            response = await self.client.fetch_result(kind=kind, submission_id=submission_id)
            if token.cancelled:
                logger.info("stale poll response discarded", extra={**log_extra, "attempt": attempt_number})
                return

            attempt = classify_response(kind=kind, attempt_number=attempt_number, response=response)
            yield attempt
            if attempt.is_terminal:
                return

            logger.info(
                "result not ready",
                extra={
                    **log_extra,
                    "attempt": attempt_number,
                    "error_code": attempt.error_code,
                    "retry_classification": classify_error("result_not_ready"),
                },
            )
            if attempt_number == self.max_attempts:
                break
            if not await token.sleep(self.interval_ms / 1000):
                logger.info("poll cancelled during backoff", extra={**log_extra, "attempt": attempt_number})
                return

        logger.warning("poll attempts exhausted", extra={**log_extra, "attempt": self.max_attempts})
        # Not a fetch: the marker closes the last attempt and carries its number.
        yield PollAttempt(
            kind=kind,
            attempt_number=self.max_attempts,
            outcome=PollOutcome.TERMINAL_FAILURE,
            detail=f"{kind.capitalize()} result not ready before timeout",
            error_code="poll_timeout",
        )


def classify_response(
    *,
    kind: ResultKind,
    attempt_number: int,
    response: RawResultResponse,
) -> PollAttempt:
    if not response.ok:
        detail = response.error or f"{kind.capitalize()} result not ready yet (HTTP {response.status_code})"
        return _not_ready(kind, attempt_number, detail)

    try:
        if kind is ResultKind.EXECUTION:
            execution = decode_execution(response.body)
            if is_pending_execution(execution):
                return PollAttempt(
                    kind=kind,
                    attempt_number=attempt_number,
                    outcome=PollOutcome.PENDING,
                    detail=f"execution status is {execution.status}",
                    error_code="result_not_ready",
                )
            payload = execution_outcome(execution)
        else:
            payload = analysis_outcome(decode_analysis(response.body))
    except ValidationError as exc:
        return _not_ready(kind, attempt_number, f"malformed {kind} body: {exc.error_count()} validation errors")

    return PollAttempt(
        kind=kind,
        attempt_number=attempt_number,
        outcome=PollOutcome.SUCCESS,
        payload=payload,
    )


def _not_ready(kind: ResultKind, attempt_number: int, detail: str) -> PollAttempt:
    return PollAttempt(
        kind=kind,
        attempt_number=attempt_number,
        outcome=PollOutcome.RETRYABLE_FAILURE,
        detail=detail,
        error_code="result_not_ready",
    )
