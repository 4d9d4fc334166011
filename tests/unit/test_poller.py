import asyncio

import pytest

from codenexus.clients.stub import StubServiceClient, analysis_body, execution_body, not_ready
from codenexus.domain.contracts import RawResultResponse
from codenexus.domain.models import AnalysisOutcome, ExecutionOutcome, PollAttempt, PollOutcome, ResultKind
from codenexus.polling.cancellation import CancellationToken
from codenexus.polling.poller import ResultPoller, classify_response


async def _collect(poller: ResultPoller, kind: ResultKind, token: CancellationToken) -> list[PollAttempt]:
    return [attempt async for attempt in poller.poll("sub-1", kind, token)]


@pytest.mark.unit
def test_poller_succeeds_exactly_at_the_attempt_cap() -> None:
    client = StubServiceClient(execution_responses=[not_ready()] * 11 + [execution_body(stdout="late\n")])
    poller = ResultPoller(client=client, max_attempts=12, interval_ms=1)

    attempts = asyncio.run(_collect(poller, ResultKind.EXECUTION, CancellationToken(epoch=1)))

    assert len(attempts) == 12
    assert [attempt.attempt_number for attempt in attempts] == list(range(1, 13))
    assert all(attempt.outcome is PollOutcome.RETRYABLE_FAILURE for attempt in attempts[:11])
    assert attempts[-1].outcome is PollOutcome.SUCCESS
    assert attempts[-1].payload == ExecutionOutcome(succeeded=True, stdout="late\n", stderr="", status="success")
    assert client.fetch_count(ResultKind.EXECUTION) == 12


@pytest.mark.unit
def test_poller_times_out_after_the_attempt_cap() -> None:
    client = StubServiceClient(execution_responses=[not_ready()])
    poller = ResultPoller(client=client, max_attempts=12, interval_ms=1)

    attempts = asyncio.run(_collect(poller, ResultKind.EXECUTION, CancellationToken(epoch=1)))

    assert client.fetch_count(ResultKind.EXECUTION) == 12
    terminal = attempts[-1]
    assert terminal.outcome is PollOutcome.TERMINAL_FAILURE
    assert terminal.error_code == "poll_timeout"
    assert terminal.detail == "Execution result not ready before timeout"
    assert sum(1 for attempt in attempts if attempt.is_terminal) == 1
    # The timeout marker reports the number of the last fetch it closes.
    assert len(attempts) == 13
    assert attempts[-2].attempt_number == 12
    assert terminal.attempt_number == 12


@pytest.mark.unit
def test_poller_retries_explicit_pending_marker() -> None:
    client = StubServiceClient(
        execution_responses=[execution_body(status="running"), execution_body(stdout="done\n")]
    )
    poller = ResultPoller(client=client, max_attempts=3, interval_ms=1)

    attempts = asyncio.run(_collect(poller, ResultKind.EXECUTION, CancellationToken(epoch=1)))

    assert [attempt.outcome for attempt in attempts] == [PollOutcome.PENDING, PollOutcome.SUCCESS]


@pytest.mark.unit
def test_service_reported_failure_is_still_a_terminal_success() -> None:
    client = StubServiceClient(
        execution_responses=[execution_body(status="error", stderr="boom")],
        analysis_responses=[analysis_body(success=False)],
    )
    poller = ResultPoller(client=client, max_attempts=3, interval_ms=1)

    async def _run() -> tuple[list[PollAttempt], list[PollAttempt]]:
        token = CancellationToken(epoch=1)
        return (
            await _collect(poller, ResultKind.EXECUTION, token),
            await _collect(poller, ResultKind.ANALYSIS, token),
        )

    execution_attempts, analysis_attempts = asyncio.run(_run())

    assert len(execution_attempts) == 1
    assert execution_attempts[0].outcome is PollOutcome.SUCCESS
    assert isinstance(execution_attempts[0].payload, ExecutionOutcome)
    assert execution_attempts[0].payload.succeeded is False
    assert analysis_attempts[0].outcome is PollOutcome.SUCCESS
    assert isinstance(analysis_attempts[0].payload, AnalysisOutcome)
    assert analysis_attempts[0].payload.succeeded is False


@pytest.mark.unit
def test_classify_response_treats_transport_and_body_errors_as_not_ready() -> None:
    transport = classify_response(
        kind=ResultKind.ANALYSIS,
        attempt_number=1,
        response=RawResultResponse(status_code=0, error="connection reset"),
    )
    malformed = classify_response(
        kind=ResultKind.EXECUTION,
        attempt_number=2,
        response=RawResultResponse(status_code=200, body={"stdout": "no status"}),
    )
    unparsed = classify_response(
        kind=ResultKind.ANALYSIS,
        attempt_number=3,
        response=RawResultResponse(status_code=200, body=None),
    )

    assert transport.outcome is PollOutcome.RETRYABLE_FAILURE
    assert transport.detail == "connection reset"
    assert malformed.outcome is PollOutcome.RETRYABLE_FAILURE
    assert unparsed.outcome is PollOutcome.RETRYABLE_FAILURE


@pytest.mark.unit
def test_classify_response_accepts_free_form_analysis_metrics() -> None:
    attempt = classify_response(
        kind=ResultKind.ANALYSIS,
        attempt_number=1,
        response=RawResultResponse(
            status_code=200,
            body={
                "success": True,
                "language": "java",
                "tool": "spotbugs",
                "analysis": {"metrics": "no structured metrics", "results": [], "errors": []},
            },
        ),
    )

    assert attempt.outcome is PollOutcome.SUCCESS
    assert isinstance(attempt.payload, AnalysisOutcome)
    assert attempt.payload.raw_output == "no structured metrics"


@pytest.mark.unit
def test_execution_body_with_null_stderr_is_terminal_on_first_attempt() -> None:
    client = StubServiceClient(
        execution_responses=[
            RawResultResponse(status_code=200, body={"status": "success", "stdout": "hi\n", "stderr": None}),
        ],
    )
    poller = ResultPoller(client=client, max_attempts=12, interval_ms=1)

    attempts = asyncio.run(_collect(poller, ResultKind.EXECUTION, CancellationToken(epoch=1)))

    assert client.fetch_count(ResultKind.EXECUTION) == 1
    assert attempts[-1].outcome is PollOutcome.SUCCESS
    assert attempts[-1].payload == ExecutionOutcome(succeeded=True, stdout="hi\n", stderr="", status="success")


@pytest.mark.unit
def test_cancelled_token_stops_before_first_attempt() -> None:
    client = StubServiceClient()
    poller = ResultPoller(client=client, max_attempts=12, interval_ms=1)
    token = CancellationToken(epoch=1)
    token.cancel()

    attempts = asyncio.run(_collect(poller, ResultKind.EXECUTION, token))

    assert attempts == []
    assert client.fetches == []


@pytest.mark.unit
def test_cancellation_wakes_the_backoff_and_skips_further_attempts() -> None:
    client = StubServiceClient(execution_responses=[not_ready()])
    poller = ResultPoller(client=client, max_attempts=12, interval_ms=60_000)

    async def _run() -> list[PollAttempt]:
        token = CancellationToken(epoch=1)
        task = asyncio.create_task(_collect(poller, ResultKind.EXECUTION, token))
        while client.fetch_count(ResultKind.EXECUTION) < 1:
            await asyncio.sleep(0)
        await asyncio.sleep(0.01)
        token.cancel()
        return await asyncio.wait_for(task, timeout=1)

    attempts = asyncio.run(_run())

    assert [attempt.outcome for attempt in attempts] == [PollOutcome.RETRYABLE_FAILURE]
    assert client.fetch_count(ResultKind.EXECUTION) == 1


@pytest.mark.unit
def test_response_landing_after_cancellation_is_discarded() -> None:
    async def _run() -> tuple[list[PollAttempt], StubServiceClient]:
        gate = asyncio.Event()
        client = StubServiceClient(gates={ResultKind.EXECUTION: gate})
        poller = ResultPoller(client=client, max_attempts=12, interval_ms=1)
        token = CancellationToken(epoch=1)
        task = asyncio.create_task(_collect(poller, ResultKind.EXECUTION, token))
        while client.fetch_count(ResultKind.EXECUTION) < 1:
            await asyncio.sleep(0)
        token.cancel()
        gate.set()
        return await task, client

    attempts, client = asyncio.run(_run())

    assert attempts == []
    assert client.fetch_count(ResultKind.EXECUTION) == 1
