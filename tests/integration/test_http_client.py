import asyncio

import httpx
import pytest

from codenexus.clients.http import HttpServiceClient
from codenexus.domain.errors import SubmissionError
from codenexus.domain.models import OrchestratorPhase, ResultKind
from codenexus.domain.use_cases.build_request import build_request
from codenexus.services.orchestrator import Orchestrator
from codenexus.settings import ClientSettings

SETTINGS = ClientSettings(base_url="http://codenexus.test", poll_interval_ms=1)


def _submit_payload(submission_id: str = "abc123", language: str = "python") -> dict[str, object]:
    return {
        "submission_id": submission_id,
        "job": {
            "submission_id": submission_id,
            "language": language,
            "code_key": f"code/{submission_id}",
            "input_key": None,
        },
        "status": "queued",
    }


def _client(handler) -> HttpServiceClient:
    return HttpServiceClient(settings=SETTINGS, transport=httpx.MockTransport(handler))


@pytest.mark.integration
def test_submit_posts_multipart_with_language_and_code_file() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json=_submit_payload())

    async def _run():
        client = _client(handler)
        try:
            return await client.submit(build_request("python", 'print("hi")', "Ada\n"))
        finally:
            await client.aclose()

    handle = asyncio.run(_run())

    assert handle.submission_id == "abc123"
    assert handle.echoed_language == "python"
    assert handle.code_key == "code/abc123"
    request = captured[0]
    assert request.method == "POST"
    assert request.url.path == "/submit"
    assert request.headers["content-type"].startswith("multipart/form-data")
    body = request.content
    assert b'name="language"' in body
    assert b'name="code"; filename="code.py"' in body
    assert b'print("hi")' in body
    assert b'name="stdin"; filename="code.py"' in body
    assert b"Ada\n" in body


@pytest.mark.integration
def test_submit_omits_stdin_part_when_empty() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json=_submit_payload(language="go"))

    async def _run() -> None:
        client = _client(handler)
        try:
            await client.submit(build_request("go", "package main"))
        finally:
            await client.aclose()

    asyncio.run(_run())

    assert b'name="stdin"' not in captured[0].content
    assert b'filename="code.go"' in captured[0].content


@pytest.mark.integration
@pytest.mark.parametrize(
    ("handler", "reason"),
    [
        (lambda request: httpx.Response(500, text="boom"), "service_rejected"),
        (lambda request: httpx.Response(200, text="not json"), "malformed"),
        (lambda request: httpx.Response(200, json={"status": "queued"}), "malformed"),
    ],
)
def test_submit_failures_are_classified(handler, reason: str) -> None:
    async def _run() -> None:
        client = _client(handler)
        try:
            await client.submit(build_request("python", "print(1)"))
        finally:
            await client.aclose()

    with pytest.raises(SubmissionError) as exc_info:
        asyncio.run(_run())

    assert exc_info.value.reason == reason


@pytest.mark.integration
def test_submit_connection_error_is_network_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async def _run() -> None:
        client = _client(handler)
        try:
            await client.submit(build_request("python", "print(1)"))
        finally:
            await client.aclose()

    with pytest.raises(SubmissionError) as exc_info:
        asyncio.run(_run())

    assert exc_info.value.reason == "network_failure"
    assert "connection refused" in str(exc_info.value)


@pytest.mark.integration
def test_fetch_result_maps_transport_and_status_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.startswith("/results/"):
            raise httpx.ReadTimeout("timed out", request=request)
        if request.url.path == "/analysis/missing":
            return httpx.Response(404, json={"detail": "not found"})
        return httpx.Response(200, text="<html>")

    async def _run():
        client = _client(handler)
        try:
            return (
                await client.fetch_result(kind=ResultKind.EXECUTION, submission_id="abc"),
                await client.fetch_result(kind=ResultKind.ANALYSIS, submission_id="missing"),
                await client.fetch_result(kind=ResultKind.ANALYSIS, submission_id="abc"),
            )
        finally:
            await client.aclose()

    timed_out, missing, garbled = asyncio.run(_run())

    assert timed_out.status_code == 0
    assert timed_out.error == "timed out"
    assert timed_out.ok is False
    assert missing.status_code == 404
    assert missing.ok is False
    assert garbled.status_code == 200
    assert garbled.body is None


@pytest.mark.integration
def test_orchestrator_round_trip_over_http() -> None:
    execution_calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/submit":
            return httpx.Response(200, json=_submit_payload("run-1"))
        if path == "/results/run-1":
            execution_calls["count"] += 1
            if execution_calls["count"] < 3:
                return httpx.Response(404, json={"detail": "result not ready"})
            return httpx.Response(
                200,
                json={"language": "python", "status": "success", "success": True, "stdout": "hi\n", "stderr": ""},
            )
        if path == "/analysis/run-1":
            return httpx.Response(
                200,
                json={
                    "success": True,
                    "language": "python",
                    "tool": "bandit",
                    "analysis": {"metrics": {"_totals": {"loc": 1}}, "results": []},
                },
            )
        return httpx.Response(404)

    async def _run():
        client = _client(handler)
        orchestrator = Orchestrator(submission_client=client, result_client=client, interval_ms=1)
        try:
            return await orchestrator.run(build_request("python", 'print("hi")'))
        finally:
            await client.aclose()

    state = asyncio.run(_run())

    assert execution_calls["count"] == 3
    assert state.phase is OrchestratorPhase.DONE
    assert state.submission_id == "run-1"
    assert state.output == "hi\n"
    assert state.analysis_report is not None
    assert "Total Lines of Code (LOC): 1" in state.analysis_report


@pytest.mark.integration
def test_submit_keeps_job_when_echoed_language_does_not_resolve() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_submit_payload("abc123", language="C++17"))

    async def _run():
        client = _client(handler)
        try:
            return await client.submit(build_request("cpp", "int main() {}"))
        finally:
            await client.aclose()

    handle = asyncio.run(_run())

    assert handle.submission_id == "abc123"
    assert handle.echoed_language == "cpp"
