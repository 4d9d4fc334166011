from __future__ import annotations

import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from codenexus.clients.http import HttpServiceClient
from codenexus.clients.stub import StubServiceClient
from codenexus.domain.contracts import ResultClient, SubmissionClient
from codenexus.services.orchestrator import Orchestrator
from codenexus.services.session import EditorSession
from codenexus.settings import ClientSettings, client_settings_from_env


@dataclass
class RuntimeContainer:
    settings: ClientSettings
    submission_client: SubmissionClient
    result_client: ResultClient
    orchestrator: Orchestrator
    session: EditorSession
    on_shutdown: Callable[[], Awaitable[None]] | None


def build_runtime_container(
    *,
    settings: ClientSettings | None = None,
    service: SubmissionClient | None = None,
) -> RuntimeContainer:
    """Wire clients, orchestrator and session.

    Without CODENEXUS_BASE_URL (and no explicit service) the in-memory stub
    service answers every run, which keeps local startup self-contained.
    """
    resolved_settings = settings or client_settings_from_env()
    on_shutdown: Callable[[], Awaitable[None]] | None = None
    if service is not None:
        submission_client = service
    elif os.getenv("CODENEXUS_BASE_URL"):
        http_client = HttpServiceClient(settings=resolved_settings)
        submission_client = http_client
        on_shutdown = http_client.aclose
    else:
        submission_client = StubServiceClient()

    if not isinstance(submission_client, ResultClient):
        raise TypeError("service client must implement both submit and fetch_result")
    result_client = submission_client

    orchestrator = Orchestrator(
        submission_client=submission_client,
        result_client=result_client,
        max_attempts=resolved_settings.poll_max_attempts,
        interval_ms=resolved_settings.poll_interval_ms,
    )
    return RuntimeContainer(
        settings=resolved_settings,
        submission_client=submission_client,
        result_client=result_client,
        orchestrator=orchestrator,
        session=EditorSession(orchestrator=orchestrator),
        on_shutdown=on_shutdown,
    )
