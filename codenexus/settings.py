from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_BASE_URL = "http://localhost:8080"


@dataclass(frozen=True)
class ClientSettings:
    base_url: str = DEFAULT_BASE_URL
    poll_max_attempts: int = 12
    poll_interval_ms: int = 10000
    request_timeout_ms: int = 30000


def client_settings_from_env() -> ClientSettings:
    return ClientSettings(
        base_url=os.getenv("CODENEXUS_BASE_URL", DEFAULT_BASE_URL).rstrip("/") or DEFAULT_BASE_URL,
        poll_max_attempts=_env_int("CODENEXUS_POLL_MAX_ATTEMPTS", 12),
        poll_interval_ms=_env_int("CODENEXUS_POLL_INTERVAL_MS", 10000),
        request_timeout_ms=_env_int("CODENEXUS_REQUEST_TIMEOUT_MS", 30000),
    )


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default

    try:
        parsed = int(value)
    except ValueError:
        return default

    return parsed if parsed > 0 else default
