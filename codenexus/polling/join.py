from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable, Mapping
from typing import TypeVar

from codenexus.domain.models import PollAttempt

K = TypeVar("K")

AttemptListener = Callable[[K, PollAttempt], None]


async def join_terminal(
    streams: Mapping[K, AsyncIterator[PollAttempt]],
    *,
    on_attempt: AttemptListener[K] | None = None,
) -> dict[K, PollAttempt | None]:
    """Drain every attempt stream concurrently and wait for all of them.

    Each key maps to its terminal attempt, or None when the stream stopped
    without one (cancelled). Streams share no ordering: either may finish first.
    """

    async def _drain(key: K, stream: AsyncIterator[PollAttempt]) -> PollAttempt | None:
        last: PollAttempt | None = None
        async for attempt in stream:
            if on_attempt is not None:
                on_attempt(key, attempt)
            last = attempt
        if last is not None and last.is_terminal:
            return last
        return None

    keys = list(streams)
    tasks = [asyncio.create_task(_drain(key, streams[key]), name=f"poll-{key}") for key in keys]
    try:
        results = await asyncio.gather(*tasks)
    finally:
        pending = [task for task in tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
    return dict(zip(keys, results, strict=True))
