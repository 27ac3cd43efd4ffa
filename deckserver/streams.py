"""Read request bodies incrementally from worker threads.

File writes and table generation are blocking, so the routes hand them
to the threadpool.  The worker pulls the body chunk by chunk from the
event loop through :func:`anyio.from_thread.run` instead of the route
buffering the whole request first.
"""

from __future__ import annotations

from typing import AsyncIterator, Iterable, Iterator, Optional

import anyio.from_thread
from fastapi import Request

__all__ = ["body_chunks", "split_lines"]


async def _next_chunk(stream: AsyncIterator[bytes]) -> Optional[bytes]:
    try:
        return await stream.__anext__()
    except StopAsyncIteration:
        return None


def body_chunks(request: Request) -> Iterator[bytes]:
    """Yield the request body; must be consumed from a threadpool worker."""

    stream = request.stream()
    while True:
        chunk = anyio.from_thread.run(_next_chunk, stream)
        if chunk is None:
            return
        if chunk:
            yield chunk


def split_lines(chunks: Iterable[bytes]) -> Iterator[bytes]:
    """Regroup byte chunks into lines ending at ``\\n``.

    Only ``\\n`` ends a line; a ``\\r`` elsewhere stays part of the line.
    The last line is yielded even without a trailing newline.
    """

    pending = b""
    for chunk in chunks:
        pending += chunk
        start = 0
        while True:
            end = pending.find(b"\n", start)
            if end < 0:
                break
            yield pending[start:end + 1]
            start = end + 1
        pending = pending[start:]
    if pending:
        yield pending
