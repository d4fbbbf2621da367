"""
Overlay HTTP endpoints.

GET /overlay/state   current countdown snapshot as JSON
GET /overlay/stream  Server-Sent Events: the current snapshot, then one
                     event per broadcast

The overlay page itself is hosted elsewhere; it only needs these two URLs.
"""

import asyncio
import json
import logging
from typing import AsyncIterator, Awaitable, Callable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import StreamingResponse

from ..plugins.countdown import CountdownSnapshot, OverlayPublisher

logger = logging.getLogger(__name__)


SnapshotSource = Callable[[], CountdownSnapshot]


def format_sse(snapshot: CountdownSnapshot) -> str:
    """Encode a snapshot as one SSE ``data:`` event."""
    return f"data: {json.dumps(snapshot.to_dict())}\n\n"


async def snapshot_events(
    publisher: OverlayPublisher,
    snapshot_source: SnapshotSource,
    is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
    keepalive: float = 15.0,
) -> AsyncIterator[str]:
    """
    Yield SSE events for one overlay client.

    The first event is the current snapshot, so the overlay can render
    before anything changes. Comment lines are sent every ``keepalive``
    seconds of silence; that is also when a vanished client is noticed.
    The subscription is removed when the generator is closed.

    Args:
        publisher: Broadcast hub to subscribe to
        snapshot_source: Returns the current snapshot
        is_disconnected: Async check for a gone client (Request.is_disconnected)
        keepalive: Seconds between keep-alive comments
    """
    queue: asyncio.Queue = asyncio.Queue()
    unsubscribe = publisher.subscribe(queue.put_nowait)
    try:
        yield format_sse(snapshot_source())
        while True:
            try:
                snapshot = await asyncio.wait_for(queue.get(), timeout=keepalive)
            except asyncio.TimeoutError:
                if is_disconnected is not None and await is_disconnected():
                    break
                yield ": keepalive\n\n"
                continue
            yield format_sse(snapshot)
    finally:
        unsubscribe()
        logger.debug("Overlay client unsubscribed")


def create_overlay_app(
    publisher: OverlayPublisher,
    snapshot_source: SnapshotSource,
    keepalive: float = 15.0,
) -> FastAPI:
    """
    Build the overlay web application.

    Args:
        publisher: Broadcast hub the stream subscribes to
        snapshot_source: Returns the current snapshot (CountdownEngine.get_snapshot)
        keepalive: Seconds between SSE keep-alive comments

    Returns:
        FastAPI application
    """
    app = FastAPI(title="Countdown overlay")

    @app.get("/overlay/state")
    async def overlay_state():
        return snapshot_source().to_dict()

    @app.get("/overlay/stream")
    async def overlay_stream(request: Request):
        logger.debug(f"Overlay client connected: {request.client}")
        return StreamingResponse(
            snapshot_events(
                publisher,
                snapshot_source,
                is_disconnected=request.is_disconnected,
                keepalive=keepalive,
            ),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
            },
        )

    return app
