"""Server-sent event stream of pipeline notifications."""

import asyncio
from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from minuta.dependencies import get_events
from minuta.infrastructure import EventBus, EventKind

router = APIRouter(tags=["events"])

EventsDep = Annotated[EventBus, Depends(get_events)]

KEEPALIVE_SECONDS = 15.0


async def stream_events(
    events: EventBus,
    request: Request | None = None,
    keepalive_seconds: float = KEEPALIVE_SECONDS,
) -> AsyncIterator[str]:
    """Yields every published event as an SSE frame until the client disconnects."""
    queue: asyncio.Queue = asyncio.Queue()
    unsubscribes = [
        events.subscribe(kind, lambda payload, kind=kind: queue.put_nowait((kind, payload)))
        for kind in EventKind
    ]
    try:
        while request is None or not await request.is_disconnected():
            try:
                kind, payload = await asyncio.wait_for(queue.get(), keepalive_seconds)
            except asyncio.TimeoutError:
                yield ": keep-alive\n\n"
                continue
            yield f"event: {kind}\ndata: {payload.model_dump_json()}\n\n"
    finally:
        for unsubscribe in unsubscribes:
            unsubscribe()


@router.get("/events")
async def event_stream(request: Request, events: EventsDep):
    return StreamingResponse(
        stream_events(events, request), media_type="text/event-stream"
    )
