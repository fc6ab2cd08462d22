"""In-process publish/subscribe implementation of the EventSink interface."""

import asyncio
import inspect
from collections.abc import Callable
from enum import StrEnum
from typing import Any

from minuta.domain.models import DirectoryFileEvent, Meeting, Transcript
from minuta.logging import setup_logging

from .interfaces import EventSink

logger = setup_logging()


class EventKind(StrEnum):
    TRANSCRIPT_UPDATED = "transcript:statusChanged"
    MEETING_CREATED = "meeting:created"
    DIRECTORY_FILE_EVENT = "directory:filesChanged"


class EventBus(EventSink):
    """
    Fans domain events out to registered callbacks.

    Each subscriber receives its own deep copy of the payload. Callbacks may
    be plain functions or coroutine functions; coroutines are scheduled on
    the running loop. A failing subscriber is logged and never affects the
    publisher or the other subscribers.
    """

    def __init__(self):
        self._subscribers: dict[EventKind, list[Callable[[Any], Any]]] = {
            kind: [] for kind in EventKind
        }
        self._tasks: set[asyncio.Task] = set()

    def subscribe(
        self, kind: EventKind | str, callback: Callable[[Any], Any]
    ) -> Callable[[], None]:
        """
        Registers ``callback`` for events of ``kind``.

        Args:
            kind: One of the EventKind values.
            callback: Called with the event payload.

        Returns:
            A function that removes the subscription; calling it twice is a no-op.
        """
        callbacks = self._subscribers[EventKind(kind)]
        callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def transcript_updated(self, transcript: Transcript) -> None:
        self._publish(EventKind.TRANSCRIPT_UPDATED, transcript)

    def meeting_created(self, meeting: Meeting) -> None:
        self._publish(EventKind.MEETING_CREATED, meeting)

    def directory_file_event(self, event: DirectoryFileEvent) -> None:
        self._publish(EventKind.DIRECTORY_FILE_EVENT, event)

    def _publish(self, kind: EventKind, payload) -> None:
        for callback in list(self._subscribers[kind]):
            try:
                result = callback(payload.model_copy(deep=True))
                if inspect.isawaitable(result):
                    self._schedule(kind, result)
            except Exception:
                logger.exception("Event subscriber failed", extra={"event": str(kind)})

    def _schedule(self, kind: EventKind, awaitable) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(
                "Async subscriber dropped outside a running loop",
                extra={"event": str(kind)},
            )
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return

        task = loop.create_task(awaitable)
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._on_task_done(kind, t))

    def _on_task_done(self, kind: EventKind, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        if task.exception() is not None:
            logger.error(
                "Event subscriber failed",
                exc_info=task.exception(),
                extra={"event": str(kind)},
            )
