"""Watches a directory for new audio files and records them once they stop growing."""

import asyncio
import os
from collections.abc import Awaitable, Callable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from minuta.config import WatcherConfig
from minuta.domain.models import DirectoryFileEvent
from minuta.exceptions import AudioFileNotFoundError, WatchDirectoryError
from minuta.handlers.audio_import import AudioImporter
from minuta.infrastructure.interfaces import EventSink
from minuta.logging import setup_logging

logger = setup_logging()

OBSERVER_JOIN_TIMEOUT = 5.0


class _AudioEventHandler(FileSystemEventHandler):
    """Forwards watchdog callbacks from the observer thread to the watcher."""

    def __init__(self, watcher: "DirectoryWatcher", generation: int, root: str):
        self._watcher = watcher
        self._generation = generation
        self._root = root

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._watcher._dispatch(self._generation, os.fsdecode(event.src_path))

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._watcher._dispatch(self._generation, os.fsdecode(event.src_path))

    def on_moved(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._watcher._dispatch(self._generation, os.fsdecode(event.dest_path))

    def on_deleted(self, event: FileSystemEvent) -> None:
        if os.fsdecode(event.src_path).rstrip(os.sep) == self._root:
            self._watcher._dispatch_removed(self._generation)


class DirectoryWatcher:
    """
    Turns files appearing under one directory into AudioFile records.

    Filesystem notifications arrive on watchdog's observer thread and are
    handed to the event loop; everything else runs on the loop. A file is
    imported once its size is non-zero and has not changed for the
    configured stability threshold.
    """

    def __init__(
        self,
        importer: AudioImporter,
        events: EventSink,
        config: WatcherConfig,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        observer_factory: Callable[[], Observer] = Observer,
    ):
        self._importer = importer
        self._events = events
        self._config = config
        self._sleep = sleep
        self._observer_factory = observer_factory
        self._extensions = frozenset(e.lower() for e in config.extensions)
        self._loop: asyncio.AbstractEventLoop | None = None
        self._observer = None
        self._directory: Path | None = None
        self._generation = 0
        self._settling: dict[str, asyncio.Task] = {}
        self._joins: set[asyncio.Future] = set()

    @property
    def directory(self) -> Path | None:
        return self._directory

    def is_active(self) -> bool:
        return self._observer is not None

    def start_watching(self, path: str | Path) -> bool:
        """
        Starts watching ``path``, replacing any previous watch.

        Must be called from a running event loop. Files already present are
        recorded immediately without an ``add`` notification.

        Args:
            path: Directory to watch.

        Returns:
            False if ``path`` is not an existing directory, True otherwise.

        Raises:
            WatchDirectoryError: If the observer cannot be started.
        """
        directory = Path(path).expanduser()
        if not directory.is_dir():
            logger.warning("Watch directory does not exist", extra={"directory": str(path)})
            return False

        self.stop_watching()
        self._loop = asyncio.get_running_loop()
        directory = directory.resolve()
        generation = self._generation

        observer = self._observer_factory()
        observer.schedule(
            _AudioEventHandler(self, generation, str(directory)),
            str(directory),
            recursive=self._config.recursive,
        )
        try:
            observer.start()
        except OSError as e:
            logger.exception("Failed to start watching", extra={"directory": str(directory)})
            raise WatchDirectoryError(str(directory), cause=e) from e

        self._observer = observer
        self._directory = directory
        logger.info("Watching directory", extra={"directory": str(directory)})

        self._scan_existing(directory)
        return True

    def stop_watching(self) -> None:
        """
        Stops the observer and abandons files still settling. Safe when idle.

        On a running loop the observer thread is joined in the default
        executor and ``aclose`` waits for it.
        """
        self._generation += 1
        for task in self._settling.values():
            task.cancel()
        self._settling.clear()

        observer, self._observer = self._observer, None
        directory, self._directory = self._directory, None
        if observer is not None:
            observer.stop()
            self._join(observer)
            logger.info("Stopped watching directory", extra={"directory": str(directory)})

    async def aclose(self) -> None:
        tasks = list(self._settling.values())
        self.stop_watching()
        pending = tasks + list(self._joins)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def _join(self, observer) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            observer.join(OBSERVER_JOIN_TIMEOUT)
            return
        future = loop.run_in_executor(None, observer.join, OBSERVER_JOIN_TIMEOUT)
        self._joins.add(future)
        future.add_done_callback(self._joins.discard)

    async def wait_until_stable(self, path: str | Path) -> bool:
        """
        Waits until the file at ``path`` has stopped growing.

        Args:
            path: File to sample.

        Returns:
            True once the size is non-zero and unchanged for the stability
            threshold; False if the file vanished or the settle timeout passed.
        """
        interval = self._config.poll_interval_seconds
        last_size = None
        stable_for = 0.0
        elapsed = 0.0

        while True:
            try:
                size = os.stat(path).st_size
            except FileNotFoundError:
                logger.info("File vanished while settling", extra={"file_path": str(path)})
                return False

            if size > 0 and size == last_size:
                stable_for += interval
                if stable_for >= self._config.stability_threshold_seconds:
                    return True
            else:
                stable_for = 0.0
            last_size = size

            if elapsed >= self._config.settle_timeout_seconds:
                logger.warning(
                    "File did not settle in time",
                    extra={"file_path": str(path), "file_size": size},
                )
                return False

            await self._sleep(interval)
            elapsed += interval

    def _accepts(self, path: str | Path) -> bool:
        path = Path(path)
        if path.suffix.lower() not in self._extensions:
            return False
        try:
            parts = path.relative_to(self._directory).parts
        except (TypeError, ValueError):
            parts = (path.name,)
        return not any(part.startswith(".") for part in parts)

    def _scan_existing(self, directory: Path) -> None:
        candidates = directory.rglob("*") if self._config.recursive else directory.glob("*")
        recorded = 0
        for path in sorted(candidates):
            if not path.is_file() or not self._accepts(path):
                continue
            try:
                _, created = self._importer.import_file(path)
            except Exception as e:
                self._report_error(str(path), e)
                continue
            recorded += created

        logger.info(
            "Initial scan finished",
            extra={"directory": str(directory), "recorded": recorded},
        )

    def _dispatch(self, generation: int, path: str) -> None:
        """Called on the observer thread."""
        self._call_on_loop(self._on_file_event, generation, path)

    def _dispatch_removed(self, generation: int) -> None:
        """Called on the observer thread."""
        self._call_on_loop(self._on_directory_removed, generation)

    def _call_on_loop(self, callback, *args) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        try:
            loop.call_soon_threadsafe(callback, *args)
        except RuntimeError:
            logger.debug("Event loop closed, dropping watcher callback")

    def _on_file_event(self, generation: int, path: str) -> None:
        if generation != self._generation or not self._accepts(path):
            return
        if path in self._settling:
            return

        task = asyncio.get_running_loop().create_task(
            self._settle_and_import(generation, path)
        )
        self._settling[path] = task
        task.add_done_callback(lambda t: self._forget(path, t))

    def _on_directory_removed(self, generation: int) -> None:
        if generation != self._generation:
            return
        directory = str(self._directory)
        logger.error("Watched directory was removed", extra={"directory": directory})
        self._events.directory_file_event(
            DirectoryFileEvent(type="error", error=f"Watched directory was removed: {directory}")
        )
        self.stop_watching()

    async def _settle_and_import(self, generation: int, path: str) -> None:
        try:
            if not await self.wait_until_stable(path):
                return
            if generation != self._generation:
                return
            audio_file, created = self._importer.import_file(path)
        except AudioFileNotFoundError:
            logger.info("File vanished before import", extra={"file_path": path})
            return
        except Exception as e:
            self._report_error(path, e)
            return

        if created:
            self._events.directory_file_event(
                DirectoryFileEvent(type="add", file=audio_file)
            )

    def _report_error(self, path: str, error: Exception) -> None:
        logger.error(
            "Failed to record audio file",
            exc_info=error,
            extra={"file_path": path},
        )
        self._events.directory_file_event(
            DirectoryFileEvent(type="error", error=f"{path}: {error}")
        )

    def _forget(self, path: str, task: asyncio.Task) -> None:
        if self._settling.get(path) is task:
            del self._settling[path]
