"""Abstract interface for publishing domain events."""

from abc import ABC, abstractmethod

from minuta.domain.models import DirectoryFileEvent, Meeting, Transcript


class EventSink(ABC):
    """
    Publish contract used by the orchestrator and the watcher.

    Delivery is at-least-once per state change; subscribers must tolerate
    receiving the same terminal transcript more than once.
    """

    @abstractmethod
    def transcript_updated(self, transcript: Transcript) -> None:
        """Publishes a transcript status change."""

    @abstractmethod
    def meeting_created(self, meeting: Meeting) -> None:
        """Publishes a newly created meeting."""

    @abstractmethod
    def directory_file_event(self, event: DirectoryFileEvent) -> None:
        """Publishes a directory watcher notification."""
