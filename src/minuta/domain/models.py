"""Domain models for the transcription orchestration core."""

import datetime as dt
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, Field

from minuta.exceptions import InvalidStatusTransitionError


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class TranscriptStatus(StrEnum):
    """Lifecycle of a single transcription attempt."""

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def in_flight(self) -> bool:
        return self in (TranscriptStatus.QUEUED, TranscriptStatus.PROCESSING)

    @property
    def terminal(self) -> bool:
        return self in (TranscriptStatus.COMPLETED, TranscriptStatus.ERROR)


_ALLOWED_TRANSITIONS: dict[TranscriptStatus, frozenset[TranscriptStatus]] = {
    TranscriptStatus.QUEUED: frozenset(
        {TranscriptStatus.PROCESSING, TranscriptStatus.ERROR}
    ),
    TranscriptStatus.PROCESSING: frozenset(
        {TranscriptStatus.COMPLETED, TranscriptStatus.ERROR}
    ),
    TranscriptStatus.COMPLETED: frozenset(),
    TranscriptStatus.ERROR: frozenset(),
}


class AudioFile(BaseModel):
    """A discovered or imported audio asset."""

    id: str = ""
    file_name: str
    file_path: str
    file_size: int = 0
    duration: float | None = None
    meeting_id: str | None = None
    transcript_id: str | None = None
    created_at: dt.datetime = Field(default_factory=utc_now)


class Utterance(BaseModel, frozen=True):
    """A single diarized speaker span, offsets in milliseconds."""

    speaker: str
    text: str
    start_ms: int
    end_ms: int


class Transcript(BaseModel):
    """One transcription attempt for one audio file."""

    id: str = ""
    meeting_id: str = ""
    audio_file_id: str
    status: TranscriptStatus = TranscriptStatus.QUEUED
    text: str | None = None
    utterances: list[Utterance] = Field(default_factory=list)
    created_at: dt.datetime = Field(default_factory=utc_now)
    completed_at: dt.datetime | None = None
    remote_job_id: str | None = None
    error_message: str | None = None

    def advance(self, status: TranscriptStatus) -> "Transcript":
        """
        Returns a copy moved forward to ``status``.

        Args:
            status: The requested next status.

        Returns:
            A new Transcript; terminal statuses stamp ``completed_at``.

        Raises:
            InvalidStatusTransitionError: If the move is not allowed.
        """
        if status not in _ALLOWED_TRANSITIONS[self.status]:
            raise InvalidStatusTransitionError(self.id, self.status, status)
        update: dict = {"status": status}
        if status.terminal:
            update["completed_at"] = utc_now()
        return self.model_copy(update=update)


class Meeting(BaseModel):
    """A unit of organizational record the user browses."""

    id: str = ""
    title: str
    description: str = ""
    date: dt.date = Field(default_factory=lambda: utc_now().date())
    participants: list[str] = Field(default_factory=list)
    created_at: dt.datetime = Field(default_factory=utc_now)
    audio_file_id: str | None = None
    transcript_id: str | None = None


class WatchConfig(BaseModel):
    """Process-wide directory watching state."""

    directories: list[str] = Field(default_factory=list)
    enabled: bool = False

    @property
    def directory(self) -> str | None:
        return self.directories[0] if self.directories else None

    def select(self, directory: str) -> "WatchConfig":
        """Returns a copy with ``directory`` moved to the front."""
        others = [d for d in self.directories if d != directory]
        return self.model_copy(update={"directories": [directory, *others]})


class DirectoryFileEvent(BaseModel, frozen=True):
    """Notification emitted by the directory watcher."""

    type: Literal["add", "error"]
    file: AudioFile | None = None
    error: str | None = None


class RemoteUtterance(BaseModel, frozen=True):
    """Provider diarization entry as returned on the wire."""

    speaker: str | int | None = None
    text: str = ""
    start: int = 0
    end: int = 0


class RemoteJob(BaseModel, frozen=True):
    """Snapshot of a remote transcription job."""

    id: str
    status: str
    text: str | None = None
    utterances: list[RemoteUtterance] | None = None
    error: str | None = None


class TitleSuggestion(BaseModel):
    """LLM-proposed meeting title."""

    title: str
    confidence: float = 0.8


class SpeakerSuggestion(BaseModel):
    """LLM-proposed display name for a diarized speaker label."""

    original_name: str = Field(alias="originalName")
    suggested_name: str = Field(alias="suggestedName")
    confidence: float = 0.5
    reasoning: str = ""

    model_config = {"populate_by_name": True}


class SpeakerIdentification(BaseModel):
    """Set of speaker name suggestions for one transcript."""

    speakers: list[SpeakerSuggestion] = Field(default_factory=list)


class MinutesParticipant(BaseModel):
    name: str
    role: str | None = None


class KeyDiscussion(BaseModel):
    topic: str
    summary: str | None = None
    decisions: list[str] = Field(default_factory=list)


class ActionItem(BaseModel):
    action: str
    owner: str | None = None
    priority: str | None = None
    status: str | None = None
    due_date: str | None = Field(default=None, alias="dueDate")

    model_config = {"populate_by_name": True}


class NextMeeting(BaseModel):
    date: str | None = None
    agenda: list[str] = Field(default_factory=list)


class MeetingMinutes(BaseModel):
    """Structured minutes generated for a meeting."""

    title: str
    date: str | None = None
    meeting_summary: str | None = Field(default=None, alias="meetingSummary")
    participants: list[MinutesParticipant] = Field(default_factory=list)
    agenda: list[str] = Field(default_factory=list)
    key_discussions: list[KeyDiscussion] = Field(
        default_factory=list, alias="keyDiscussions"
    )
    action_items: list[ActionItem] = Field(default_factory=list, alias="actionItems")
    next_meeting: NextMeeting | None = Field(default=None, alias="nextMeeting")

    model_config = {"populate_by_name": True}


class KeyTopic(BaseModel):
    title: str
    description: str | None = None
    importance: str | None = None


class Insight(BaseModel):
    title: str | None = None
    description: str


class ActionableItem(BaseModel):
    action: str
    description: str | None = None
    priority: str | None = None
    category: str | None = None


class KnowledgeEntry(BaseModel):
    """Knowledge-base entry distilled from a meeting transcript."""

    title: str
    category: str | None = None
    summary: str | None = None
    tags: list[str] = Field(default_factory=list)
    key_topics: list[KeyTopic] = Field(default_factory=list, alias="keyTopics")
    insights: list[Insight] = Field(default_factory=list)
    actionable_items: list[ActionableItem] = Field(
        default_factory=list, alias="actionableItems"
    )

    model_config = {"populate_by_name": True}
