"""Abstract interface for the local document store."""

from abc import ABC, abstractmethod

from minuta.domain.models import AudioFile, Meeting, Transcript, WatchConfig


class StoreGateway(ABC):
    """
    Typed CRUD contract over the local store.

    Every save is an upsert keyed by id; an empty id is replaced by a freshly
    generated one. List operations return records in insertion order.
    """

    @abstractmethod
    def get_audio_file(self, audio_file_id: str) -> AudioFile | None:
        """Returns the audio file with ``audio_file_id`` or None."""

    @abstractmethod
    def get_audio_file_by_path(self, file_path: str) -> AudioFile | None:
        """Returns the audio file recorded for ``file_path`` or None."""

    @abstractmethod
    def list_audio_files(self) -> list[AudioFile]:
        """Returns every audio file."""

    @abstractmethod
    def list_audio_files_by_meeting(self, meeting_id: str) -> list[AudioFile]:
        """Returns the audio files linked to ``meeting_id``."""

    @abstractmethod
    def save_audio_file(self, audio_file: AudioFile) -> AudioFile:
        """
        Inserts or replaces an audio file.

        Args:
            audio_file: The record to persist.

        Returns:
            The persisted record, with its id populated.

        Raises:
            StoreError: If the write fails, including a duplicate file path
                under a different id.
        """

    @abstractmethod
    def add_audio_file(self, audio_file: AudioFile) -> tuple[AudioFile, bool]:
        """
        Inserts an audio file unless one already exists for its path.

        Args:
            audio_file: The candidate record.

        Returns:
            Tuple of (record, created). When the path is already known the
            existing record is returned with ``created`` False.

        Raises:
            StoreError: If the write fails.
        """

    @abstractmethod
    def delete_audio_file(self, audio_file_id: str) -> None:
        """Removes an audio file and clears meeting references to it."""

    @abstractmethod
    def get_transcript(self, transcript_id: str) -> Transcript | None:
        """Returns the transcript with ``transcript_id`` or None."""

    @abstractmethod
    def list_transcripts(self) -> list[Transcript]:
        """Returns every transcript."""

    @abstractmethod
    def list_transcripts_by_audio_file(self, audio_file_id: str) -> list[Transcript]:
        """Returns the transcripts created for ``audio_file_id``."""

    @abstractmethod
    def list_transcripts_by_meeting(self, meeting_id: str) -> list[Transcript]:
        """Returns the transcripts linked to ``meeting_id``."""

    @abstractmethod
    def save_transcript(self, transcript: Transcript) -> Transcript:
        """Inserts or replaces a transcript and returns it."""

    @abstractmethod
    def delete_transcript(self, transcript_id: str) -> None:
        """Removes a transcript and clears references to it."""

    @abstractmethod
    def get_meeting(self, meeting_id: str) -> Meeting | None:
        """Returns the meeting with ``meeting_id`` or None."""

    @abstractmethod
    def list_meetings(self) -> list[Meeting]:
        """Returns every meeting."""

    @abstractmethod
    def save_meeting(self, meeting: Meeting) -> Meeting:
        """Inserts or replaces a meeting and returns it."""

    @abstractmethod
    def delete_meeting(self, meeting_id: str) -> None:
        """Removes a meeting and clears references to it."""

    @abstractmethod
    def get_watch_config(self) -> WatchConfig:
        """Returns the persisted watch configuration."""

    @abstractmethod
    def save_watch_config(self, watch_config: WatchConfig) -> WatchConfig:
        """Persists the watch configuration."""

    @abstractmethod
    def get_transcription_api_key(self) -> str:
        """Returns the provider credential, empty when unset."""

    @abstractmethod
    def save_transcription_api_key(self, api_key: str) -> None:
        """Persists the provider credential."""
