"""Custom exceptions for the transcription orchestration core."""


class TranscriptionConfigError(Exception):
    """Raised when the transcription provider credential is not configured."""

    def __init__(self, message: str = "AssemblyAI API key not set"):
        super().__init__(message)


class AudioFileNotFoundError(Exception):
    """Raised when an audio file record or file on disk cannot be found."""

    def __init__(self, audio_file_id: str, cause: Exception | None = None):
        self.audio_file_id = audio_file_id
        self.cause = cause
        super().__init__(f"Audio file not found: '{audio_file_id}'")


class TranscriptNotFoundError(Exception):
    """Raised when a transcript record does not exist."""

    def __init__(self, transcript_id: str):
        self.transcript_id = transcript_id
        super().__init__(f"Transcript not found: '{transcript_id}'")


class MeetingNotFoundError(Exception):
    """Raised when a meeting record does not exist."""

    def __init__(self, meeting_id: str):
        self.meeting_id = meeting_id
        super().__init__(f"Meeting not found: '{meeting_id}'")


class TranscriptionInProgressError(Exception):
    """Raised when a transcription is already queued or processing for an audio file."""

    def __init__(self, audio_file_id: str, transcript_id: str):
        self.audio_file_id = audio_file_id
        self.transcript_id = transcript_id
        super().__init__(
            f"Transcription already in progress for audio file '{audio_file_id}' "
            f"(transcript '{transcript_id}')"
        )


class InvalidStatusTransitionError(Exception):
    """Raised when a transcript status change would move backwards."""

    def __init__(self, transcript_id: str, current: str, requested: str):
        self.transcript_id = transcript_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Transcript '{transcript_id}' cannot move from '{current}' to '{requested}'"
        )


class UnsupportedAudioFileError(Exception):
    """Raised when a file does not carry a supported audio extension."""

    def __init__(self, file_path: str):
        self.file_path = file_path
        super().__init__(f"Unsupported audio file: '{file_path}'")


class WatchDirectoryError(Exception):
    """Raised when a watch directory is missing or cannot be monitored."""

    def __init__(self, directory: str, cause: Exception | None = None):
        self.directory = directory
        self.cause = cause
        super().__init__(f"Directory '{directory}' cannot be watched")


class StoreError(Exception):
    """Raised when reading from or writing to the local store fails."""

    def __init__(self, operation: str, cause: Exception | None = None):
        self.operation = operation
        self.cause = cause
        super().__init__(f"Store operation '{operation}' failed")


class RemoteTranscriptionError(Exception):
    """Base class for failures talking to the speech-to-text provider."""

    def __init__(self, operation: str, message: str, cause: Exception | None = None):
        self.operation = operation
        self.cause = cause
        super().__init__(f"AssemblyAI {operation} failed: {message}")


class RemoteNetworkError(RemoteTranscriptionError):
    """Raised when the provider cannot be reached."""


class RemoteResponseError(RemoteTranscriptionError):
    """Raised when the provider answers with a non-2xx status."""

    def __init__(self, operation: str, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(operation, f"HTTP {status_code} {body[:200]}".rstrip())


class RemotePayloadError(RemoteTranscriptionError):
    """Raised when the provider response cannot be decoded."""


class LLMServiceError(Exception):
    """Raised when LLM service call fails."""

    def __init__(self, message: str, cause: Exception | None = None):
        self.cause = cause
        super().__init__(message)


class EnrichmentError(Exception):
    """Raised when an enrichment request cannot be fulfilled."""

    def __init__(self, message: str, cause: Exception | None = None):
        self.cause = cause
        super().__init__(message)


class TranscriptNotCompletedError(Exception):
    """Raised when an operation needs a completed transcript."""

    def __init__(self, transcript_id: str, status: str):
        self.transcript_id = transcript_id
        self.status = status
        super().__init__(f"Transcript '{transcript_id}' is {status}, not completed")


class InsufficientContentError(EnrichmentError):
    """Raised when a transcript has too little content to enrich."""
