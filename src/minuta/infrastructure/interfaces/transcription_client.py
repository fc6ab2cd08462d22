"""Abstract interface for the remote speech-to-text provider."""

from abc import ABC, abstractmethod

from minuta.domain.models import RemoteJob


class TranscriptionClient(ABC):
    """Abstract base class for remote transcription backends."""

    @abstractmethod
    async def upload(self, file_path: str, api_key: str) -> str:
        """
        Uploads an audio file to the provider.

        Args:
            file_path: Local path of the audio file.
            api_key: Provider credential.

        Returns:
            A reference usable by ``create_job``.

        Raises:
            RemoteTranscriptionError: If the upload fails.
        """

    @abstractmethod
    async def create_job(self, audio_url: str, api_key: str) -> str:
        """
        Starts a diarized transcription job.

        Args:
            audio_url: Reference returned by ``upload``.
            api_key: Provider credential.

        Returns:
            The provider job id.

        Raises:
            RemoteTranscriptionError: If the job cannot be created.
        """

    @abstractmethod
    async def get_job(self, job_id: str, api_key: str) -> RemoteJob:
        """
        Fetches the current state of a job.

        Args:
            job_id: Provider job id.
            api_key: Provider credential.

        Returns:
            The job snapshot.

        Raises:
            RemoteTranscriptionError: If the status cannot be fetched.
        """
