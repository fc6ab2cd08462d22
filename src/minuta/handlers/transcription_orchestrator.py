"""State machine driving one audio file through remote transcription."""

import asyncio
from collections.abc import Awaitable, Callable, Coroutine

from minuta.config import AssemblyAIConfig
from minuta.domain import RemoteJob, Transcript, TranscriptBuilder, TranscriptStatus
from minuta.domain.models import Meeting
from minuta.exceptions import (
    AudioFileNotFoundError,
    TranscriptionConfigError,
    TranscriptionInProgressError,
    TranscriptNotCompletedError,
    TranscriptNotFoundError,
)
from minuta.infrastructure.interfaces import EventSink, StoreGateway, TranscriptionClient
from minuta.logging import setup_logging

logger = setup_logging()

INTERRUPTED_MESSAGE = "Transcription interrupted before the remote job was created"


class TranscriptionOrchestrator:
    """
    Owns the transcript lifecycle: queued, processing, then completed or error.

    Each accepted request runs as a background task on the event loop. Every
    state change is persisted before it is published, and a transcript that
    reached a terminal state is never written back to an earlier one.
    """

    def __init__(
        self,
        store: StoreGateway,
        client: TranscriptionClient,
        events: EventSink,
        config: AssemblyAIConfig,
        transcript_builder: TranscriptBuilder | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._store = store
        self._client = client
        self._events = events
        self._config = config
        self._transcript_builder = transcript_builder or TranscriptBuilder()
        self._sleep = sleep
        self._tasks: set[asyncio.Task] = set()

    async def start_transcription(self, audio_file_id: str) -> Transcript:
        """
        Queues a transcription of an audio file and starts it in the background.

        Args:
            audio_file_id: Id of a recorded audio file.

        Returns:
            The queued Transcript.

        Raises:
            TranscriptionConfigError: If no provider credential is stored.
            AudioFileNotFoundError: If the audio file id does not resolve.
            TranscriptionInProgressError: If a transcript for the file is in flight.
        """
        if not self._store.get_transcription_api_key():
            raise TranscriptionConfigError()

        audio_file = self._store.get_audio_file(audio_file_id)
        if audio_file is None:
            raise AudioFileNotFoundError(audio_file_id)

        # No await between this check and the insert below.
        for existing in self._store.list_transcripts_by_audio_file(audio_file_id):
            if existing.status.in_flight:
                raise TranscriptionInProgressError(audio_file_id, existing.id)

        transcript = self._store.save_transcript(
            Transcript(
                audio_file_id=audio_file.id,
                meeting_id=audio_file.meeting_id or "",
            )
        )
        logger.info(
            "Transcription queued",
            extra={"transcript_id": transcript.id, "audio_file_id": audio_file.id},
        )
        self._events.transcript_updated(transcript)

        self._spawn(
            self._process_transcription(audio_file.file_path, transcript.id),
            transcript.id,
        )
        return transcript

    async def resume_pending(self) -> list[str]:
        """
        Picks up transcripts left in flight by a previous run.

        Transcripts with a remote job id resume polling; the rest cannot be
        recovered and are failed.

        Returns:
            Ids of the transcripts whose polling was resumed.
        """
        resumed = []
        for transcript in self._store.list_transcripts():
            if not transcript.status.in_flight:
                continue
            if not transcript.remote_job_id:
                self._fail(transcript.id, INTERRUPTED_MESSAGE)
                continue
            if transcript.status is TranscriptStatus.QUEUED:
                transcript = self._store.save_transcript(
                    transcript.advance(TranscriptStatus.PROCESSING)
                )
                self._events.transcript_updated(transcript)
            self._spawn(
                self._resume_polling(transcript.remote_job_id, transcript.id),
                transcript.id,
            )
            resumed.append(transcript.id)

        if resumed:
            logger.info("Resumed pending transcriptions", extra={"count": len(resumed)})
        return resumed

    def ensure_meeting(self, transcript_id: str) -> Meeting | None:
        """
        Links a transcript to a meeting, creating one when none exists.

        Safe to call any number of times for the same transcript; at most one
        meeting is ever created for it. The stored link is the guard: once the
        transcript names a meeting, later calls only refresh the meeting's
        pointer to its most recently completed transcript.

        Args:
            transcript_id: Id of the transcript to back-fill.

        Returns:
            The newly created Meeting, or None when no meeting was created.
        """
        transcript = self._store.get_transcript(transcript_id)
        if transcript is None:
            logger.warning(
                "Meeting back-fill skipped, transcript missing",
                extra={"transcript_id": transcript_id},
            )
            return None
        if transcript.meeting_id:
            meeting = self._store.get_meeting(transcript.meeting_id)
            if meeting is not None:
                self._point_meeting_at(meeting, transcript)
            return None

        audio_file = self._store.get_audio_file(transcript.audio_file_id)
        if audio_file is None:
            logger.warning(
                "Meeting back-fill skipped, audio file missing",
                extra={
                    "transcript_id": transcript_id,
                    "audio_file_id": transcript.audio_file_id,
                },
            )
            return None

        if audio_file.meeting_id:
            meeting = self._store.get_meeting(audio_file.meeting_id)
            if meeting is None:
                logger.warning(
                    "Audio file references a missing meeting",
                    extra={
                        "audio_file_id": audio_file.id,
                        "meeting_id": audio_file.meeting_id,
                    },
                )
                return None
            linked = self._store.save_transcript(
                transcript.model_copy(update={"meeting_id": meeting.id})
            )
            self._point_meeting_at(meeting, linked)
            logger.info(
                "Transcript linked to existing meeting",
                extra={"transcript_id": transcript.id, "meeting_id": meeting.id},
            )
            self._events.transcript_updated(linked)
            return None

        meeting = self._store.save_meeting(
            self._transcript_builder.build_meeting(audio_file, transcript)
        )
        linked = self._store.save_transcript(
            transcript.model_copy(update={"meeting_id": meeting.id})
        )
        self._store.save_audio_file(
            audio_file.model_copy(
                update={"meeting_id": meeting.id, "transcript_id": transcript.id}
            )
        )
        logger.info(
            "Meeting created from transcript",
            extra={"transcript_id": transcript.id, "meeting_id": meeting.id},
        )
        self._events.meeting_created(meeting)
        self._events.transcript_updated(linked)
        return meeting

    def rename_speaker(
        self, transcript_id: str, old_label: str, new_label: str
    ) -> Transcript:
        """
        Replaces a speaker label across a completed transcript.

        Raises:
            TranscriptNotFoundError: If the transcript does not exist.
            TranscriptNotCompletedError: If the transcript is not completed.
            ValueError: If the new label is blank.
        """
        new_label = new_label.strip()
        if not new_label:
            raise ValueError("Speaker name must not be empty")

        transcript = self._store.get_transcript(transcript_id)
        if transcript is None:
            raise TranscriptNotFoundError(transcript_id)
        if transcript.status is not TranscriptStatus.COMPLETED:
            raise TranscriptNotCompletedError(transcript_id, transcript.status)

        renamed = self._store.save_transcript(
            transcript.model_copy(
                update={
                    "utterances": self._transcript_builder.rename_speaker(
                        transcript.utterances, old_label, new_label
                    )
                }
            )
        )
        self._events.transcript_updated(renamed)
        return renamed

    def active_tasks(self) -> set[asyncio.Task]:
        return set(self._tasks)

    async def aclose(self) -> None:
        """Cancels background work and waits for it to unwind."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Background transcriptions cancelled", extra={"count": len(tasks)})

    async def _process_transcription(self, file_path: str, transcript_id: str) -> None:
        try:
            transcript = self._require_transcript(transcript_id)
            transcript = self._store.save_transcript(
                transcript.advance(TranscriptStatus.PROCESSING)
            )
            self._events.transcript_updated(transcript)

            api_key = self._api_key()
            upload_url = await self._client.upload(file_path, api_key)
            remote_job_id = await self._client.create_job(upload_url, api_key)

            transcript = self._require_transcript(transcript_id)
            self._store.save_transcript(
                transcript.model_copy(update={"remote_job_id": remote_job_id})
            )
            logger.info(
                "Remote transcription started",
                extra={"transcript_id": transcript_id, "remote_job_id": remote_job_id},
            )

            await self._poll_status(remote_job_id, transcript_id)
        except Exception as e:
            logger.exception(
                "Transcription failed",
                extra={"transcript_id": transcript_id, "file_path": file_path},
            )
            self._fail(transcript_id, str(e) or type(e).__name__)

    async def _resume_polling(self, remote_job_id: str, transcript_id: str) -> None:
        try:
            await self._poll_status(remote_job_id, transcript_id)
        except Exception as e:
            logger.exception(
                "Resumed transcription failed",
                extra={"transcript_id": transcript_id, "remote_job_id": remote_job_id},
            )
            self._fail(transcript_id, str(e) or type(e).__name__)

    async def _poll_status(self, remote_job_id: str, transcript_id: str) -> None:
        """
        Polls the remote job until it is terminal or the attempt budget runs out.

        Raises:
            RemoteTranscriptionError: If a status request fails.
        """
        for attempt in range(1, self._config.max_poll_attempts + 1):
            await self._sleep(self._config.poll_interval_seconds)
            job = await self._client.get_job(remote_job_id, self._api_key())

            if job.status == "completed":
                self._complete(transcript_id, job)
                return
            if job.status == "error":
                self._fail(transcript_id, job.error or "Transcription failed")
                return

            if attempt % 20 == 0:
                logger.info(
                    "Remote transcription still running",
                    extra={
                        "transcript_id": transcript_id,
                        "remote_job_id": remote_job_id,
                        "status": job.status,
                        "attempt": attempt,
                    },
                )

        self._fail(
            transcript_id,
            f"Transcription timed out after {self._config.max_poll_attempts} status checks",
        )

    def _complete(self, transcript_id: str, job: RemoteJob) -> None:
        transcript = self._store.get_transcript(transcript_id)
        if transcript is None or transcript.status.terminal:
            logger.warning(
                "Completion ignored",
                extra={"transcript_id": transcript_id, "remote_job_id": job.id},
            )
            return

        completed = self._store.save_transcript(
            transcript.advance(TranscriptStatus.COMPLETED).model_copy(
                update={
                    "text": job.text or "",
                    "utterances": self._transcript_builder.build_utterances(job),
                    "error_message": None,
                }
            )
        )
        logger.info(
            "Transcription completed",
            extra={
                "transcript_id": transcript_id,
                "utterance_count": len(completed.utterances),
            },
        )
        self._events.transcript_updated(completed)

        audio_file = self._store.get_audio_file(completed.audio_file_id)
        if audio_file is not None:
            self._store.save_audio_file(
                audio_file.model_copy(update={"transcript_id": completed.id})
            )

        self.ensure_meeting(completed.id)

    def _point_meeting_at(self, meeting: Meeting, transcript: Transcript) -> None:
        """Links ``meeting`` to ``transcript`` unless it already holds a later completion."""
        if meeting.transcript_id == transcript.id:
            return
        if meeting.transcript_id:
            current = self._store.get_transcript(meeting.transcript_id)
            if current is not None and _completed_later(current, transcript):
                return

        self._store.save_meeting(
            meeting.model_copy(update={"transcript_id": transcript.id})
        )
        logger.info(
            "Meeting transcript link updated",
            extra={
                "meeting_id": meeting.id,
                "transcript_id": transcript.id,
                "previous_transcript_id": meeting.transcript_id,
            },
        )

    def _fail(self, transcript_id: str, reason: str) -> None:
        transcript = self._store.get_transcript(transcript_id)
        if transcript is None:
            return
        if transcript.status.terminal:
            logger.info(
                "Failure ignored for terminal transcript",
                extra={"transcript_id": transcript_id, "status": transcript.status},
            )
            return

        failed = self._store.save_transcript(
            transcript.advance(TranscriptStatus.ERROR).model_copy(
                update={"error_message": reason}
            )
        )
        logger.warning(
            "Transcription marked as failed",
            extra={"transcript_id": transcript_id, "reason": reason},
        )
        self._events.transcript_updated(failed)

    def _require_transcript(self, transcript_id: str) -> Transcript:
        transcript = self._store.get_transcript(transcript_id)
        if transcript is None:
            raise TranscriptNotFoundError(transcript_id)
        return transcript

    def _api_key(self) -> str:
        api_key = self._store.get_transcription_api_key()
        if not api_key:
            raise TranscriptionConfigError()
        return api_key

    def _spawn(self, coro: Coroutine, transcript_id: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=f"transcription-{transcript_id}")
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                "Background transcription task crashed",
                exc_info=task.exception(),
                extra={"task": task.get_name()},
            )


def _completed_later(current: Transcript, candidate: Transcript) -> bool:
    """True when ``current`` is completed and finished no earlier than ``candidate``."""
    if current.status is not TranscriptStatus.COMPLETED:
        return False
    if candidate.status is not TranscriptStatus.COMPLETED:
        return True
    return (current.completed_at or current.created_at) >= (
        candidate.completed_at or candidate.created_at
    )
