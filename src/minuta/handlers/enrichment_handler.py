"""LLM enrichment over completed transcripts."""

from pydantic import BaseModel, ValidationError

from minuta.domain import (
    KnowledgeEntry,
    MeetingMinutes,
    PromptTemplates,
    SpeakerIdentification,
    TitleSuggestion,
    Transcript,
    TranscriptBuilder,
    TranscriptStatus,
    extract_json_object,
)
from minuta.exceptions import (
    EnrichmentError,
    InsufficientContentError,
    LLMServiceError,
    MeetingNotFoundError,
    TranscriptNotFoundError,
)
from minuta.infrastructure.interfaces import LLMService, StoreGateway
from minuta.logging import setup_logging

logger = setup_logging()

MIN_TITLE_TEXT_CHARS = 50
MIN_SPEAKER_UTTERANCES = 2


class EnrichmentHandler:
    """
    Produces suggestions from transcripts without changing any stored record.

    Applying a suggestion (renaming a meeting, relabelling a speaker) is a
    separate, explicit operation.
    """

    def __init__(
        self,
        store: StoreGateway,
        llm: LLMService,
        prompts: PromptTemplates,
        transcript_builder: TranscriptBuilder | None = None,
    ):
        self._store = store
        self._llm = llm
        self._prompts = prompts
        self._transcript_builder = transcript_builder or TranscriptBuilder()

    async def generate_title(self, transcript_id: str) -> TitleSuggestion:
        """
        Suggests a meeting title from a transcript.

        Raises:
            TranscriptNotFoundError: If the transcript does not exist.
            InsufficientContentError: If the transcript text is too short.
            EnrichmentError: If the model reply cannot be used.
        """
        transcript = self._get_transcript(transcript_id)
        text = (transcript.text or "").strip()
        if len(text) < MIN_TITLE_TEXT_CHARS:
            raise InsufficientContentError("Transcript too short for title generation")

        return await self._run(
            "title", self._prompts.title(text), TitleSuggestion, transcript_id
        )

    async def identify_speakers(self, transcript_id: str) -> SpeakerIdentification:
        """
        Suggests display names for the diarized speakers of a transcript.

        Raises:
            TranscriptNotFoundError: If the transcript does not exist.
            InsufficientContentError: If there are fewer than two utterances.
            EnrichmentError: If the model reply cannot be used.
        """
        transcript = self._get_transcript(transcript_id)
        if len(transcript.utterances) < MIN_SPEAKER_UTTERANCES:
            raise InsufficientContentError(
                "Not enough utterances for speaker identification"
            )

        return await self._run(
            "speakers",
            self._prompts.speakers(transcript.utterances),
            SpeakerIdentification,
            transcript_id,
        )

    async def generate_minutes(self, meeting_id: str) -> MeetingMinutes:
        meeting = self._store.get_meeting(meeting_id)
        if meeting is None:
            raise MeetingNotFoundError(meeting_id)
        text = self._meeting_text(meeting_id, meeting.transcript_id)

        prompt = self._prompts.minutes(
            text, meeting.participants, meeting.date.isoformat()
        )
        return await self._run("minutes", prompt, MeetingMinutes, meeting_id)

    async def generate_knowledge(self, meeting_id: str) -> KnowledgeEntry:
        meeting = self._store.get_meeting(meeting_id)
        if meeting is None:
            raise MeetingNotFoundError(meeting_id)
        text = self._meeting_text(meeting_id, meeting.transcript_id)

        return await self._run(
            "knowledge", self._prompts.knowledge(text), KnowledgeEntry, meeting_id
        )

    async def _run(self, kind: str, prompt: str, model: type[BaseModel], record_id: str):
        try:
            reply = await self._llm.generate(prompt)
        except LLMServiceError as e:
            raise EnrichmentError(f"{kind} generation failed: {e}", cause=e) from e

        payload = extract_json_object(reply)
        if payload is None:
            logger.warning(
                "LLM reply carried no JSON object",
                extra={"kind": kind, "record_id": record_id},
            )
            raise EnrichmentError(f"Invalid {kind} response format from the model")

        try:
            result = model.model_validate(payload)
        except ValidationError as e:
            raise EnrichmentError(
                f"Invalid {kind} response format from the model", cause=e
            ) from e

        logger.info("Enrichment generated", extra={"kind": kind, "record_id": record_id})
        return result

    def _get_transcript(self, transcript_id: str) -> Transcript:
        transcript = self._store.get_transcript(transcript_id)
        if transcript is None:
            raise TranscriptNotFoundError(transcript_id)
        return transcript

    def _meeting_text(self, meeting_id: str, transcript_id: str | None) -> str:
        """Returns the text of the meeting's transcript, preferring its linked one."""
        transcript = None
        if transcript_id:
            transcript = self._store.get_transcript(transcript_id)
        if transcript is None or transcript.status is not TranscriptStatus.COMPLETED:
            completed = [
                t
                for t in self._store.list_transcripts_by_meeting(meeting_id)
                if t.status is TranscriptStatus.COMPLETED
            ]
            transcript = completed[-1] if completed else None
        if transcript is None:
            raise InsufficientContentError(
                f"Meeting '{meeting_id}' has no completed transcript"
            )

        if transcript.utterances:
            text = self._transcript_builder.format(transcript.utterances)
        else:
            text = transcript.text or ""
        if not text.strip():
            raise InsufficientContentError(f"Meeting '{meeting_id}' transcript is empty")
        return text
