import asyncio

import pytest
from conftest import FakeLLM

from minuta.config import PROMPTS_DIR
from minuta.domain import Meeting, PromptTemplates, Transcript, TranscriptStatus, Utterance
from minuta.exceptions import (
    EnrichmentError,
    InsufficientContentError,
    LLMServiceError,
    MeetingNotFoundError,
)
from minuta.handlers import EnrichmentHandler

LONG_TEXT = "We reviewed the quarterly budget and agreed to move the launch to May. " * 3


def _handler(store, llm, max_chars=3000):
    return EnrichmentHandler(store, llm, PromptTemplates(PROMPTS_DIR, max_transcript_chars=max_chars))


def _completed(store, text=LONG_TEXT, utterances=(), meeting_id=""):
    return store.save_transcript(
        Transcript(
            audio_file_id="audio-1",
            meeting_id=meeting_id,
            status=TranscriptStatus.COMPLETED,
            text=text,
            utterances=list(utterances),
        )
    )


def test_generate_title_parses_reply(store):
    transcript = _completed(store)
    llm = FakeLLM('Here you go: {"title": "Q2 budget and launch date", "confidence": 0.92}')

    suggestion = asyncio.run(_handler(store, llm).generate_title(transcript.id))

    assert suggestion.title == "Q2 budget and launch date"
    assert suggestion.confidence == 0.92
    assert "quarterly budget" in llm.prompts[0]
    assert store.get_transcript(transcript.id).text == LONG_TEXT


def test_title_prompt_truncates_long_transcripts(store):
    transcript = _completed(store, text="x" * 5000)
    llm = FakeLLM('{"title": "Long"}')

    suggestion = asyncio.run(_handler(store, llm, max_chars=100).generate_title(transcript.id))

    assert suggestion.confidence == 0.8
    assert "x" * 100 + "..." in llm.prompts[0]
    assert "x" * 101 not in llm.prompts[0]


def test_short_transcript_is_rejected_for_title(store):
    transcript = _completed(store, text="Too short.")

    with pytest.raises(InsufficientContentError):
        asyncio.run(_handler(store, FakeLLM()).generate_title(transcript.id))


def test_identify_speakers_needs_two_utterances(store):
    one = _completed(store, utterances=[Utterance(speaker="Speaker A", text="Hi", start_ms=0, end_ms=1)])

    with pytest.raises(InsufficientContentError):
        asyncio.run(_handler(store, FakeLLM()).identify_speakers(one.id))


def test_identify_speakers_parses_camel_case_reply(store):
    transcript = _completed(
        store,
        utterances=[
            Utterance(speaker="Speaker A", text="I'm Dana, let's begin.", start_ms=0, end_ms=1),
            Utterance(speaker="Speaker B", text="Thanks Dana.", start_ms=2, end_ms=3),
        ],
    )
    llm = FakeLLM(
        '{"speakers": [{"originalName": "Speaker A", "suggestedName": "Dana", '
        '"confidence": 0.9, "reasoning": "Introduces herself"}]}'
    )

    result = asyncio.run(_handler(store, llm).identify_speakers(transcript.id))

    (speaker,) = result.speakers
    assert (speaker.original_name, speaker.suggested_name) == ("Speaker A", "Dana")
    assert "Speaker A, Speaker B" in llm.prompts[0]


def test_generate_minutes_uses_meeting_transcript(store):
    meeting = store.save_meeting(Meeting(title="Launch sync", participants=["Dana", "Eli"]))
    transcript = _completed(
        store,
        meeting_id=meeting.id,
        utterances=[
            Utterance(speaker="Dana", text="Launch moves to May.", start_ms=0, end_ms=1),
            Utterance(speaker="Eli", text="I'll update the plan.", start_ms=2, end_ms=3),
        ],
    )
    store.save_meeting(meeting.model_copy(update={"transcript_id": transcript.id}))
    llm = FakeLLM(
        '{"title": "Launch sync minutes", "meetingSummary": "Launch moved.", '
        '"actionItems": [{"action": "Update plan", "owner": "Eli", "dueDate": null}]}'
    )

    minutes = asyncio.run(_handler(store, llm).generate_minutes(meeting.id))

    assert minutes.meeting_summary == "Launch moved."
    assert minutes.action_items[0].owner == "Eli"
    assert "Dana: Launch moves to May." in llm.prompts[0]
    assert "Dana, Eli" in llm.prompts[0]


def test_generate_knowledge_without_transcript_is_rejected(store):
    meeting = store.save_meeting(Meeting(title="Empty"))

    with pytest.raises(InsufficientContentError):
        asyncio.run(_handler(store, FakeLLM()).generate_knowledge(meeting.id))

    with pytest.raises(MeetingNotFoundError):
        asyncio.run(_handler(store, FakeLLM()).generate_knowledge("missing"))


def test_unusable_replies_raise_enrichment_error(store):
    transcript = _completed(store)

    with pytest.raises(EnrichmentError):
        asyncio.run(_handler(store, FakeLLM("I cannot help with that")).generate_title(transcript.id))

    with pytest.raises(EnrichmentError):
        asyncio.run(_handler(store, FakeLLM('{"confidence": 0.5}')).generate_title(transcript.id))

    failing = FakeLLM(error=LLMServiceError("quota exceeded"))
    with pytest.raises(EnrichmentError) as excinfo:
        asyncio.run(_handler(store, failing).generate_title(transcript.id))
    assert isinstance(excinfo.value.cause, LLMServiceError)
