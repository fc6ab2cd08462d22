import asyncio
import itertools

import pytest
from conftest import FakeTranscriptionClient, completed_job, drain, running_job

from minuta.domain import AudioFile, Meeting, Transcript, TranscriptStatus
from minuta.exceptions import (
    AudioFileNotFoundError,
    TranscriptionConfigError,
    TranscriptionInProgressError,
    TranscriptNotCompletedError,
)


def _run(orchestrator, *audio_file_ids):
    async def scenario():
        started = [await orchestrator.start_transcription(i) for i in audio_file_ids]
        await drain(orchestrator)
        return started

    return asyncio.run(scenario())


def _statuses(events, transcript_id):
    observed = [t.status for t in events.transcripts if t.id == transcript_id]
    return [status for status, _ in itertools.groupby(observed)]


def test_transcription_completes_and_creates_meeting(
    store, events, audio_file, make_orchestrator
):
    store.save_transcription_api_key("secret")
    client = FakeTranscriptionClient(jobs=[running_job("queued"), running_job(), completed_job()])

    (queued,) = _run(make_orchestrator(client), audio_file.id)

    assert queued.status is TranscriptStatus.QUEUED
    transcript = store.get_transcript(queued.id)
    assert transcript.status is TranscriptStatus.COMPLETED
    assert transcript.completed_at is not None
    assert transcript.text.startswith("Good morning")
    assert transcript.remote_job_id == "job-1"
    assert client.uploads == [(audio_file.file_path, "secret")]

    (meeting,) = store.list_meetings()
    assert meeting.title == "Meeting from meeting"
    assert meeting.description == "Meeting automatically created from audio file meeting.mp3"
    assert meeting.audio_file_id == audio_file.id
    assert meeting.transcript_id == transcript.id
    assert transcript.meeting_id == meeting.id

    linked_audio = store.get_audio_file(audio_file.id)
    assert linked_audio.meeting_id == meeting.id
    assert linked_audio.transcript_id == transcript.id

    assert _statuses(events, queued.id) == ["queued", "processing", "completed"]
    assert [m.id for m in events.meetings] == [meeting.id]
    assert events.transcripts[-1].meeting_id == meeting.id


def test_utterances_keep_provider_order_and_values(
    store, audio_file, make_orchestrator
):
    store.save_transcription_api_key("secret")
    provider_utterances = [
        {"speaker": "A", "text": "First.", "start": 0, "end": 900},
        {"speaker": "B", "text": "Second.", "start": 950, "end": 2100},
        {"speaker": 2, "text": "Third.", "start": 2200, "end": 4000},
    ]
    client = FakeTranscriptionClient(jobs=[completed_job(provider_utterances)])

    (queued,) = _run(make_orchestrator(client), audio_file.id)

    utterances = store.get_transcript(queued.id).utterances
    assert [(u.speaker, u.text, u.start_ms, u.end_ms) for u in utterances] == [
        ("Speaker A", "First.", 0, 900),
        ("Speaker B", "Second.", 950, 2100),
        ("Speaker 2", "Third.", 2200, 4000),
    ]


def test_missing_api_key_rejects_without_creating_transcript(
    store, audio_file, make_orchestrator
):
    orchestrator = make_orchestrator(FakeTranscriptionClient(jobs=[completed_job()]))

    with pytest.raises(TranscriptionConfigError):
        asyncio.run(orchestrator.start_transcription(audio_file.id))

    assert store.list_transcripts() == []


def test_unknown_audio_file_is_rejected(store, make_orchestrator):
    store.save_transcription_api_key("secret")
    orchestrator = make_orchestrator(FakeTranscriptionClient(jobs=[completed_job()]))

    with pytest.raises(AudioFileNotFoundError):
        asyncio.run(orchestrator.start_transcription("missing"))


def test_second_start_while_in_flight_is_rejected(
    store, audio_file, make_orchestrator
):
    store.save_transcription_api_key("secret")
    orchestrator = make_orchestrator(FakeTranscriptionClient(jobs=[running_job()]))

    async def scenario():
        first = await orchestrator.start_transcription(audio_file.id)
        with pytest.raises(TranscriptionInProgressError) as excinfo:
            await orchestrator.start_transcription(audio_file.id)
        await orchestrator.aclose()
        return first, excinfo.value

    first, error = asyncio.run(scenario())

    assert error.transcript_id == first.id
    transcripts = store.list_transcripts_by_audio_file(audio_file.id)
    assert [t.id for t in transcripts] == [first.id]
    assert transcripts[0].status.in_flight


def test_network_error_on_job_creation_ends_in_error(
    store, events, audio_file, make_orchestrator, network_error
):
    store.save_transcription_api_key("secret")
    client = FakeTranscriptionClient(jobs=[completed_job()], create_error=network_error)

    (queued,) = _run(make_orchestrator(client), audio_file.id)

    transcript = store.get_transcript(queued.id)
    assert transcript.status is TranscriptStatus.ERROR
    assert transcript.completed_at is not None
    assert "connection refused" in transcript.error_message
    assert transcript.utterances == []
    assert store.list_meetings() == []
    assert events.meetings == []
    assert _statuses(events, queued.id) == ["queued", "processing", "error"]


def test_provider_error_then_retry_creates_new_transcript(
    store, audio_file, make_orchestrator
):
    store.save_transcription_api_key("secret")
    provider_error = running_job("error").model_copy(update={"error": "Audio file is empty"})
    failing = FakeTranscriptionClient(jobs=[provider_error])

    (first,) = _run(make_orchestrator(failing), audio_file.id)
    failed = store.get_transcript(first.id)
    assert failed.status is TranscriptStatus.ERROR
    assert failed.error_message == "Audio file is empty"

    (second,) = _run(
        make_orchestrator(FakeTranscriptionClient(jobs=[completed_job()])), audio_file.id
    )

    assert second.id != first.id
    assert store.get_transcript(first.id).status is TranscriptStatus.ERROR
    assert store.get_transcript(second.id).status is TranscriptStatus.COMPLETED
    assert len(store.list_transcripts_by_audio_file(audio_file.id)) == 2


def test_polling_gives_up_after_max_attempts(
    store, audio_file, make_orchestrator, assemblyai_config
):
    store.save_transcription_api_key("secret")
    client = FakeTranscriptionClient(jobs=[running_job()])

    (queued,) = _run(make_orchestrator(client), audio_file.id)

    transcript = store.get_transcript(queued.id)
    assert transcript.status is TranscriptStatus.ERROR
    assert "timed out" in transcript.error_message
    assert len(client.polls) == assemblyai_config.max_poll_attempts


def test_status_request_failure_is_fatal(
    store, audio_file, make_orchestrator, network_error
):
    store.save_transcription_api_key("secret")
    client = FakeTranscriptionClient(jobs=[running_job(), network_error])

    (queued,) = _run(make_orchestrator(client), audio_file.id)

    assert store.get_transcript(queued.id).status is TranscriptStatus.ERROR
    assert len(client.polls) == 2


def test_duplicate_completion_creates_one_meeting(
    store, events, audio_file, make_orchestrator
):
    store.save_transcription_api_key("secret")
    orchestrator = make_orchestrator(FakeTranscriptionClient(jobs=[completed_job()]))
    (queued,) = _run(orchestrator, audio_file.id)

    assert orchestrator.ensure_meeting(queued.id) is None

    fresh = make_orchestrator(FakeTranscriptionClient(jobs=[completed_job()]))
    assert fresh.ensure_meeting(queued.id) is None

    assert len(store.list_meetings()) == 1
    assert len(events.meetings) == 1


def test_repeated_backfill_keeps_single_meeting_and_link(
    store, events, audio_file, make_orchestrator
):
    store.save_transcription_api_key("secret")
    orchestrator = make_orchestrator(FakeTranscriptionClient(jobs=[completed_job()]))
    (queued,) = _run(orchestrator, audio_file.id)

    for _ in range(3):
        assert orchestrator.ensure_meeting(queued.id) is None

    (meeting,) = store.list_meetings()
    assert meeting.transcript_id == queued.id
    assert len(events.meetings) == 1


def test_retry_moves_meeting_to_newest_completed_transcript(
    store, events, audio_file, make_orchestrator
):
    store.save_transcription_api_key("secret")
    orchestrator = make_orchestrator(FakeTranscriptionClient(jobs=[completed_job()]))

    (first,) = _run(orchestrator, audio_file.id)
    (second,) = _run(orchestrator, audio_file.id)

    (meeting,) = store.list_meetings()
    assert second.meeting_id == meeting.id
    assert meeting.transcript_id == second.id

    assert orchestrator.ensure_meeting(first.id) is None
    assert store.get_meeting(meeting.id).transcript_id == second.id
    assert store.get_audio_file(audio_file.id).transcript_id == second.id
    assert len(events.meetings) == 1


def test_backfill_links_existing_meeting_of_audio_file(
    store, events, audio_file, make_orchestrator
):
    store.save_transcription_api_key("secret")
    meeting = store.save_meeting(Meeting(title="Weekly sync"))
    store.save_audio_file(audio_file.model_copy(update={"meeting_id": meeting.id}))

    (queued,) = _run(
        make_orchestrator(FakeTranscriptionClient(jobs=[completed_job()])), audio_file.id
    )

    assert queued.meeting_id == meeting.id
    assert [m.id for m in store.list_meetings()] == [meeting.id]
    assert store.get_transcript(queued.id).meeting_id == meeting.id
    assert events.meetings == []


def test_backfill_reuses_meeting_created_meanwhile(store, audio_file, make_orchestrator):
    transcript = store.save_transcript(
        Transcript(audio_file_id=audio_file.id, status=TranscriptStatus.COMPLETED)
    )
    meeting = store.save_meeting(Meeting(title="Created elsewhere"))
    store.save_audio_file(audio_file.model_copy(update={"meeting_id": meeting.id}))

    orchestrator = make_orchestrator(FakeTranscriptionClient(jobs=[completed_job()]))
    assert orchestrator.ensure_meeting(transcript.id) is None

    assert store.get_transcript(transcript.id).meeting_id == meeting.id
    assert store.get_meeting(meeting.id).transcript_id == transcript.id
    assert len(store.list_meetings()) == 1


def test_stale_meeting_reference_is_not_fatal(store, audio_file, make_orchestrator):
    store.save_transcription_api_key("secret")
    store.save_audio_file(audio_file.model_copy(update={"meeting_id": "deleted-meeting"}))

    (queued,) = _run(
        make_orchestrator(FakeTranscriptionClient(jobs=[completed_job()])), audio_file.id
    )

    assert store.get_transcript(queued.id).status is TranscriptStatus.COMPLETED
    assert store.list_meetings() == []


def test_failure_never_regresses_a_completed_transcript(
    store, audio_file, make_orchestrator
):
    store.save_transcription_api_key("secret")
    orchestrator = make_orchestrator(FakeTranscriptionClient(jobs=[completed_job()]))
    (queued,) = _run(orchestrator, audio_file.id)

    orchestrator._fail(queued.id, "late failure")

    transcript = store.get_transcript(queued.id)
    assert transcript.status is TranscriptStatus.COMPLETED
    assert transcript.error_message is None


def test_resume_pending_recovers_and_fails_interrupted(
    store, events, tmp_path, make_orchestrator
):
    store.save_transcription_api_key("secret")
    polling_file, _ = store.add_audio_file(
        AudioFile(file_name="a.wav", file_path=str(tmp_path / "a.wav"))
    )
    stuck_file, _ = store.add_audio_file(
        AudioFile(file_name="b.wav", file_path=str(tmp_path / "b.wav"))
    )
    polling = store.save_transcript(
        Transcript(
            audio_file_id=polling_file.id,
            status=TranscriptStatus.PROCESSING,
            remote_job_id="job-remote",
        )
    )
    stuck = store.save_transcript(Transcript(audio_file_id=stuck_file.id))
    client = FakeTranscriptionClient(jobs=[completed_job()])
    orchestrator = make_orchestrator(client)

    async def scenario():
        resumed = await orchestrator.resume_pending()
        await drain(orchestrator)
        return resumed

    assert asyncio.run(scenario()) == [polling.id]
    assert client.polls == ["job-remote"]
    assert store.get_transcript(polling.id).status is TranscriptStatus.COMPLETED
    interrupted = store.get_transcript(stuck.id)
    assert interrupted.status is TranscriptStatus.ERROR
    assert "interrupted" in interrupted.error_message


def test_rename_speaker_only_on_completed_transcripts(
    store, audio_file, make_orchestrator
):
    store.save_transcription_api_key("secret")
    orchestrator = make_orchestrator(FakeTranscriptionClient(jobs=[completed_job()]))
    (queued,) = _run(orchestrator, audio_file.id)

    renamed = orchestrator.rename_speaker(queued.id, "Speaker A", "Alice")
    assert [u.speaker for u in renamed.utterances] == ["Alice", "Speaker B", "Alice"]
    assert store.get_transcript(queued.id).utterances[0].speaker == "Alice"

    pending = store.save_transcript(Transcript(audio_file_id=audio_file.id))
    with pytest.raises(TranscriptNotCompletedError):
        orchestrator.rename_speaker(pending.id, "Speaker A", "Alice")
