import datetime as dt

import pytest

from minuta.domain import (
    AudioFile,
    Meeting,
    Transcript,
    TranscriptStatus,
    Utterance,
    WatchConfig,
)
from minuta.exceptions import StoreError


def test_save_generates_id_and_reads_back(store):
    saved = store.save_meeting(
        Meeting(title="Planning", participants=["Ann", "Bo"], date=dt.date(2024, 3, 1))
    )

    assert len(saved.id) == 32
    fetched = store.get_meeting(saved.id)
    assert fetched == saved
    assert fetched.created_at.tzinfo is not None


def test_save_is_upsert_and_keeps_insertion_order(store):
    first = store.save_meeting(Meeting(title="First"))
    second = store.save_meeting(Meeting(title="Second"))

    store.save_meeting(first.model_copy(update={"title": "First, renamed"}))

    assert [m.title for m in store.list_meetings()] == ["First, renamed", "Second"]
    assert store.get_meeting(second.id).title == "Second"


def test_add_audio_file_deduplicates_by_path(store, tmp_path):
    path = str(tmp_path / "meeting.mp3")

    first, created = store.add_audio_file(AudioFile(file_name="meeting.mp3", file_path=path))
    again, created_again = store.add_audio_file(
        AudioFile(file_name="meeting.mp3", file_path=path, file_size=99)
    )

    assert created and not created_again
    assert again.id == first.id
    assert len(store.list_audio_files()) == 1
    assert store.get_audio_file_by_path(path).id == first.id


def test_duplicate_path_under_new_id_is_a_store_error(store, tmp_path):
    path = str(tmp_path / "meeting.mp3")
    store.save_audio_file(AudioFile(file_name="meeting.mp3", file_path=path))

    with pytest.raises(StoreError):
        store.save_audio_file(AudioFile(file_name="copy.mp3", file_path=path))


def test_transcript_utterances_round_trip(store):
    utterances = [
        Utterance(speaker="Speaker A", text="Hello.", start_ms=0, end_ms=500),
        Utterance(speaker="Speaker B", text="Hi there.", start_ms=600, end_ms=1400),
    ]
    transcript = store.save_transcript(
        Transcript(
            audio_file_id="audio-1",
            status=TranscriptStatus.COMPLETED,
            text="Hello. Hi there.",
            utterances=utterances,
            completed_at=dt.datetime(2024, 3, 1, 10, 30, tzinfo=dt.timezone.utc),
        )
    )

    fetched = store.get_transcript(transcript.id)
    assert fetched.utterances == utterances
    assert fetched.status is TranscriptStatus.COMPLETED
    assert fetched.completed_at == dt.datetime(2024, 3, 1, 10, 30, tzinfo=dt.timezone.utc)


def test_list_transcripts_by_keys(store):
    a = store.save_transcript(Transcript(audio_file_id="audio-1", meeting_id="m-1"))
    b = store.save_transcript(Transcript(audio_file_id="audio-2", meeting_id="m-1"))
    store.save_transcript(Transcript(audio_file_id="audio-1"))

    assert [t.id for t in store.list_transcripts_by_meeting("m-1")] == [a.id, b.id]
    assert len(store.list_transcripts_by_audio_file("audio-1")) == 2


def test_delete_meeting_clears_back_references(store, tmp_path):
    meeting = store.save_meeting(Meeting(title="Retro"))
    audio_file = store.save_audio_file(
        AudioFile(
            file_name="retro.wav",
            file_path=str(tmp_path / "retro.wav"),
            meeting_id=meeting.id,
        )
    )
    transcript = store.save_transcript(
        Transcript(audio_file_id=audio_file.id, meeting_id=meeting.id)
    )

    store.delete_meeting(meeting.id)
    store.delete_meeting(meeting.id)

    assert store.get_meeting(meeting.id) is None
    assert store.get_audio_file(audio_file.id).meeting_id is None
    assert store.get_transcript(transcript.id).meeting_id == ""


def test_delete_transcript_clears_back_references(store, tmp_path):
    transcript = store.save_transcript(Transcript(audio_file_id="audio-1"))
    audio_file = store.save_audio_file(
        AudioFile(
            file_name="a.wav",
            file_path=str(tmp_path / "a.wav"),
            transcript_id=transcript.id,
        )
    )
    meeting = store.save_meeting(Meeting(title="Sync", transcript_id=transcript.id))

    store.delete_transcript(transcript.id)

    assert store.get_transcript(transcript.id) is None
    assert store.get_audio_file(audio_file.id).transcript_id is None
    assert store.get_meeting(meeting.id).transcript_id is None


def test_watch_config_and_api_key_settings(store):
    assert store.get_watch_config() == WatchConfig()
    assert store.get_transcription_api_key() == ""

    store.save_watch_config(WatchConfig(directories=["/a", "/b"], enabled=True))
    store.save_transcription_api_key("  key-123 ")

    watch_config = store.get_watch_config()
    assert watch_config.directory == "/a"
    assert watch_config.enabled
    assert watch_config.select("/b").directories == ["/b", "/a"]
    assert store.get_transcription_api_key() == "key-123"


def test_aware_timestamps_round_trip_for_every_record(store, tmp_path):
    plus_two = dt.timezone(dt.timedelta(hours=2))
    created = dt.datetime(2024, 5, 6, 9, 30, 15, 250000, tzinfo=plus_two)
    finished = dt.datetime(2024, 5, 6, 10, 0, tzinfo=dt.timezone.utc)

    audio_file, _ = store.add_audio_file(
        AudioFile(
            file_name="a.mp3", file_path=str(tmp_path / "a.mp3"), created_at=created
        )
    )
    transcript = store.save_transcript(
        Transcript(
            audio_file_id=audio_file.id,
            status=TranscriptStatus.COMPLETED,
            created_at=created,
            completed_at=finished,
        )
    )
    meeting = store.save_meeting(Meeting(title="Retro", created_at=created))

    stored_audio = store.get_audio_file(audio_file.id)
    stored_transcript = store.get_transcript(transcript.id)
    stored_meeting = store.get_meeting(meeting.id)

    for value in (
        stored_audio.created_at,
        stored_transcript.created_at,
        stored_meeting.created_at,
    ):
        assert value == created
        assert value.utcoffset() == dt.timedelta(0)
    assert stored_transcript.completed_at == finished


def test_delete_audio_file_clears_meeting_reference(store, tmp_path):
    audio_file, _ = store.add_audio_file(
        AudioFile(file_name="a.mp3", file_path=str(tmp_path / "a.mp3"))
    )
    meeting = store.save_meeting(Meeting(title="Sync", audio_file_id=audio_file.id))

    store.delete_audio_file(audio_file.id)
    store.delete_audio_file(audio_file.id)

    assert store.get_audio_file(audio_file.id) is None
    assert store.get_meeting(meeting.id).audio_file_id is None
    assert store.list_audio_files() == []
