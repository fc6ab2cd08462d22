"""Repository implementing the store gateway over SQLModel."""

import datetime as dt
import threading
import uuid
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from minuta.domain.models import (
    AudioFile,
    Meeting,
    Transcript,
    TranscriptStatus,
    Utterance,
    WatchConfig,
)
from minuta.exceptions import StoreError
from minuta.infrastructure.db_models import (
    AudioFileRow,
    MeetingRow,
    SettingRow,
    TranscriptRow,
)
from minuta.infrastructure.interfaces import StoreGateway
from minuta.logging import setup_logging

logger = setup_logging()

WATCH_CONFIG_KEY = "watch_config"
TRANSCRIPTION_API_KEY = "assemblyai_api_key"


class StoreRepository(StoreGateway):
    """
    Handles persistence of audio files, transcripts, meetings and settings.

    Encapsulates SQL queries and back-reference maintenance, keeping the
    orchestration layer free of database concerns. Every public method runs
    in its own session under a process-wide lock so check-then-write
    sequences are atomic for callers on any thread.
    """

    def __init__(self, session_factory):
        """
        Initializes the repository.

        Args:
            session_factory: Callable that returns a SQLModel Session context manager.
        """
        self._session_factory = session_factory
        self._lock = threading.RLock()

    @contextmanager
    def _session(self, operation: str):
        with self._lock:
            try:
                with self._session_factory() as db_session:
                    yield db_session
            except SQLAlchemyError as e:
                logger.exception("Store operation failed", extra={"operation": operation})
                raise StoreError(operation, cause=e) from e

    # Audio files

    def get_audio_file(self, audio_file_id: str) -> AudioFile | None:
        with self._session("get_audio_file") as db_session:
            row = self._audio_row(db_session, audio_file_id)
            return _to_audio_file(row) if row else None

    def get_audio_file_by_path(self, file_path: str) -> AudioFile | None:
        with self._session("get_audio_file_by_path") as db_session:
            statement = select(AudioFileRow).where(AudioFileRow.file_path == file_path)
            row = db_session.exec(statement).first()
            return _to_audio_file(row) if row else None

    def list_audio_files(self) -> list[AudioFile]:
        with self._session("list_audio_files") as db_session:
            statement = select(AudioFileRow).order_by(AudioFileRow.seq)
            return [_to_audio_file(row) for row in db_session.exec(statement)]

    def list_audio_files_by_meeting(self, meeting_id: str) -> list[AudioFile]:
        with self._session("list_audio_files_by_meeting") as db_session:
            statement = (
                select(AudioFileRow)
                .where(AudioFileRow.meeting_id == meeting_id)
                .order_by(AudioFileRow.seq)
            )
            return [_to_audio_file(row) for row in db_session.exec(statement)]

    def save_audio_file(self, audio_file: AudioFile) -> AudioFile:
        audio_file = _with_id(audio_file)
        with self._session("save_audio_file") as db_session:
            row = self._audio_row(db_session, audio_file.id)
            values = _audio_values(audio_file)
            if row is None:
                row = AudioFileRow(**values)
            else:
                _assign(row, values)
            db_session.add(row)
            db_session.commit()
        return audio_file

    def add_audio_file(self, audio_file: AudioFile) -> tuple[AudioFile, bool]:
        with self._session("add_audio_file") as db_session:
            statement = select(AudioFileRow).where(
                AudioFileRow.file_path == audio_file.file_path
            )
            existing = db_session.exec(statement).first()
            if existing:
                return _to_audio_file(existing), False

            audio_file = _with_id(audio_file)
            db_session.add(AudioFileRow(**_audio_values(audio_file)))
            db_session.commit()

        logger.info(
            "Audio file recorded",
            extra={"audio_file_id": audio_file.id, "file_path": audio_file.file_path},
        )
        return audio_file, True

    def delete_audio_file(self, audio_file_id: str) -> None:
        with self._session("delete_audio_file") as db_session:
            row = self._audio_row(db_session, audio_file_id)
            if row is not None:
                db_session.delete(row)
            statement = select(MeetingRow).where(MeetingRow.audio_file_id == audio_file_id)
            for meeting in db_session.exec(statement):
                meeting.audio_file_id = None
                db_session.add(meeting)
            db_session.commit()

    # Transcripts

    def get_transcript(self, transcript_id: str) -> Transcript | None:
        with self._session("get_transcript") as db_session:
            row = self._transcript_row(db_session, transcript_id)
            return _to_transcript(row) if row else None

    def list_transcripts(self) -> list[Transcript]:
        with self._session("list_transcripts") as db_session:
            statement = select(TranscriptRow).order_by(TranscriptRow.seq)
            return [_to_transcript(row) for row in db_session.exec(statement)]

    def list_transcripts_by_audio_file(self, audio_file_id: str) -> list[Transcript]:
        with self._session("list_transcripts_by_audio_file") as db_session:
            statement = (
                select(TranscriptRow)
                .where(TranscriptRow.audio_file_id == audio_file_id)
                .order_by(TranscriptRow.seq)
            )
            return [_to_transcript(row) for row in db_session.exec(statement)]

    def list_transcripts_by_meeting(self, meeting_id: str) -> list[Transcript]:
        with self._session("list_transcripts_by_meeting") as db_session:
            statement = (
                select(TranscriptRow)
                .where(TranscriptRow.meeting_id == meeting_id)
                .order_by(TranscriptRow.seq)
            )
            return [_to_transcript(row) for row in db_session.exec(statement)]

    def save_transcript(self, transcript: Transcript) -> Transcript:
        transcript = _with_id(transcript)
        with self._session("save_transcript") as db_session:
            row = self._transcript_row(db_session, transcript.id)
            values = _transcript_values(transcript)
            if row is None:
                row = TranscriptRow(**values)
            else:
                _assign(row, values)
            db_session.add(row)
            db_session.commit()
        return transcript

    def delete_transcript(self, transcript_id: str) -> None:
        with self._session("delete_transcript") as db_session:
            row = self._transcript_row(db_session, transcript_id)
            if row is not None:
                db_session.delete(row)
            for model in (AudioFileRow, MeetingRow):
                statement = select(model).where(model.transcript_id == transcript_id)
                for referencing in db_session.exec(statement):
                    referencing.transcript_id = None
                    db_session.add(referencing)
            db_session.commit()

    # Meetings

    def get_meeting(self, meeting_id: str) -> Meeting | None:
        with self._session("get_meeting") as db_session:
            row = self._meeting_row(db_session, meeting_id)
            return _to_meeting(row) if row else None

    def list_meetings(self) -> list[Meeting]:
        with self._session("list_meetings") as db_session:
            statement = select(MeetingRow).order_by(MeetingRow.seq)
            return [_to_meeting(row) for row in db_session.exec(statement)]

    def save_meeting(self, meeting: Meeting) -> Meeting:
        meeting = _with_id(meeting)
        with self._session("save_meeting") as db_session:
            row = self._meeting_row(db_session, meeting.id)
            values = _meeting_values(meeting)
            if row is None:
                row = MeetingRow(**values)
            else:
                _assign(row, values)
            db_session.add(row)
            db_session.commit()
        return meeting

    def delete_meeting(self, meeting_id: str) -> None:
        with self._session("delete_meeting") as db_session:
            row = self._meeting_row(db_session, meeting_id)
            if row is not None:
                db_session.delete(row)
            statement = select(AudioFileRow).where(AudioFileRow.meeting_id == meeting_id)
            for audio_file in db_session.exec(statement):
                audio_file.meeting_id = None
                db_session.add(audio_file)
            statement = select(TranscriptRow).where(TranscriptRow.meeting_id == meeting_id)
            for transcript in db_session.exec(statement):
                transcript.meeting_id = ""
                db_session.add(transcript)
            db_session.commit()

    # Settings

    def get_watch_config(self) -> WatchConfig:
        value = self._get_setting(WATCH_CONFIG_KEY)
        return WatchConfig.model_validate(value) if value else WatchConfig()

    def save_watch_config(self, watch_config: WatchConfig) -> WatchConfig:
        self._set_setting(WATCH_CONFIG_KEY, watch_config.model_dump())
        return watch_config

    def get_transcription_api_key(self) -> str:
        return self._get_setting(TRANSCRIPTION_API_KEY) or ""

    def save_transcription_api_key(self, api_key: str) -> None:
        self._set_setting(TRANSCRIPTION_API_KEY, api_key.strip())
        logger.info(
            "Transcription API key updated", extra={"has_key": bool(api_key.strip())}
        )

    def _get_setting(self, key: str):
        with self._session("get_setting") as db_session:
            row = db_session.get(SettingRow, key)
            return row.value if row else None

    def _set_setting(self, key: str, value) -> None:
        with self._session("set_setting") as db_session:
            row = db_session.get(SettingRow, key)
            if row is None:
                row = SettingRow(key=key, value=value)
            else:
                row.value = value
            db_session.add(row)
            db_session.commit()

    # Row lookups

    def _audio_row(self, db_session: Session, audio_file_id: str) -> AudioFileRow | None:
        statement = select(AudioFileRow).where(AudioFileRow.id == audio_file_id)
        return db_session.exec(statement).first()

    def _transcript_row(
        self, db_session: Session, transcript_id: str
    ) -> TranscriptRow | None:
        statement = select(TranscriptRow).where(TranscriptRow.id == transcript_id)
        return db_session.exec(statement).first()

    def _meeting_row(self, db_session: Session, meeting_id: str) -> MeetingRow | None:
        statement = select(MeetingRow).where(MeetingRow.id == meeting_id)
        return db_session.exec(statement).first()


def _with_id(record):
    """Returns ``record`` with a generated id when it has none."""
    if record.id:
        return record
    return record.model_copy(update={"id": uuid.uuid4().hex})


def _assign(row, values: dict) -> None:
    for key, value in values.items():
        setattr(row, key, value)


def _to_utc(value: dt.datetime | None) -> dt.datetime | None:
    """Normalizes to an aware UTC datetime; naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


# SQLite hands datetimes back without an offset.
def _aware(value: dt.datetime | None) -> dt.datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=dt.timezone.utc)


def _audio_values(audio_file: AudioFile) -> dict:
    return {
        "id": audio_file.id,
        "file_name": audio_file.file_name,
        "file_path": audio_file.file_path,
        "file_size": audio_file.file_size,
        "duration": audio_file.duration,
        "meeting_id": audio_file.meeting_id,
        "transcript_id": audio_file.transcript_id,
        "created_at": _to_utc(audio_file.created_at),
    }


def _to_audio_file(row: AudioFileRow) -> AudioFile:
    return AudioFile(
        id=row.id,
        file_name=row.file_name,
        file_path=row.file_path,
        file_size=row.file_size,
        duration=row.duration,
        meeting_id=row.meeting_id,
        transcript_id=row.transcript_id,
        created_at=_aware(row.created_at),
    )


def _transcript_values(transcript: Transcript) -> dict:
    return {
        "id": transcript.id,
        "meeting_id": transcript.meeting_id,
        "audio_file_id": transcript.audio_file_id,
        "status": transcript.status.value,
        "text": transcript.text,
        "utterances": [u.model_dump() for u in transcript.utterances],
        "created_at": _to_utc(transcript.created_at),
        "completed_at": _to_utc(transcript.completed_at),
        "remote_job_id": transcript.remote_job_id,
        "error_message": transcript.error_message,
    }


def _to_transcript(row: TranscriptRow) -> Transcript:
    return Transcript(
        id=row.id,
        meeting_id=row.meeting_id or "",
        audio_file_id=row.audio_file_id,
        status=TranscriptStatus(row.status),
        text=row.text,
        utterances=[Utterance.model_validate(u) for u in row.utterances or []],
        created_at=_aware(row.created_at),
        completed_at=_aware(row.completed_at),
        remote_job_id=row.remote_job_id,
        error_message=row.error_message,
    )


def _meeting_values(meeting: Meeting) -> dict:
    return {
        "id": meeting.id,
        "title": meeting.title,
        "description": meeting.description,
        "meeting_date": meeting.date,
        "participants": list(meeting.participants),
        "created_at": _to_utc(meeting.created_at),
        "audio_file_id": meeting.audio_file_id,
        "transcript_id": meeting.transcript_id,
    }


def _to_meeting(row: MeetingRow) -> Meeting:
    return Meeting(
        id=row.id,
        title=row.title,
        description=row.description,
        date=row.meeting_date,
        participants=list(row.participants or []),
        created_at=_aware(row.created_at),
        audio_file_id=row.audio_file_id,
        transcript_id=row.transcript_id,
    )
