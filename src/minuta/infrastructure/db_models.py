import datetime as dt
from typing import Any, List, Optional

from sqlalchemy import Column
from sqlalchemy.types import JSON
from sqlmodel import Field, SQLModel


class AudioFileRow(SQLModel, table=True):
    __tablename__ = "audio_files"

    seq: Optional[int] = Field(default=None, primary_key=True)
    id: str = Field(index=True, unique=True, max_length=64)
    file_name: str
    file_path: str = Field(unique=True)
    file_size: int = 0
    duration: Optional[float] = None
    meeting_id: Optional[str] = Field(default=None, index=True)
    transcript_id: Optional[str] = Field(default=None, index=True)
    created_at: dt.datetime


class TranscriptRow(SQLModel, table=True):
    __tablename__ = "transcripts"

    seq: Optional[int] = Field(default=None, primary_key=True)
    id: str = Field(index=True, unique=True, max_length=64)
    meeting_id: str = Field(default="", index=True)
    audio_file_id: str = Field(index=True)
    status: str
    text: Optional[str] = None
    utterances: List[dict] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    created_at: dt.datetime
    completed_at: Optional[dt.datetime] = None
    remote_job_id: Optional[str] = None
    error_message: Optional[str] = None


class MeetingRow(SQLModel, table=True):
    __tablename__ = "meetings"

    seq: Optional[int] = Field(default=None, primary_key=True)
    id: str = Field(index=True, unique=True, max_length=64)
    title: str
    description: str = ""
    meeting_date: dt.date
    participants: List[str] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    created_at: dt.datetime
    audio_file_id: Optional[str] = Field(default=None, index=True)
    transcript_id: Optional[str] = Field(default=None, index=True)


class SettingRow(SQLModel, table=True):
    __tablename__ = "settings"

    key: str = Field(primary_key=True)
    value: Any = Field(default=None, sa_column=Column(JSON))
