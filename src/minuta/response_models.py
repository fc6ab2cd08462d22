import datetime as dt

from pydantic import BaseModel, Field

from minuta.domain.models import AudioFile


class MeetingCreateRequest(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = ""
    date: dt.date | None = None
    participants: list[str] = Field(default_factory=list)


class MeetingUpdateRequest(BaseModel):
    """Partial meeting update; omitted fields are left unchanged."""

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    date: dt.date | None = None
    participants: list[str] | None = None


class AudioImportRequest(BaseModel):
    file_path: str = Field(..., min_length=1)


class AudioImportResponse(BaseModel):
    audio_file: AudioFile
    created: bool


class AudioFileUpdateRequest(BaseModel):
    """Meeting to link the recording to; null removes the link."""

    meeting_id: str | None


class SpeakerRenameRequest(BaseModel):
    old_name: str = Field(..., min_length=1)
    new_name: str = Field(..., min_length=1)


class WatchDirectoryRequest(BaseModel):
    directory: str = Field(..., min_length=1)


class WatchToggleRequest(BaseModel):
    enabled: bool


class WatchSettingsResponse(BaseModel):
    """Persisted watch configuration plus the live watcher state."""

    directories: list[str]
    directory: str | None
    enabled: bool
    active: bool


class ApiKeyRequest(BaseModel):
    api_key: str


class ApiKeyStatusResponse(BaseModel):
    configured: bool
