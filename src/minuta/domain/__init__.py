"""Domain layer exports."""

from .models import (
    AudioFile,
    DirectoryFileEvent,
    KnowledgeEntry,
    Meeting,
    MeetingMinutes,
    RemoteJob,
    RemoteUtterance,
    SpeakerIdentification,
    SpeakerSuggestion,
    TitleSuggestion,
    Transcript,
    TranscriptStatus,
    Utterance,
    WatchConfig,
)
from .prompt_templates import PromptTemplates
from .response_parser import extract_json_object
from .transcript_builder import TranscriptBuilder

__all__ = [
    "AudioFile",
    "DirectoryFileEvent",
    "KnowledgeEntry",
    "Meeting",
    "MeetingMinutes",
    "PromptTemplates",
    "RemoteJob",
    "RemoteUtterance",
    "SpeakerIdentification",
    "SpeakerSuggestion",
    "TitleSuggestion",
    "Transcript",
    "TranscriptStatus",
    "TranscriptBuilder",
    "Utterance",
    "WatchConfig",
    "extract_json_object",
]
