"""Infrastructure interface exports."""

from .event_sink import EventSink
from .llm_service import LLMService
from .store import StoreGateway
from .transcription_client import TranscriptionClient

__all__ = ["EventSink", "LLMService", "StoreGateway", "TranscriptionClient"]
