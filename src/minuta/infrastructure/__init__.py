"""Infrastructure layer exports."""

from .assemblyai_client import AssemblyAIClient
from .event_bus import EventBus, EventKind
from .gemini_llm import GeminiLLMService

__all__ = ["AssemblyAIClient", "EventBus", "EventKind", "GeminiLLMService"]
