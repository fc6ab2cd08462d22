from .audio_import import AudioImporter
from .enrichment_handler import EnrichmentHandler
from .transcription_orchestrator import TranscriptionOrchestrator

__all__ = ["AudioImporter", "EnrichmentHandler", "TranscriptionOrchestrator"]
