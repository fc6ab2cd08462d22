"""Meeting transcription orchestration: folder watching, AssemblyAI transcription and meeting records."""

__version__ = "0.1.0"
