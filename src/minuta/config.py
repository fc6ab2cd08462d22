"""Application configuration loaded from environment variables."""

import os
from pathlib import Path

from pydantic import BaseModel

DEFAULT_DATA_DIR = Path.home() / ".minuta"
PROMPTS_DIR = Path(__file__).parent / "prompts"


class StorageConfig(BaseModel, frozen=True):
    """Local document store configuration."""

    database_path: Path = DEFAULT_DATA_DIR / "minuta.db"

    @property
    def database_url(self) -> str:
        return f"sqlite:///{self.database_path}"


class AssemblyAIConfig(BaseModel, frozen=True):
    """AssemblyAI API configuration."""

    base_url: str = "https://api.assemblyai.com/v2"
    api_key: str = ""
    language_code: str = "en"
    speaker_labels: bool = True
    request_timeout_seconds: float = 60.0
    poll_interval_seconds: float = 3.0
    max_poll_attempts: int = 1200


class WatcherConfig(BaseModel, frozen=True):
    """Directory watcher configuration."""

    extensions: frozenset[str] = frozenset(
        {".mp3", ".wav", ".m4a", ".ogg", ".flac", ".aac"}
    )
    stability_threshold_seconds: float = 5.0
    poll_interval_seconds: float = 1.0
    settle_timeout_seconds: float = 120.0
    recursive: bool = True


class GeminiConfig(BaseModel, frozen=True):
    """Gemini LLM configuration."""

    api_key: str = ""
    model_name: str = "gemini-2.5-flash-lite"
    prompts_dir: Path = PROMPTS_DIR
    max_transcript_chars: int = 3000
    max_sample_utterances: int = 20


class ApiConfig(BaseModel, frozen=True):
    """Local HTTP API configuration."""

    host: str = "127.0.0.1"
    port: int = 8765


class AppConfig(BaseModel, frozen=True):
    """Root application configuration."""

    storage: StorageConfig = StorageConfig()
    assemblyai: AssemblyAIConfig = AssemblyAIConfig()
    watcher: WatcherConfig = WatcherConfig()
    gemini: GeminiConfig = GeminiConfig()
    api: ApiConfig = ApiConfig()


def load_config() -> AppConfig:
    """Loads configuration from environment variables."""
    data_dir = Path(os.getenv("MINUTA_DATA_DIR", str(DEFAULT_DATA_DIR))).expanduser()
    return AppConfig(
        storage=StorageConfig(
            database_path=Path(
                os.getenv("MINUTA_DATABASE_PATH", str(data_dir / "minuta.db"))
            ).expanduser(),
        ),
        assemblyai=AssemblyAIConfig(
            base_url=os.getenv("ASSEMBLYAI_BASE_URL", "https://api.assemblyai.com/v2"),
            api_key=os.getenv("ASSEMBLYAI_API_KEY", ""),
            language_code=os.getenv("ASSEMBLYAI_LANGUAGE_CODE", "en"),
            poll_interval_seconds=float(os.getenv("ASSEMBLYAI_POLL_INTERVAL", "3")),
            max_poll_attempts=int(os.getenv("ASSEMBLYAI_MAX_POLL_ATTEMPTS", "1200")),
        ),
        watcher=WatcherConfig(
            stability_threshold_seconds=float(
                os.getenv("MINUTA_STABILITY_THRESHOLD", "5")
            ),
            poll_interval_seconds=float(os.getenv("MINUTA_STABILITY_POLL", "1")),
            settle_timeout_seconds=float(os.getenv("MINUTA_SETTLE_TIMEOUT", "120")),
        ),
        gemini=GeminiConfig(
            api_key=os.getenv("GEMINI_API_KEY", ""),
            model_name=os.getenv("GEMINI_MODEL", "gemini-2.5-flash-lite"),
        ),
        api=ApiConfig(
            host=os.getenv("MINUTA_API_HOST", "127.0.0.1"),
            port=int(os.getenv("MINUTA_API_PORT", "8765")),
        ),
    )
