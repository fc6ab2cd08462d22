"""Creates AudioFile records for files on disk."""

import os
from pathlib import Path

import soundfile as sf

from minuta.domain.models import AudioFile
from minuta.exceptions import AudioFileNotFoundError, UnsupportedAudioFileError
from minuta.infrastructure.interfaces import StoreGateway
from minuta.logging import setup_logging

logger = setup_logging()

SUPPORTED_EXTENSIONS = frozenset({".mp3", ".wav", ".m4a", ".ogg", ".flac", ".aac"})


class AudioImporter:
    """Single entry point for recording audio files, shared by the watcher and manual import."""

    def __init__(
        self,
        store: StoreGateway,
        extensions: frozenset[str] = SUPPORTED_EXTENSIONS,
    ):
        self._store = store
        self._extensions = frozenset(e.lower() for e in extensions)

    def is_supported(self, path: str | Path) -> bool:
        return Path(path).suffix.lower() in self._extensions

    def import_file(self, path: str | Path) -> tuple[AudioFile, bool]:
        """
        Records the audio file at ``path`` unless its resolved path is already known.

        Args:
            path: Location of the audio file.

        Returns:
            Tuple of (record, created).

        Raises:
            UnsupportedAudioFileError: If the extension is not a supported audio type.
            AudioFileNotFoundError: If the file does not exist.
            StoreError: If the record cannot be written.
        """
        file_path = Path(path).expanduser().resolve()
        if not self.is_supported(file_path):
            raise UnsupportedAudioFileError(str(file_path))

        try:
            file_size = os.stat(file_path).st_size
        except FileNotFoundError as e:
            raise AudioFileNotFoundError(str(file_path), cause=e) from e

        audio_file, created = self._store.add_audio_file(
            AudioFile(
                file_name=file_path.name,
                file_path=str(file_path),
                file_size=file_size,
                duration=read_duration(file_path),
            )
        )
        if created:
            logger.info(
                "Audio file imported",
                extra={"audio_file_id": audio_file.id, "file_path": audio_file.file_path},
            )
        return audio_file, created


def read_duration(file_path: Path) -> float | None:
    """Returns the duration in seconds, or None when libsndfile cannot decode the format."""
    try:
        info = sf.info(str(file_path))
    except (RuntimeError, OSError):
        return None
    if not info.samplerate:
        return None
    return round(info.frames / info.samplerate, 3)
