"""Core business logic for turning provider output into domain records."""

import os

from .models import AudioFile, Meeting, RemoteJob, Transcript, Utterance


class TranscriptBuilder:
    """Normalizes provider jobs and derives meetings from audio files."""

    def build_utterances(self, job: RemoteJob) -> list[Utterance]:
        """
        Converts diarized provider output into domain utterances.

        Provider order is preserved; it is already chronological.

        Args:
            job: A completed remote job.

        Returns:
            Utterances with normalized speaker labels, empty if the job
            carried no diarization.
        """
        if not job.utterances:
            return []
        return [
            Utterance(
                speaker=self._speaker_label(u.speaker),
                text=u.text,
                start_ms=u.start,
                end_ms=u.end,
            )
            for u in job.utterances
        ]

    def build_meeting(self, audio_file: AudioFile, transcript: Transcript) -> Meeting:
        """
        Synthesizes a meeting for a transcript that completed without one.

        Args:
            audio_file: The audio file the transcript belongs to.
            transcript: The completed transcript.

        Returns:
            An unsaved Meeting linked to both records.
        """
        title = "Meeting from transcription"
        if audio_file.file_name:
            title = f"Meeting from {self.strip_extension(audio_file.file_name)}"
        return Meeting(
            title=title,
            description=(
                f"Meeting automatically created from audio file {audio_file.file_name}"
            ),
            participants=[],
            audio_file_id=audio_file.id,
            transcript_id=transcript.id,
        )

    def rename_speaker(
        self, utterances: list[Utterance], old_label: str, new_label: str
    ) -> list[Utterance]:
        """Replaces one speaker label across every utterance carrying it."""
        return [
            u.model_copy(update={"speaker": new_label}) if u.speaker == old_label else u
            for u in utterances
        ]

    def format(self, utterances: list[Utterance]) -> str:
        """Formats utterances into a readable transcript."""
        return "\n".join(f"{u.speaker}: {u.text}" for u in utterances)

    @staticmethod
    def strip_extension(file_name: str) -> str:
        return os.path.splitext(file_name)[0]

    def _speaker_label(self, speaker: str | int | None) -> str:
        """Maps a provider speaker tag to its display form."""
        if speaker is None or speaker == "":
            return "Speaker ?"
        return f"Speaker {speaker}"
