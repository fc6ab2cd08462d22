"""Renders the enrichment prompts shipped with the package."""

from pathlib import Path
from string import Template

from .models import Utterance


class PromptTemplates:
    """Loads the prompt files once and fills them per request."""

    def __init__(
        self,
        prompts_dir: Path,
        max_transcript_chars: int = 3000,
        max_sample_utterances: int = 20,
    ):
        self._templates = {
            name: Template((prompts_dir / f"{name}.txt").read_text(encoding="utf-8"))
            for name in ("title", "speakers", "minutes", "knowledge")
        }
        self._max_transcript_chars = max_transcript_chars
        self._max_sample_utterances = max_sample_utterances

    def title(self, transcript_text: str) -> str:
        return self._templates["title"].substitute(
            transcript_text=self.truncate(transcript_text)
        )

    def speakers(self, utterances: list[Utterance]) -> str:
        current_speakers = list(dict.fromkeys(u.speaker for u in utterances))
        sample = "\n".join(
            f"{u.speaker}: {u.text}"
            for u in utterances[: self._max_sample_utterances]
        )
        return self._templates["speakers"].substitute(
            current_speakers=", ".join(current_speakers),
            sample_utterances=sample,
        )

    def minutes(
        self, transcript_text: str, participants: list[str], meeting_date: str
    ) -> str:
        return self._templates["minutes"].substitute(
            transcript_text=self.truncate(transcript_text),
            participants=", ".join(participants) or "not recorded",
            meeting_date=meeting_date,
        )

    def knowledge(self, transcript_text: str) -> str:
        return self._templates["knowledge"].substitute(
            transcript_text=self.truncate(transcript_text)
        )

    def truncate(self, text: str) -> str:
        if len(text) <= self._max_transcript_chars:
            return text
        return text[: self._max_transcript_chars] + "..."
