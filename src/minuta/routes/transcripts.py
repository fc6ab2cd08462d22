"""Transcript endpoints."""

from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException

from minuta.dependencies import get_orchestrator, get_store
from minuta.domain import Transcript
from minuta.exceptions import TranscriptNotCompletedError, TranscriptNotFoundError
from minuta.handlers import TranscriptionOrchestrator
from minuta.infrastructure.interfaces import StoreGateway
from minuta.response_models import SpeakerRenameRequest

router = APIRouter(prefix="/transcripts", tags=["transcripts"])

StoreDep = Annotated[StoreGateway, Depends(get_store)]
OrchestratorDep = Annotated[TranscriptionOrchestrator, Depends(get_orchestrator)]


@router.get("", response_model=List[Transcript])
def list_transcripts(
    store: StoreDep,
    meeting_id: str | None = None,
    audio_file_id: str | None = None,
):
    """Returns transcripts, optionally narrowed to a meeting and/or an audio file."""
    if meeting_id is not None:
        transcripts = store.list_transcripts_by_meeting(meeting_id)
    elif audio_file_id is not None:
        transcripts = store.list_transcripts_by_audio_file(audio_file_id)
    else:
        transcripts = store.list_transcripts()

    if audio_file_id is not None:
        transcripts = [t for t in transcripts if t.audio_file_id == audio_file_id]
    return transcripts


@router.get("/{transcript_id}", response_model=Transcript)
def get_transcript(transcript_id: str, store: StoreDep):
    transcript = store.get_transcript(transcript_id)
    if transcript is None:
        raise HTTPException(status_code=404, detail="Transcript not found")
    return transcript


@router.post("/{transcript_id}/speakers", response_model=Transcript)
def rename_speaker(
    transcript_id: str, request: SpeakerRenameRequest, orchestrator: OrchestratorDep
):
    try:
        return orchestrator.rename_speaker(
            transcript_id, request.old_name, request.new_name
        )
    except TranscriptNotFoundError:
        raise HTTPException(status_code=404, detail="Transcript not found")
    except TranscriptNotCompletedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
