"""Audio file endpoints."""

from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, Response

from minuta.dependencies import get_importer, get_orchestrator, get_store
from minuta.domain import AudioFile, Transcript
from minuta.exceptions import (
    AudioFileNotFoundError,
    StoreError,
    TranscriptionConfigError,
    TranscriptionInProgressError,
    UnsupportedAudioFileError,
)
from minuta.handlers import AudioImporter, TranscriptionOrchestrator
from minuta.infrastructure.interfaces import StoreGateway
from minuta.logging import setup_logging
from minuta.response_models import (
    AudioFileUpdateRequest,
    AudioImportRequest,
    AudioImportResponse,
)

logger = setup_logging()

router = APIRouter(prefix="/audio-files", tags=["audio-files"])

StoreDep = Annotated[StoreGateway, Depends(get_store)]
ImporterDep = Annotated[AudioImporter, Depends(get_importer)]
OrchestratorDep = Annotated[TranscriptionOrchestrator, Depends(get_orchestrator)]


@router.get("", response_model=List[AudioFile])
def list_audio_files(store: StoreDep, meeting_id: str | None = None):
    """Returns recorded audio files, optionally only those linked to a meeting."""
    if meeting_id is not None:
        return store.list_audio_files_by_meeting(meeting_id)
    return store.list_audio_files()


@router.patch("/{audio_file_id}", response_model=AudioFile)
def link_audio_file(audio_file_id: str, request: AudioFileUpdateRequest, store: StoreDep):
    """Links a recording to an existing meeting, or unlinks it with a null id."""
    audio_file = store.get_audio_file(audio_file_id)
    if audio_file is None:
        raise HTTPException(status_code=404, detail="Audio file not found")

    meeting = None
    if request.meeting_id is not None:
        meeting = store.get_meeting(request.meeting_id)
        if meeting is None:
            raise HTTPException(status_code=404, detail="Meeting not found")

    try:
        updated = store.save_audio_file(
            audio_file.model_copy(update={"meeting_id": request.meeting_id})
        )
        if meeting is not None and not meeting.audio_file_id:
            store.save_meeting(meeting.model_copy(update={"audio_file_id": audio_file_id}))
    except StoreError:
        raise HTTPException(status_code=500, detail="Internal server error")

    logger.info(
        "Audio file meeting link updated",
        extra={"audio_file_id": audio_file_id, "meeting_id": request.meeting_id},
    )
    return updated


@router.delete("/{audio_file_id}", status_code=204)
def delete_audio_file(audio_file_id: str, store: StoreDep):
    """Forgets a recording; the file on disk is left untouched."""
    if store.get_audio_file(audio_file_id) is None:
        raise HTTPException(status_code=404, detail="Audio file not found")
    store.delete_audio_file(audio_file_id)
    logger.info("Audio file deleted", extra={"audio_file_id": audio_file_id})
    return Response(status_code=204)


@router.post("/import", response_model=AudioImportResponse)
def import_audio_file(
    request: AudioImportRequest, importer: ImporterDep, response: Response
):
    """Records a local audio file; importing a known path returns the existing record."""
    try:
        audio_file, created = importer.import_file(request.file_path)
    except UnsupportedAudioFileError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except AudioFileNotFoundError:
        raise HTTPException(status_code=404, detail="File not found")
    except StoreError:
        raise HTTPException(status_code=500, detail="Internal server error")

    response.status_code = 201 if created else 200
    return AudioImportResponse(audio_file=audio_file, created=created)


@router.post(
    "/{audio_file_id}/transcriptions", response_model=Transcript, status_code=202
)
async def start_transcription(audio_file_id: str, orchestrator: OrchestratorDep):
    """Queues a transcription; progress is reported through transcript updates."""
    try:
        return await orchestrator.start_transcription(audio_file_id)
    except TranscriptionConfigError as e:
        raise HTTPException(status_code=412, detail=str(e))
    except AudioFileNotFoundError:
        raise HTTPException(status_code=404, detail="Audio file not found")
    except TranscriptionInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
