"""Meeting endpoints."""

from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, Response

from minuta.dependencies import get_store
from minuta.domain import Meeting
from minuta.exceptions import StoreError
from minuta.infrastructure.interfaces import StoreGateway
from minuta.logging import setup_logging
from minuta.response_models import MeetingCreateRequest, MeetingUpdateRequest

logger = setup_logging()

router = APIRouter(prefix="/meetings", tags=["meetings"])

StoreDep = Annotated[StoreGateway, Depends(get_store)]


@router.get("", response_model=List[Meeting])
def list_meetings(store: StoreDep):
    try:
        return store.list_meetings()
    except StoreError:
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{meeting_id}", response_model=Meeting)
def get_meeting(meeting_id: str, store: StoreDep):
    meeting = store.get_meeting(meeting_id)
    if meeting is None:
        raise HTTPException(status_code=404, detail="Meeting not found")
    return meeting


@router.post("", response_model=Meeting, status_code=201)
def create_meeting(request: MeetingCreateRequest, store: StoreDep):
    """Creates a meeting by hand, independent of any audio file."""
    fields = request.model_dump(exclude_none=True)
    meeting = store.save_meeting(Meeting(**fields))
    logger.info("Meeting created", extra={"meeting_id": meeting.id})
    return meeting


@router.patch("/{meeting_id}", response_model=Meeting)
def update_meeting(meeting_id: str, request: MeetingUpdateRequest, store: StoreDep):
    meeting = store.get_meeting(meeting_id)
    if meeting is None:
        raise HTTPException(status_code=404, detail="Meeting not found")

    changes = request.model_dump(exclude_unset=True, exclude_none=True)
    updated = store.save_meeting(meeting.model_copy(update=changes))
    logger.info(
        "Meeting updated",
        extra={"meeting_id": meeting_id, "fields": sorted(changes)},
    )
    return updated


@router.delete("/{meeting_id}", status_code=204)
def delete_meeting(meeting_id: str, store: StoreDep):
    if store.get_meeting(meeting_id) is None:
        raise HTTPException(status_code=404, detail="Meeting not found")
    store.delete_meeting(meeting_id)
    logger.info("Meeting deleted", extra={"meeting_id": meeting_id})
    return Response(status_code=204)
