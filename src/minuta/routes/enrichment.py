"""LLM suggestion endpoints; none of them modify stored records."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from minuta.dependencies import get_enrichment
from minuta.domain import (
    KnowledgeEntry,
    MeetingMinutes,
    SpeakerIdentification,
    TitleSuggestion,
)
from minuta.exceptions import (
    EnrichmentError,
    InsufficientContentError,
    MeetingNotFoundError,
    TranscriptNotFoundError,
)
from minuta.handlers import EnrichmentHandler

router = APIRouter(tags=["enrichment"])

EnrichmentDep = Annotated[EnrichmentHandler, Depends(get_enrichment)]


async def _suggest(awaitable):
    try:
        return await awaitable
    except (TranscriptNotFoundError, MeetingNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InsufficientContentError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except EnrichmentError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/transcripts/{transcript_id}/title-suggestion", response_model=TitleSuggestion)
async def suggest_title(transcript_id: str, enrichment: EnrichmentDep):
    return await _suggest(enrichment.generate_title(transcript_id))


@router.post(
    "/transcripts/{transcript_id}/speaker-suggestions",
    response_model=SpeakerIdentification,
    response_model_by_alias=False,
)
async def suggest_speakers(transcript_id: str, enrichment: EnrichmentDep):
    return await _suggest(enrichment.identify_speakers(transcript_id))


@router.post(
    "/meetings/{meeting_id}/minutes",
    response_model=MeetingMinutes,
    response_model_by_alias=False,
)
async def generate_minutes(meeting_id: str, enrichment: EnrichmentDep):
    return await _suggest(enrichment.generate_minutes(meeting_id))


@router.post(
    "/meetings/{meeting_id}/knowledge",
    response_model=KnowledgeEntry,
    response_model_by_alias=False,
)
async def generate_knowledge(meeting_id: str, enrichment: EnrichmentDep):
    return await _suggest(enrichment.generate_knowledge(meeting_id))
