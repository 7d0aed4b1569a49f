"""Search API endpoints."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from ..core.models.note import AccessLevel
from ..core.schemas.actor import Actor
from ..core.schemas.search import (
    NoteSearchRequest, NoteSearchResponse, PopularTag, PopularTagsResponse, SuggestionResponse
)
from ..core.services import NoteService
from ..middleware.auth import get_current_actor
from .deps import get_note_service

router = APIRouter(prefix="/search", tags=["search"])


def search_params(
    q: Optional[str] = Query(None, description="Search query"),
    tags: Optional[List[str]] = Query(None, description="Tag filters"),
    access_levels: Optional[List[AccessLevel]] = Query(None, description="Access level filters"),
    date_start: Optional[datetime] = Query(None, description="Created at or after"),
    date_end: Optional[datetime] = Query(None, description="Created at or before"),
    coach_id: Optional[UUID] = Query(None),
    client_id: Optional[UUID] = Query(None),
    session_id: Optional[UUID] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    sort_by: str = Query("date"),
    sort_order: str = Query("desc"),
) -> NoteSearchRequest:
    """Build the search request from query parameters."""
    try:
        return NoteSearchRequest(
            query=q,
            tags=tags,
            access_levels=access_levels,
            date_start=date_start,
            date_end=date_end,
            coach_id=coach_id,
            client_id=client_id,
            session_id=session_id,
            page=page,
            limit=limit,
            sort_by=sort_by,
            sort_order=sort_order,
        )
    except ValidationError as e:
        raise RequestValidationError(e.errors()) from e


@router.get("/notes", response_model=NoteSearchResponse)
async def search_notes(
    request: NoteSearchRequest = Depends(search_params),
    actor: Actor = Depends(get_current_actor),
    note_service: NoteService = Depends(get_note_service),
):
    """Search notes by content, tags, dates and access level."""
    return await note_service.search_notes(actor, request)


@router.get("/suggestions", response_model=SuggestionResponse)
async def suggest(
    q: str = Query(..., description="Prefix to complete"),
    limit: int = Query(10, ge=1, le=50),
    actor: Actor = Depends(get_current_actor),
    note_service: NoteService = Depends(get_note_service),
):
    """Autocomplete from tags and titles."""
    return SuggestionResponse(suggestions=await note_service.suggest(actor, q, limit))


@router.get("/tags/popular", response_model=PopularTagsResponse)
async def popular_tags(
    limit: int = Query(20, ge=1, le=100),
    actor: Actor = Depends(get_current_actor),
    note_service: NoteService = Depends(get_note_service),
):
    """Most used tags among the caller's accessible notes."""
    stats = await note_service.popular_tags(actor, limit)
    return PopularTagsResponse(tags=[PopularTag(**s) for s in stats])
