"""Notes API endpoints."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from ..core.models.note import AccessLevel
from ..core.schemas.actor import Actor
from ..core.schemas.notes import (
    AuditTrailResponse, NoteCreate, NoteListResponse, NoteUpdate, NoteView,
    SessionNotesResponse
)
from ..core.schemas.sharing import ShareRequest, SharingResponse, UnshareRequest
from ..core.services import NoteService
from ..middleware.auth import get_current_actor
from .deps import get_note_service

router = APIRouter(prefix="/notes", tags=["notes"])


@router.post("/", response_model=NoteView, status_code=201)
async def create_note(
    request: NoteCreate,
    actor: Actor = Depends(get_current_actor),
    note_service: NoteService = Depends(get_note_service),
):
    """Create a note for a coaching session."""
    return await note_service.create_note(actor, request)


@router.get("/", response_model=NoteListResponse)
async def list_notes(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    session_id: Optional[UUID] = Query(None),
    access_level: Optional[AccessLevel] = Query(None),
    search: Optional[str] = Query(None, max_length=500),
    actor: Actor = Depends(get_current_actor),
    note_service: NoteService = Depends(get_note_service),
):
    """List the caller's own notes."""
    return await note_service.list_coach_notes(
        actor,
        page=page,
        limit=limit,
        session_id=session_id,
        access_level=access_level,
        search=search,
    )


@router.get("/session/{session_id}", response_model=SessionNotesResponse)
async def list_session_notes(
    session_id: UUID,
    actor: Actor = Depends(get_current_actor),
    note_service: NoteService = Depends(get_note_service),
):
    """Notes of a coaching session the caller may view."""
    return await note_service.list_session_notes(actor, session_id)


@router.get("/{note_id}", response_model=NoteView)
async def get_note(
    note_id: UUID,
    actor: Actor = Depends(get_current_actor),
    note_service: NoteService = Depends(get_note_service),
):
    """Get a specific note."""
    return await note_service.get_note(actor, note_id)


@router.put("/{note_id}", response_model=NoteView)
async def update_note(
    note_id: UUID,
    request: NoteUpdate,
    actor: Actor = Depends(get_current_actor),
    note_service: NoteService = Depends(get_note_service),
):
    """Update a note."""
    return await note_service.update_note(actor, note_id, request)


@router.delete("/{note_id}", status_code=204)
async def delete_note(
    note_id: UUID,
    actor: Actor = Depends(get_current_actor),
    note_service: NoteService = Depends(get_note_service),
):
    """Delete a note."""
    await note_service.delete_note(actor, note_id)


@router.post("/{note_id}/share", response_model=SharingResponse)
async def share_note(
    note_id: UUID,
    request: ShareRequest,
    actor: Actor = Depends(get_current_actor),
    note_service: NoteService = Depends(get_note_service),
):
    """Share a note with other users."""
    return await note_service.share_note(actor, note_id, request)


@router.post("/{note_id}/unshare", response_model=SharingResponse)
async def unshare_note(
    note_id: UUID,
    request: UnshareRequest,
    actor: Actor = Depends(get_current_actor),
    note_service: NoteService = Depends(get_note_service),
):
    """Revoke access to a note."""
    return await note_service.unshare_note(actor, note_id, request)


@router.get("/{note_id}/audit", response_model=AuditTrailResponse)
async def get_audit_trail(
    note_id: UUID,
    actor: Actor = Depends(get_current_actor),
    note_service: NoteService = Depends(get_note_service),
):
    """Full audit trail of a note."""
    return await note_service.get_audit_trail(actor, note_id)
