"""
Service interfaces for the coach notes application.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from uuid import UUID

from ..models.note import AccessLevel
from ..schemas.actor import Actor
from ..schemas.common import HealthCheckResponse
from ..schemas.notes import (
    AuditTrailResponse, NoteCreate, NoteListResponse, NoteUpdate, NoteView,
    SessionNotesResponse
)
from ..schemas.search import NoteSearchRequest, NoteSearchResponse
from ..schemas.sharing import ShareRequest, SharingResponse, UnshareRequest


class INoteService(ABC):
    """Note operations; every call is checked, audited and masked for the actor."""

    @abstractmethod
    async def create_note(self, actor: Actor, request: NoteCreate) -> NoteView:
        """Create a note for a coaching session."""
        pass

    @abstractmethod
    async def get_note(self, actor: Actor, note_id: UUID) -> NoteView:
        """Read one note."""
        pass

    @abstractmethod
    async def update_note(self, actor: Actor, note_id: UUID, request: NoteUpdate) -> NoteView:
        """Apply a partial update."""
        pass

    @abstractmethod
    async def delete_note(self, actor: Actor, note_id: UUID) -> None:
        """Delete a note, keeping its audit trail."""
        pass

    @abstractmethod
    async def share_note(self, actor: Actor, note_id: UUID, request: ShareRequest) -> SharingResponse:
        """Grant view access to users."""
        pass

    @abstractmethod
    async def unshare_note(
        self, actor: Actor, note_id: UUID, request: UnshareRequest
    ) -> SharingResponse:
        """Revoke view access."""
        pass

    @abstractmethod
    async def list_session_notes(self, actor: Actor, session_id: UUID) -> SessionNotesResponse:
        """Notes of a coaching session visible to the actor."""
        pass

    @abstractmethod
    async def list_coach_notes(
        self,
        actor: Actor,
        page: int = 1,
        limit: int = 20,
        session_id: Optional[UUID] = None,
        access_level: Optional[AccessLevel] = None,
        search: Optional[str] = None,
    ) -> NoteListResponse:
        """The actor's own notes."""
        pass

    @abstractmethod
    async def get_audit_trail(self, actor: Actor, note_id: UUID) -> AuditTrailResponse:
        """Full audit trail, owner and admin only."""
        pass

    @abstractmethod
    async def search_notes(self, actor: Actor, request: NoteSearchRequest) -> NoteSearchResponse:
        """Full-text search over accessible notes."""
        pass

    @abstractmethod
    async def suggest(self, actor: Actor, prefix: str, limit: int = 10) -> List[str]:
        """Autocomplete from tags and titles."""
        pass

    @abstractmethod
    async def popular_tags(self, actor: Actor, limit: int = 20) -> List[Dict[str, Any]]:
        """Most used tags among accessible notes."""
        pass


class IHealthService(ABC):
    """Health check service."""

    @abstractmethod
    async def get_health_status(self) -> HealthCheckResponse:
        """Get app health status."""
        pass

    @abstractmethod
    async def check_database_health(self) -> Dict[str, Any]:
        """Check DB connection."""
        pass

    @abstractmethod
    async def check_redis_health(self) -> Dict[str, Any]:
        """Check Redis connection."""
        pass
