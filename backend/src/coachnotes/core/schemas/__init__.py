"""
Pydantic schemas for API requests and responses.
"""

from .actor import Actor, UserRole
from .common import ErrorResponse, HealthCheckResponse, PaginationResponse
from .notes import (
    AuditEntryView,
    AuditTrailResponse,
    NoteCreate,
    NoteListResponse,
    NoteUpdate,
    NoteView,
    SessionNotesResponse,
)
from .search import (
    NoteSearchRequest,
    NoteSearchResponse,
    PopularTag,
    PopularTagsResponse,
    SuggestionResponse,
)
from .sharing import ShareRequest, SharingResponse, UnshareRequest

__all__ = [
    "Actor",
    "UserRole",
    "ErrorResponse",
    "HealthCheckResponse",
    "PaginationResponse",
    "AuditEntryView",
    "AuditTrailResponse",
    "NoteCreate",
    "NoteListResponse",
    "NoteUpdate",
    "NoteView",
    "SessionNotesResponse",
    "NoteSearchRequest",
    "NoteSearchResponse",
    "PopularTag",
    "PopularTagsResponse",
    "SuggestionResponse",
    "ShareRequest",
    "SharingResponse",
    "UnshareRequest",
]
