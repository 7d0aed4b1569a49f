"""
Search, suggestion and tag statistics schemas.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..models.base import as_utc
from ..models.note import AccessLevel
from .common import PaginationResponse
from .notes import NoteView

SORT_FIELDS = ("relevance", "date", "title", "lastAccess")


class NoteSearchRequest(BaseModel):
    """Search filters, pagination and sorting."""

    query: Optional[str] = Field(default=None, max_length=500, description="Full-text search query")
    tags: Optional[List[str]] = Field(default=None, description="Match notes carrying any of these tags")
    access_levels: Optional[List[AccessLevel]] = Field(default=None, description="Filter by access level")
    date_start: Optional[datetime] = Field(default=None, description="Created at or after")
    date_end: Optional[datetime] = Field(default=None, description="Created at or before")
    coach_id: Optional[uuid.UUID] = Field(default=None, description="Filter by owning coach")
    client_id: Optional[uuid.UUID] = Field(default=None, description="Filter by client")
    session_id: Optional[uuid.UUID] = Field(default=None, description="Filter by session")

    # Pagination
    page: int = Field(default=1, ge=1, description="Page number")
    limit: int = Field(default=20, ge=1, le=100, description="Items per page")

    # Sorting
    sort_by: str = Field(default="date", description="Sort field when there is no query")
    sort_order: str = Field(default="desc", description="Sort order (asc/desc)")

    @field_validator("query")
    @classmethod
    def blank_query_is_none(cls, v):
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("tags")
    @classmethod
    def normalize_tag_filter(cls, v):
        if v is None:
            return None
        cleaned = [t.strip().lower() for t in v if t and t.strip()]
        return cleaned or None

    @field_validator("date_start", "date_end")
    @classmethod
    def dates_to_utc(cls, v):
        return as_utc(v)

    @field_validator("sort_by")
    @classmethod
    def validate_sort_by(cls, v):
        if v not in SORT_FIELDS:
            raise ValueError(f'Sort field must be one of: {", ".join(SORT_FIELDS)}')
        return v

    @field_validator("sort_order")
    @classmethod
    def validate_sort_order(cls, v):
        if v.lower() not in ("asc", "desc"):
            raise ValueError('Sort order must be "asc" or "desc"')
        return v.lower()

    @model_validator(mode="after")
    def validate_date_range(self):
        if self.date_start and self.date_end and self.date_start > self.date_end:
            raise ValueError("date_start must not be after date_end")
        return self

    def filters(self) -> Dict[str, Any]:
        """Applied filters, JSON friendly."""
        return {
            "tags": self.tags,
            "access_levels": [level.value for level in self.access_levels] if self.access_levels else None,
            "date_start": self.date_start.isoformat() if self.date_start else None,
            "date_end": self.date_end.isoformat() if self.date_end else None,
            "coach_id": str(self.coach_id) if self.coach_id else None,
            "client_id": str(self.client_id) if self.client_id else None,
            "session_id": str(self.session_id) if self.session_id else None,
        }

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "query": "morning routine",
                "tags": ["progress"],
                "date_start": "2025-09-01T00:00:00Z",
                "page": 1,
                "limit": 20,
            }
        }
    )


class NoteSearchResponse(PaginationResponse[NoteView]):
    """Note search results response."""

    query: Optional[str] = Field(default=None, description="Search query used")
    filters_applied: Dict[str, Any] = Field(default_factory=dict, description="Filters that were applied")
    search_time_ms: float = Field(default=0.0, description="Search execution time in milliseconds")


class SuggestionResponse(BaseModel):
    """Autocomplete suggestions."""

    suggestions: List[str]


class PopularTag(BaseModel):
    """Tag usage among the notes a caller can see."""

    tag: str
    count: int
    last_used: Optional[datetime] = None


class PopularTagsResponse(BaseModel):
    tags: List[PopularTag]
