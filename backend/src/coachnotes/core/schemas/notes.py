"""
Coach note schemas.

These schemas define the contracts for note create/update requests and
the (possibly masked) note views returned to callers.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..models.note import AccessLevel
from .common import PaginationResponse

MAX_TAGS = 20
MAX_TAG_LENGTH = 50


def normalize_tags(tags: List[str]) -> List[str]:
    """Trim and lower-case tags, drop empties and duplicates, keep order."""
    result: List[str] = []
    for tag in tags:
        clean = tag.strip().lower()
        if not clean or clean in result:
            continue
        if len(clean) > MAX_TAG_LENGTH:
            raise ValueError(f"Tags must be at most {MAX_TAG_LENGTH} characters")
        result.append(clean)
    if len(result) > MAX_TAGS:
        raise ValueError(f"A note can have at most {MAX_TAGS} tags")
    return result


def _clean_title(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class NoteCreate(BaseModel):
    """Note creation request schema."""

    session_id: uuid.UUID = Field(description="Coaching session the note belongs to")
    body: str = Field(min_length=1, description="Note text")
    title: Optional[str] = Field(default=None, max_length=200, description="Note title")
    tags: List[str] = Field(default_factory=list, description="Free-text tags")
    client_id: Optional[uuid.UUID] = Field(default=None, description="Client the note is about")
    audio_file_id: Optional[str] = Field(default=None, max_length=100, description="Attached recording")
    is_encrypted: bool = Field(default=False, description="Encrypt the body at rest")
    access_level: AccessLevel = Field(default=AccessLevel.PRIVATE, description="Visibility tier")
    allow_sharing: bool = Field(default=False, description="Whether the note may be shared")

    @field_validator("body")
    @classmethod
    def validate_body(cls, v):
        if not v.strip():
            raise ValueError("Body cannot be empty")
        return v

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        return _clean_title(v)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v):
        return normalize_tags(v)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "session_id": "123e4567-e89b-12d3-a456-426614174000",
                "title": "Week 3 check-in",
                "body": "Client showed progress on the morning routine.",
                "tags": ["progress", "habits"],
                "is_encrypted": True,
                "access_level": "private",
                "allow_sharing": False,
            }
        }
    )


class NoteUpdate(BaseModel):
    """Partial update; only fields present in the payload are applied."""

    title: Optional[str] = Field(default=None, max_length=200, description="Note title, null clears it")
    body: Optional[str] = Field(default=None, min_length=1, description="Note text")
    tags: Optional[List[str]] = Field(default=None, description="Replacement tag list")
    client_id: Optional[uuid.UUID] = Field(default=None, description="Client the note is about")
    audio_file_id: Optional[str] = Field(default=None, max_length=100, description="Attached recording")
    is_encrypted: Optional[bool] = Field(default=None, description="Encrypt the body at rest")
    access_level: Optional[AccessLevel] = Field(default=None, description="Visibility tier")
    allow_sharing: Optional[bool] = Field(default=None, description="Whether the note may be shared")

    @field_validator("body")
    @classmethod
    def validate_body(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Body cannot be empty")
        return v

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        return _clean_title(v)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v):
        if v is None:
            return v
        return normalize_tags(v)

    @model_validator(mode="after")
    def reject_explicit_nulls(self):
        for name in ("body", "tags", "is_encrypted", "access_level", "allow_sharing"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def provided_fields(self) -> Dict[str, Any]:
        """Fields explicitly present in the request."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class AuditEntryView(BaseModel):
    """Audit entry as shown to a caller; identifying fields are dropped for non-owners."""

    action: str = Field(description="Audited action")
    timestamp: datetime = Field(description="When it happened")
    actor_role: str = Field(description="Role of the actor")
    actor_id: Optional[uuid.UUID] = Field(default=None, description="Actor ID")
    ip_address: Optional[str] = Field(default=None, description="Client IP")
    user_agent: Optional[str] = Field(default=None, description="Client user agent")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Event details")


class NoteView(BaseModel):
    """Note as returned to a caller, masked for viewers who are not owner or admin."""

    id: uuid.UUID = Field(description="Note unique identifier")
    coach_id: uuid.UUID = Field(description="Owning coach")
    session_id: uuid.UUID = Field(description="Coaching session")
    client_id: Optional[uuid.UUID] = Field(default=None, description="Client")
    title: Optional[str] = Field(default=None, description="Note title")
    body: str = Field(description="Note text or masked placeholder")
    searchable_content: str = Field(description="Search projection or masked placeholder")
    audio_file_id: Optional[str] = Field(default=None, description="Attachment or masked placeholder")
    tags: List[str] = Field(description="Note tags")
    is_encrypted: bool = Field(description="Whether the body is encrypted at rest")

    access_level: AccessLevel = Field(description="Visibility tier")
    allow_sharing: bool = Field(description="Whether sharing is enabled")
    shared_with: List[uuid.UUID] = Field(description="Users with explicit view access")

    is_owner: bool = Field(description="Whether the caller owns this note")
    can_edit: bool = Field(description="Whether the caller may edit this note")
    is_masked: bool = Field(description="Whether content fields were redacted")

    created_at: datetime = Field(description="Creation timestamp")
    updated_at: datetime = Field(description="Last update timestamp")
    edited_at: Optional[datetime] = Field(default=None, description="Last edit timestamp")
    last_accessed_at: Optional[datetime] = Field(default=None, description="Last view timestamp")
    access_count: int = Field(default=0, description="Number of views")

    audit_trail: List[AuditEntryView] = Field(
        default_factory=list, description="Most recent audit entries, newest first"
    )


class NoteListResponse(PaginationResponse[NoteView]):
    """Paginated note list response."""


class SessionNotesResponse(BaseModel):
    """Notes of one coaching session visible to the caller."""

    session_id: uuid.UUID
    notes: List[NoteView]
    total: int


class AuditTrailResponse(BaseModel):
    """Full audit trail of a note, oldest first."""

    note_id: uuid.UUID
    entries: List[AuditEntryView]
    total: int
