"""
Note sharing schemas.
"""

import uuid
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _unique_ids(v: List[uuid.UUID]) -> List[uuid.UUID]:
    seen: List[uuid.UUID] = []
    for user_id in v:
        if user_id not in seen:
            seen.append(user_id)
    return seen


class ShareRequest(BaseModel):
    """Grant view access to a note."""

    user_ids: List[uuid.UUID] = Field(
        min_length=1, max_length=20, description="Users to share the note with"
    )
    reason: Optional[str] = Field(default=None, max_length=500, description="Why the note is shared")

    @field_validator("user_ids")
    @classmethod
    def dedupe_user_ids(cls, v):
        return _unique_ids(v)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "user_ids": ["456e7890-e89b-12d3-a456-426614174000"],
                "reason": "Supervision review",
            }
        }
    )


class UnshareRequest(BaseModel):
    """Revoke view access to a note."""

    user_ids: List[uuid.UUID] = Field(
        min_length=1, max_length=20, description="Users to remove"
    )
    reason: Optional[str] = Field(default=None, max_length=500, description="Why access is revoked")

    @field_validator("user_ids")
    @classmethod
    def dedupe_user_ids(cls, v):
        return _unique_ids(v)


class SharingResponse(BaseModel):
    """Sharing list after a share/unshare."""

    note_id: uuid.UUID = Field(description="Note ID")
    shared_with: List[uuid.UUID] = Field(description="Users with explicit view access")
    changed: List[uuid.UUID] = Field(description="Users actually added or removed")
