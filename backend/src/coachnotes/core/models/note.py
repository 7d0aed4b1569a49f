# Coach note model - a coach's record about a coaching session
import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, Integer, String, Text, event
from sqlalchemy.orm import Mapped
from sqlalchemy.orm import attributes as orm_attributes
from sqlalchemy.orm import mapped_column, relationship

from .base import BaseModel
from .types import GUID, StringListType

if TYPE_CHECKING:
    from .share import NoteShare


class AccessLevel(str, Enum):
    """Declared visibility tier of a note."""

    PRIVATE = "private"
    SHARED = "shared"
    TEAM = "team"


class CoachNote(BaseModel):
    """Coach note with optional encrypted body and sharing settings."""

    __tablename__ = "coach_notes"

    # identity - coach_id never changes after insert
    coach_id: Mapped[uuid.UUID] = mapped_column(GUID(), nullable=False)
    session_id: Mapped[uuid.UUID] = mapped_column(GUID(), nullable=False)
    client_id: Mapped[Optional[uuid.UUID]] = mapped_column(GUID(), nullable=True)
    audio_file_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # content - ciphertext when is_encrypted
    title: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    tags: Mapped[List[str]] = mapped_column(StringListType(50), nullable=False, default=list)
    is_encrypted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    encryption_version: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    searchable_content: Mapped[str] = mapped_column(Text, default="", nullable=False)
    edited_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # privacy
    access_level: Mapped[str] = mapped_column(
        String(20), default=AccessLevel.PRIVATE.value, nullable=False
    )
    allow_sharing: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # access tracking
    last_accessed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    access_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    shares: Mapped[List["NoteShare"]] = relationship(
        "NoteShare",
        back_populates="note",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="NoteShare.shared_at",
        doc="Users this note is explicitly shared with",
    )

    __table_args__ = (
        CheckConstraint("length(access_level) <= 20", name="ck_coach_notes_access_level_len"),
        CheckConstraint("title IS NULL OR length(title) <= 200", name="ck_coach_notes_title_len"),
        Index("idx_coach_notes_coach_id", "coach_id"),
        Index("idx_coach_notes_session_id", "session_id"),
        Index("idx_coach_notes_access_level", "access_level"),
        Index("idx_coach_notes_created_at", "created_at"),
        Index("idx_coach_notes_coach_created", "coach_id", "created_at"),
        Index("idx_coach_notes_last_accessed", "last_accessed_at"),
    )

    def __repr__(self) -> str:
        title = self.title or ""
        truncated = title if len(title) <= 30 else (title[:30] + "...")
        return f"<CoachNote(title='{truncated}', coach_id={self.coach_id})>"

    @property
    def shared_with(self) -> List[uuid.UUID]:
        """User ids with explicit view access, in the order they were added."""
        return [share.user_id for share in self.shares]

    def is_owned_by(self, user_id: uuid.UUID) -> bool:
        return self.coach_id == user_id


# Ensure relationship collections are initialized to avoid implicit lazy loads
@event.listens_for(CoachNote, "init", propagate=True)
def _init_note_collections(target, args, kwargs):
    if "shares" not in kwargs:
        orm_attributes.set_committed_value(target, "shares", [])
    if "tags" not in kwargs:
        target.tags = []
