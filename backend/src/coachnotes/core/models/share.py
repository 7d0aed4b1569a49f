# Explicit view grants on coach notes
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BaseModel, utcnow
from .types import GUID

if TYPE_CHECKING:
    from .note import CoachNote


class NoteShare(BaseModel):
    """Grants one user read access to one note."""

    __tablename__ = "note_shares"

    note_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("coach_notes.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(GUID(), nullable=False)
    shared_by_user_id: Mapped[uuid.UUID] = mapped_column(GUID(), nullable=False)

    shared_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    reason: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    note: Mapped["CoachNote"] = relationship("CoachNote", back_populates="shares")

    __table_args__ = (
        UniqueConstraint("note_id", "user_id", name="uq_note_shares_note_user"),
        CheckConstraint("reason IS NULL OR length(reason) <= 500", name="ck_note_shares_reason_len"),
        Index("idx_note_shares_note_id", "note_id"),
        Index("idx_note_shares_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<NoteShare(note_id={self.note_id}, user_id={self.user_id})>"
