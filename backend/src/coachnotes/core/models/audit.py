# Append-only audit log for coach notes
import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, utcnow
from .types import GUID


class AuditAction(str, Enum):
    """Closed set of audited events."""

    CREATED = "created"
    VIEWED = "viewed"
    UPDATED = "updated"
    DELETED = "deleted"
    SHARED = "shared"
    UNSHARED = "unshared"
    ACCESS_DENIED = "access_denied"


class NoteAuditEntry(Base):
    """
    One audit event.

    Rows are only ever inserted. note_id carries no foreign key so the
    trail of a deleted note (including its "deleted" entry) is kept.
    The integer id is the append order.
    """

    __tablename__ = "note_audit_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    note_id: Mapped[Optional[uuid.UUID]] = mapped_column(GUID(), nullable=True)
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    actor_id: Mapped[uuid.UUID] = mapped_column(GUID(), nullable=False)
    actor_role: Mapped[str] = mapped_column(String(20), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    details: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

    __table_args__ = (
        Index("idx_note_audit_note_id", "note_id"),
        Index("idx_note_audit_note_ts", "note_id", "timestamp"),
        Index("idx_note_audit_actor_id", "actor_id"),
        Index("idx_note_audit_action", "action"),
    )

    def __repr__(self) -> str:
        return f"<NoteAuditEntry(note_id={self.note_id}, action={self.action}, actor_id={self.actor_id})>"
