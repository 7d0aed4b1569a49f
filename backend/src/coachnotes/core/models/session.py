# Coaching session - owned by the scheduling side, read here for authorization
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import BaseModel
from .types import GUID


class CoachingSession(BaseModel):
    """A scheduled session between a coach and a client."""

    __tablename__ = "coaching_sessions"

    coach_id: Mapped[uuid.UUID] = mapped_column(GUID(), nullable=False)
    client_id: Mapped[uuid.UUID] = mapped_column(GUID(), nullable=False)
    scheduled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="scheduled", nullable=False)

    __table_args__ = (
        Index("idx_coaching_sessions_coach_id", "coach_id"),
        Index("idx_coaching_sessions_client_id", "client_id"),
    )

    def __repr__(self) -> str:
        return f"<CoachingSession(id={self.id}, coach_id={self.coach_id}, status={self.status})>"

    def involves(self, user_id: uuid.UUID) -> bool:
        return user_id in (self.coach_id, self.client_id)
