"""Coaching session lookups."""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.session import CoachingSession


class SessionRepository:
    """Read access to coaching sessions."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, session_id: UUID) -> Optional[CoachingSession]:
        stmt = select(CoachingSession).where(CoachingSession.id == session_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def add(self, coaching_session: CoachingSession) -> CoachingSession:
        """Insert a session (used by seeding and tests)."""
        self.session.add(coaching_session)
        await self.session.flush()
        return coaching_session
