"""Audit repository - insert and read, never update or delete."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.audit import NoteAuditEntry
from ..models.note import CoachNote


class AuditRepository:
    """Repository for audit entries."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def insert(self, entry: NoteAuditEntry) -> NoteAuditEntry:
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def lock_note(self, note_id: UUID) -> None:
        """Hold the note row until commit so appends for it run one at a time.

        No-op on SQLite, which serialises writers anyway.
        """
        stmt = select(CoachNote.id).where(CoachNote.id == note_id).with_for_update()
        await self.session.execute(stmt)

    async def last_timestamp(self, note_id: UUID) -> Optional[datetime]:
        """Latest timestamp recorded for a note."""
        stmt = select(func.max(NoteAuditEntry.timestamp)).where(NoteAuditEntry.note_id == note_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def recent(self, note_id: UUID, limit: int) -> List[NoteAuditEntry]:
        """Most recent entries first."""
        stmt = (
            select(NoteAuditEntry)
            .where(NoteAuditEntry.note_id == note_id)
            .order_by(desc(NoteAuditEntry.id))
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars())

    async def list_for_note(self, note_id: UUID) -> List[NoteAuditEntry]:
        """Whole trail in append order."""
        stmt = (
            select(NoteAuditEntry)
            .where(NoteAuditEntry.note_id == note_id)
            .order_by(NoteAuditEntry.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars())

    async def count(self, note_id: UUID) -> int:
        stmt = select(func.count(NoteAuditEntry.id)).where(NoteAuditEntry.note_id == note_id)
        result = await self.session.execute(stmt)
        return result.scalar() or 0
