"""Note repository for database operations."""

import logging
from datetime import datetime
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value
from sqlalchemy.sql.elements import ColumnElement

from ..models.base import utcnow
from ..models.note import CoachNote
from ..models.share import NoteShare

logger = logging.getLogger(__name__)


class NoteRepository:
    """Repository for note database operations.

    Methods flush but never commit; the calling service owns the transaction.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, note: CoachNote) -> CoachNote:
        """Insert a new note."""
        self.session.add(note)
        await self.session.flush()
        return note

    async def get_by_id(self, note_id: UUID) -> Optional[CoachNote]:
        """Get note by ID with its shares."""
        stmt = select(CoachNote).where(CoachNote.id == note_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_many(
        self,
        note_ids: Iterable[UUID],
        access_clause: Optional[ColumnElement[bool]] = None,
    ) -> List[CoachNote]:
        """Load notes by id, keeping the requested order.

        Ids that are missing or fail the access clause are skipped.
        """
        ids = list(note_ids)
        if not ids:
            return []
        stmt = select(CoachNote).where(CoachNote.id.in_(ids))
        if access_clause is not None:
            stmt = stmt.where(access_clause)
        result = await self.session.execute(stmt)
        by_id = {note.id: note for note in result.scalars()}
        return [by_id[note_id] for note_id in ids if note_id in by_id]

    async def list_by_session(self, session_id: UUID) -> List[CoachNote]:
        """All notes of a coaching session, newest first."""
        stmt = (
            select(CoachNote)
            .where(CoachNote.session_id == session_id)
            .order_by(desc(CoachNote.created_at))
        )
        result = await self.session.execute(stmt)
        return list(result.scalars())

    async def find(
        self,
        access_clause: Optional[ColumnElement[bool]] = None,
        coach_id: Optional[UUID] = None,
        client_id: Optional[UUID] = None,
        session_id: Optional[UUID] = None,
        access_levels: Optional[List[str]] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
    ) -> List[CoachNote]:
        """Notes passing the access clause and the column filters, newest first."""
        stmt = select(CoachNote)
        if access_clause is not None:
            stmt = stmt.where(access_clause)
        if coach_id is not None:
            stmt = stmt.where(CoachNote.coach_id == coach_id)
        if client_id is not None:
            stmt = stmt.where(CoachNote.client_id == client_id)
        if session_id is not None:
            stmt = stmt.where(CoachNote.session_id == session_id)
        if access_levels:
            stmt = stmt.where(CoachNote.access_level.in_(access_levels))
        if created_from is not None:
            stmt = stmt.where(CoachNote.created_at >= created_from)
        if created_to is not None:
            stmt = stmt.where(CoachNote.created_at <= created_to)

        stmt = stmt.order_by(desc(CoachNote.created_at))
        result = await self.session.execute(stmt)
        return list(result.scalars())

    async def record_access(self, note: CoachNote) -> None:
        """Count a view.

        Done as one UPDATE so concurrent readers never lose increments;
        updated_at is written back unchanged since a view is not an edit.
        """
        now = utcnow()
        await self.session.execute(
            update(CoachNote)
            .where(CoachNote.id == note.id)
            .values(
                access_count=CoachNote.access_count + 1,
                last_accessed_at=now,
                updated_at=CoachNote.updated_at,
            )
            .execution_options(synchronize_session=False)
        )
        set_committed_value(note, "access_count", (note.access_count or 0) + 1)
        set_committed_value(note, "last_accessed_at", now)

    async def delete(self, note: CoachNote) -> None:
        """Delete a note; its shares go with it."""
        logger.debug(f"Deleting note {note.id} with {len(note.shares)} shares")
        await self.session.delete(note)
        await self.session.flush()

    # Sharing
    async def add_shares(
        self,
        note: CoachNote,
        user_ids: Iterable[UUID],
        shared_by: UUID,
        reason: Optional[str] = None,
    ) -> List[UUID]:
        """Grant view access; returns the ids that were not already shared."""
        existing = set(note.shared_with)
        added: List[UUID] = []
        for user_id in user_ids:
            if user_id in existing:
                continue
            note.shares.append(
                NoteShare(user_id=user_id, shared_by_user_id=shared_by, reason=reason)
            )
            existing.add(user_id)
            added.append(user_id)

        if added:
            await self.session.flush()
        return added

    async def remove_shares(self, note: CoachNote, user_ids: Iterable[UUID]) -> List[UUID]:
        """Revoke view access; returns the ids that were actually shared."""
        wanted = set(user_ids)
        removed: List[UUID] = []
        for share in list(note.shares):
            if share.user_id in wanted:
                note.shares.remove(share)
                removed.append(share.user_id)

        if removed:
            await self.session.flush()
        return removed

    async def clear_shares(self, note: CoachNote) -> List[UUID]:
        """Drop every share of a note."""
        return await self.remove_shares(note, note.shared_with)
