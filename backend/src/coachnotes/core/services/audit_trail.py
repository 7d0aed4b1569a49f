"""Append-only audit trail for notes."""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ..models.audit import AuditAction, NoteAuditEntry
from ..models.base import as_utc, utcnow
from ..repositories.audit_repository import AuditRepository
from ..schemas.actor import Actor

logger = logging.getLogger(__name__)


class AuditTrail:
    """Records who did what to which note.

    Each append is a single INSERT so concurrent writers never drop each
    other's entries. Timestamps never go backwards for a given note: if
    the clock reads earlier than the last entry, the last timestamp is
    reused and the sequence id keeps the order. The note row is locked
    before the last timestamp is read, so appends for one note are
    serialised until the surrounding transaction ends.
    """

    def __init__(self, session: AsyncSession):
        self.repo = AuditRepository(session)

    async def append(
        self,
        note_id: Optional[UUID],
        action: AuditAction,
        actor: Actor,
        details: Optional[Dict[str, Any]] = None,
    ) -> NoteAuditEntry:
        if note_id is not None:
            await self.repo.lock_note(note_id)
        timestamp = utcnow()
        if note_id is not None:
            last = as_utc(await self.repo.last_timestamp(note_id))
            if last is not None and last > timestamp:
                timestamp = last

        entry = NoteAuditEntry(
            note_id=note_id,
            action=action.value,
            actor_id=actor.id,
            actor_role=actor.role.value,
            timestamp=timestamp,
            ip_address=actor.ip_address,
            user_agent=actor.user_agent,
            details=details or {},
        )
        await self.repo.insert(entry)

        logger.debug(
            "Audit entry recorded",
            extra={"note_id": str(note_id) if note_id else None, "action": action.value, "actor_id": str(actor.id)},
        )
        return entry

    async def recent(self, note_id: UUID, limit: int = 10) -> List[NoteAuditEntry]:
        """Newest first."""
        return await self.repo.recent(note_id, limit)

    async def entries(self, note_id: UUID) -> List[NoteAuditEntry]:
        """Oldest first."""
        return await self.repo.list_for_note(note_id)

    async def count(self, note_id: UUID) -> int:
        return await self.repo.count(note_id)
