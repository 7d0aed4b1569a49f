"""Note service implementation.

Every operation runs as one unit of work on the request's session: the
access check, the note change, its searchable content and its audit entry
are committed together or not at all. Refusals are audited and committed
before the error is raised. Cached search results are invalidated only
after a change is committed.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ...config import Settings, get_settings
from ...security.encryption import EncryptionCodec
from ..exceptions import (
    CoachNotesError, ForbiddenError, NotFoundError, NoteValidationError, ShareNotAllowedError
)
from ..models.audit import AuditAction, NoteAuditEntry
from ..models.base import utcnow
from ..models.note import AccessLevel, CoachNote
from ..redis_client import RedisClient
from ..repositories.note_repository import NoteRepository
from ..repositories.session_repository import SessionRepository
from ..schemas.actor import Actor
from ..schemas.notes import (
    AuditTrailResponse, NoteCreate, NoteListResponse, NoteUpdate, NoteView,
    SessionNotesResponse
)
from ..schemas.search import NoteSearchRequest, NoteSearchResponse
from ..schemas.sharing import ShareRequest, SharingResponse, UnshareRequest
from .access_policy import AccessDecision, AccessPolicy, NoteAction
from .audit_trail import AuditTrail
from .interfaces import INoteService
from .masking import mask_audit_entries, mask_for_viewer
from .search_index import SearchIndex

logger = logging.getLogger(__name__)

# Plain fields an update may change, compared as stored
_PLAIN_FIELDS = ("title", "client_id", "audio_file_id")


class NoteService(INoteService):
    """Note service implementation."""

    def __init__(
        self,
        session: AsyncSession,
        codec: EncryptionCodec,
        cache: Optional[RedisClient] = None,
        settings: Optional[Settings] = None,
    ):
        self.session = session
        self.codec = codec
        self.settings = settings or get_settings()
        self.policy = AccessPolicy()
        self.notes = NoteRepository(session)
        self.sessions = SessionRepository(session)
        self.audit = AuditTrail(session)
        self.search = SearchIndex(self.notes, codec, cache, self.policy, self.settings)

    @asynccontextmanager
    async def _transaction(self, operation: str):
        try:
            yield
            await self.session.commit()
        except CoachNotesError:
            await self.session.rollback()
            raise
        except Exception:
            logger.exception("Note operation failed", extra={"operation": operation})
            await self.session.rollback()
            raise

    # Helpers
    async def _get_or_404(self, note_id: UUID) -> CoachNote:
        note = await self.notes.get_by_id(note_id)
        if note is None:
            raise NotFoundError("Note")
        return note

    async def _record_denial(
        self,
        note_id: Optional[UUID],
        actor: Actor,
        action: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Audit a refusal and commit it so it survives the error."""
        await self.audit.append(
            note_id,
            AuditAction.ACCESS_DENIED,
            actor,
            {"attempted_action": action, **(details or {})},
        )
        await self.session.commit()
        logger.warning(
            "Access denied",
            extra={
                "note_id": str(note_id) if note_id else None,
                "actor_id": str(actor.id),
                "actor_role": actor.role.value,
                "attempted_action": action,
            },
        )

    async def _authorize(self, note: CoachNote, actor: Actor, action: NoteAction) -> None:
        decision = self.policy.decide(note, actor.id, actor.role, action)
        if decision is AccessDecision.ALLOW:
            return
        if decision is AccessDecision.SHARING_DISABLED:
            await self._record_denial(note.id, actor, action.value, {"reason": "sharing_disabled"})
            raise ShareNotAllowedError()
        await self._record_denial(note.id, actor, action.value, {"reason": "not_permitted"})
        raise ForbiddenError()

    def _plaintext(self, note: CoachNote) -> str:
        if note.is_encrypted:
            return self.codec.decrypt(note.body)
        return note.body

    def _visible_body(self, note: CoachNote, actor: Actor) -> str:
        """Plaintext for callers who see content, nothing to decrypt otherwise."""
        if self.policy.sees_full_content(note, actor.id, actor.role):
            return self._plaintext(note)
        return ""

    def _store_body(self, note: CoachNote, plaintext: str) -> None:
        if note.is_encrypted:
            note.body = self.codec.encrypt(plaintext)
            note.encryption_version = self.codec.version
        else:
            note.body = plaintext
            note.encryption_version = None

    def _view(
        self,
        note: CoachNote,
        body: str,
        actor: Actor,
        entries: Iterable[NoteAuditEntry] = (),
    ) -> NoteView:
        return mask_for_viewer(
            note, body, actor.id, actor.role, entries, self.settings.masked_placeholder
        )

    async def _tail(self, note_id: UUID) -> List[NoteAuditEntry]:
        return await self.audit.recent(note_id, self.settings.audit_tail_size)

    # Operations
    async def create_note(self, actor: Actor, request: NoteCreate) -> NoteView:
        """Create new note."""
        async with self._transaction("create_note"):
            coaching_session = await self.sessions.get_by_id(request.session_id)
            if coaching_session is None:
                raise NotFoundError("Session")

            if not self.policy.can_create(coaching_session, actor.id, actor.role):
                await self._record_denial(
                    None, actor, "create", {"session_id": str(request.session_id)}
                )
                raise ForbiddenError()

            note = CoachNote(
                coach_id=coaching_session.coach_id,
                session_id=coaching_session.id,
                client_id=request.client_id or coaching_session.client_id,
                audio_file_id=request.audio_file_id,
                title=request.title,
                tags=list(request.tags),
                is_encrypted=request.is_encrypted,
                access_level=request.access_level.value,
                allow_sharing=request.allow_sharing,
            )
            self._store_body(note, request.body)
            self.search.index(note, request.body)
            await self.notes.add(note)

            await self.audit.append(
                note.id,
                AuditAction.CREATED,
                actor,
                {"session_id": str(note.session_id), "is_encrypted": note.is_encrypted},
            )
            view = self._view(note, request.body, actor, await self._tail(note.id))

        await self.search.invalidate()
        logger.info(
            "Note created",
            extra={"note_id": str(note.id), "coach_id": str(note.coach_id), "actor_id": str(actor.id)},
        )
        return view

    async def get_note(self, actor: Actor, note_id: UUID) -> NoteView:
        """Get note by ID, recording the view."""
        async with self._transaction("get_note"):
            note = await self._get_or_404(note_id)
            await self._authorize(note, actor, NoteAction.VIEW)

            body = self._visible_body(note, actor)
            await self.notes.record_access(note)
            await self.audit.append(note.id, AuditAction.VIEWED, actor)
            view = self._view(note, body, actor, await self._tail(note.id))

        return view

    async def update_note(self, actor: Actor, note_id: UUID, request: NoteUpdate) -> NoteView:
        """Apply the fields present in the request."""
        async with self._transaction("update_note"):
            note = await self._get_or_404(note_id)
            await self._authorize(note, actor, NoteAction.EDIT)

            fields = request.provided_fields()
            body = self._plaintext(note)
            changes: List[str] = []

            for name in _PLAIN_FIELDS:
                if name in fields and fields[name] != getattr(note, name):
                    setattr(note, name, fields[name])
                    changes.append(name)

            if "tags" in fields and fields["tags"] != list(note.tags or []):
                note.tags = list(fields["tags"])
                changes.append("tags")

            if "access_level" in fields and fields["access_level"].value != note.access_level:
                note.access_level = fields["access_level"].value
                changes.append("access_level")

            if "allow_sharing" in fields and fields["allow_sharing"] != note.allow_sharing:
                note.allow_sharing = fields["allow_sharing"]
                changes.append("allow_sharing")
                # sharing off empties the share list
                if not note.allow_sharing and note.shares:
                    await self.notes.clear_shares(note)
                    changes.append("shared_with")

            body_changed = "body" in fields and fields["body"] != body
            encryption_changed = (
                "is_encrypted" in fields and fields["is_encrypted"] != note.is_encrypted
            )
            if body_changed:
                body = fields["body"]
                changes.append("body")
            if encryption_changed:
                note.is_encrypted = fields["is_encrypted"]
                changes.append("is_encrypted")
            if body_changed or encryption_changed:
                self._store_body(note, body)

            self.search.index(note, body)
            note.edited_at = utcnow()

            await self.audit.append(
                note.id, AuditAction.UPDATED, actor, {"changes": sorted(changes)}
            )
            view = self._view(note, body, actor, await self._tail(note.id))

        await self.search.invalidate()
        logger.info(
            "Note updated",
            extra={"note_id": str(note_id), "actor_id": str(actor.id), "changes": sorted(changes)},
        )
        return view

    async def delete_note(self, actor: Actor, note_id: UUID) -> None:
        """Delete note; the Deleted entry is committed with the removal."""
        async with self._transaction("delete_note"):
            note = await self._get_or_404(note_id)
            await self._authorize(note, actor, NoteAction.DELETE)

            await self.audit.append(
                note.id, AuditAction.DELETED, actor, {"session_id": str(note.session_id)}
            )
            await self.notes.delete(note)

        await self.search.remove(note_id)
        logger.info("Note deleted", extra={"note_id": str(note_id), "actor_id": str(actor.id)})

    async def share_note(
        self, actor: Actor, note_id: UUID, request: ShareRequest
    ) -> SharingResponse:
        async with self._transaction("share_note"):
            note = await self._get_or_404(note_id)
            # malformed requests fail before any policy check or audit write
            if note.coach_id in request.user_ids:
                raise NoteValidationError("Cannot share a note with its owner")
            await self._authorize(note, actor, NoteAction.SHARE)

            added = await self.notes.add_shares(note, request.user_ids, actor.id, request.reason)
            await self.audit.append(
                note.id,
                AuditAction.SHARED,
                actor,
                {"user_ids": [str(u) for u in added], "reason": request.reason},
            )
            response = SharingResponse(note_id=note.id, shared_with=note.shared_with, changed=added)

        await self.search.invalidate()
        return response

    async def unshare_note(
        self, actor: Actor, note_id: UUID, request: UnshareRequest
    ) -> SharingResponse:
        async with self._transaction("unshare_note"):
            note = await self._get_or_404(note_id)
            await self._authorize(note, actor, NoteAction.UNSHARE)

            removed = await self.notes.remove_shares(note, request.user_ids)
            await self.audit.append(
                note.id,
                AuditAction.UNSHARED,
                actor,
                {"user_ids": [str(u) for u in removed], "reason": request.reason},
            )
            response = SharingResponse(
                note_id=note.id, shared_with=note.shared_with, changed=removed
            )

        await self.search.invalidate()
        return response

    async def list_session_notes(self, actor: Actor, session_id: UUID) -> SessionNotesResponse:
        """Visible notes of a session; every note checked is audited."""
        async with self._transaction("list_session_notes"):
            coaching_session = await self.sessions.get_by_id(session_id)
            if coaching_session is None:
                raise NotFoundError("Session")

            if not self.policy.can_list_session(coaching_session, actor.id, actor.role):
                await self._record_denial(
                    None, actor, "list_session", {"session_id": str(session_id)}
                )
                raise ForbiddenError()

            views: List[NoteView] = []
            for note in await self.notes.list_by_session(session_id):
                if not self.policy.can_access(note, actor.id, actor.role, NoteAction.VIEW):
                    await self.audit.append(
                        note.id,
                        AuditAction.ACCESS_DENIED,
                        actor,
                        {"attempted_action": NoteAction.VIEW.value, "via": "session_list"},
                    )
                    continue

                body = self._visible_body(note, actor)
                await self.notes.record_access(note)
                await self.audit.append(
                    note.id, AuditAction.VIEWED, actor, {"via": "session_list"}
                )
                views.append(self._view(note, body, actor))

        return SessionNotesResponse(session_id=session_id, notes=views, total=len(views))

    async def list_coach_notes(
        self,
        actor: Actor,
        page: int = 1,
        limit: int = 20,
        session_id: Optional[UUID] = None,
        access_level: Optional[AccessLevel] = None,
        search: Optional[str] = None,
    ) -> NoteListResponse:
        request = NoteSearchRequest(
            query=search,
            coach_id=actor.id,
            session_id=session_id,
            access_levels=[access_level] if access_level else None,
            page=page,
            limit=limit,
        )
        result = await self.search.query(actor.id, actor.role, request)
        items = [self._view(note, self._visible_body(note, actor), actor) for note in result.notes]
        return NoteListResponse.create(
            items=items, total_count=result.total_count, page=result.page, limit=result.limit
        )

    async def get_audit_trail(self, actor: Actor, note_id: UUID) -> AuditTrailResponse:
        note = await self.notes.get_by_id(note_id)

        if note is None:
            # trails outlive their notes; only admins may read orphaned ones
            entries = await self.audit.entries(note_id) if actor.is_admin else []
            if not entries:
                raise NotFoundError("Note")
        else:
            if not self.policy.sees_full_content(note, actor.id, actor.role):
                async with self._transaction("get_audit_trail"):
                    await self._record_denial(note.id, actor, "read_audit")
                    raise ForbiddenError()
            entries = await self.audit.entries(note_id)

        return AuditTrailResponse(
            note_id=note_id, entries=mask_audit_entries(entries, full=True), total=len(entries)
        )

    async def search_notes(self, actor: Actor, request: NoteSearchRequest) -> NoteSearchResponse:
        result = await self.search.query(actor.id, actor.role, request)
        items = [self._view(note, self._visible_body(note, actor), actor) for note in result.notes]
        return NoteSearchResponse.create(
            items=items,
            total_count=result.total_count,
            page=result.page,
            limit=result.limit,
            query=request.query,
            filters_applied=result.metadata.get("filters", {}),
            search_time_ms=result.metadata.get("search_time_ms", 0.0),
        )

    async def suggest(self, actor: Actor, prefix: str, limit: int = 10) -> List[str]:
        return await self.search.suggest(actor.id, actor.role, prefix, limit)

    async def popular_tags(self, actor: Actor, limit: int = 20) -> List[Dict[str, Any]]:
        return await self.search.popular_tags(actor.id, actor.role, limit)
