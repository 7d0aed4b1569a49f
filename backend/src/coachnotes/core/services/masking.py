"""Viewer-specific projection of notes.

Every read path returns notes through mask_for_viewer so redaction rules
live in one place.
"""

from typing import Iterable, List, Optional
from uuid import UUID

from ...config import get_settings
from ..models.audit import NoteAuditEntry
from ..models.base import as_utc
from ..models.note import AccessLevel, CoachNote
from ..schemas.actor import UserRole
from ..schemas.notes import AuditEntryView, NoteView
from .access_policy import AccessPolicy

_policy = AccessPolicy()


def _audit_view(entry: NoteAuditEntry, full: bool) -> AuditEntryView:
    if not full:
        return AuditEntryView(
            action=entry.action,
            timestamp=as_utc(entry.timestamp),
            actor_role=entry.actor_role,
        )
    return AuditEntryView(
        action=entry.action,
        timestamp=as_utc(entry.timestamp),
        actor_role=entry.actor_role,
        actor_id=entry.actor_id,
        ip_address=entry.ip_address,
        user_agent=entry.user_agent,
        details=entry.details,
    )


def mask_audit_entries(
    entries: Iterable[NoteAuditEntry], full: bool
) -> List[AuditEntryView]:
    return [_audit_view(entry, full) for entry in entries]


def mask_for_viewer(
    note: CoachNote,
    body: str,
    actor_id: UUID,
    actor_role: UserRole,
    audit_entries: Iterable[NoteAuditEntry] = (),
    placeholder: Optional[str] = None,
) -> NoteView:
    """Build the view of a note for one caller.

    body is the plaintext (already decrypted). Owner and admin see it as is;
    anyone else gets the placeholder in body, searchable_content and
    audio_file_id, and audit entries reduced to action, timestamp and role.
    """
    if placeholder is None:
        placeholder = get_settings().masked_placeholder

    full = _policy.sees_full_content(note, actor_id, actor_role)

    return NoteView(
        id=note.id,
        coach_id=note.coach_id,
        session_id=note.session_id,
        client_id=note.client_id,
        title=note.title,
        body=body if full else placeholder,
        searchable_content=(note.searchable_content or "") if full else placeholder,
        audio_file_id=note.audio_file_id if full else (placeholder if note.audio_file_id else None),
        tags=list(note.tags or []),
        is_encrypted=note.is_encrypted,
        access_level=AccessLevel(note.access_level),
        allow_sharing=note.allow_sharing,
        shared_with=note.shared_with,
        is_owner=note.is_owned_by(actor_id),
        can_edit=_policy.can_edit(note, actor_id, actor_role),
        is_masked=not full,
        created_at=as_utc(note.created_at),
        updated_at=as_utc(note.updated_at),
        edited_at=as_utc(note.edited_at),
        last_accessed_at=as_utc(note.last_accessed_at),
        access_count=note.access_count or 0,
        audit_trail=mask_audit_entries(audit_entries, full),
    )
