"""
Access policy for coach notes.

Decisions are pure functions of the note and the caller's identity:

    relationship   view  edit  delete  share  unshare
    owner           yes   yes   yes     yes*   yes*
    admin           yes   yes   yes     yes*   yes*
    shared viewer   yes   no    no      no     no
    anyone else     no    no    no      no     no

    * only while the note allows sharing

access_level is informational; it never grants access on its own.
"""

from enum import Enum
from typing import Dict, FrozenSet, Optional
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.sql.elements import ColumnElement

from ..models.note import CoachNote
from ..models.session import CoachingSession
from ..models.share import NoteShare
from ..schemas.actor import UserRole


class NoteAction(str, Enum):
    VIEW = "view"
    EDIT = "edit"
    DELETE = "delete"
    SHARE = "share"
    UNSHARE = "unshare"


class Relationship(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    VIEWER = "viewer"
    OTHER = "other"


class AccessDecision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"
    SHARING_DISABLED = "sharing_disabled"


_ALL_ACTIONS: FrozenSet[NoteAction] = frozenset(NoteAction)

PERMISSIONS: Dict[Relationship, FrozenSet[NoteAction]] = {
    Relationship.OWNER: _ALL_ACTIONS,
    Relationship.ADMIN: _ALL_ACTIONS,
    Relationship.VIEWER: frozenset({NoteAction.VIEW}),
    Relationship.OTHER: frozenset(),
}

SHARING_ACTIONS: FrozenSet[NoteAction] = frozenset({NoteAction.SHARE, NoteAction.UNSHARE})


class AccessPolicy:
    """Stateless access rules for notes and sessions."""

    @staticmethod
    def relationship(note: CoachNote, actor_id: UUID, actor_role: UserRole) -> Relationship:
        if note.coach_id == actor_id:
            return Relationship.OWNER
        if actor_role == UserRole.ADMIN:
            return Relationship.ADMIN
        if actor_id in note.shared_with:
            return Relationship.VIEWER
        return Relationship.OTHER

    def decide(
        self, note: CoachNote, actor_id: UUID, actor_role: UserRole, action: NoteAction
    ) -> AccessDecision:
        """Detailed decision; never raises."""
        rel = self.relationship(note, actor_id, actor_role)
        if action not in PERMISSIONS[rel]:
            return AccessDecision.DENY
        if action in SHARING_ACTIONS and not note.allow_sharing:
            return AccessDecision.SHARING_DISABLED
        return AccessDecision.ALLOW

    def can_access(
        self, note: CoachNote, actor_id: UUID, actor_role: UserRole, action: NoteAction
    ) -> bool:
        return self.decide(note, actor_id, actor_role, action) is AccessDecision.ALLOW

    def can_edit(self, note: CoachNote, actor_id: UUID, actor_role: UserRole) -> bool:
        return self.can_access(note, actor_id, actor_role, NoteAction.EDIT)

    def sees_full_content(self, note: CoachNote, actor_id: UUID, actor_role: UserRole) -> bool:
        """Owner and admin get unmasked content."""
        return self.relationship(note, actor_id, actor_role) in (
            Relationship.OWNER,
            Relationship.ADMIN,
        )

    @staticmethod
    def can_create(session: CoachingSession, actor_id: UUID, actor_role: UserRole) -> bool:
        """Only the session's coach (or an admin) writes notes for it."""
        return actor_role == UserRole.ADMIN or session.coach_id == actor_id

    @staticmethod
    def can_list_session(session: CoachingSession, actor_id: UUID, actor_role: UserRole) -> bool:
        return actor_role == UserRole.ADMIN or session.involves(actor_id)

    @staticmethod
    def access_filter(actor_id: UUID, actor_role: UserRole) -> Optional[ColumnElement[bool]]:
        """The VIEW rule as a WHERE clause; None means no restriction."""
        if actor_role == UserRole.ADMIN:
            return None
        shared_ids = select(NoteShare.note_id).where(NoteShare.user_id == actor_id)
        return or_(CoachNote.coach_id == actor_id, CoachNote.id.in_(shared_ids))
