"""
Database models for the coach notes backend.

Models included:
    - CoachNote: note content, privacy settings and access tracking
    - NoteShare: explicit view grants on a note
    - NoteAuditEntry: insert-only audit log, outlives deleted notes
    - CoachingSession: read-only view of scheduled sessions
"""

from .audit import AuditAction, NoteAuditEntry
from .base import Base, BaseModel
from .note import AccessLevel, CoachNote
from .session import CoachingSession
from .share import NoteShare

__all__ = [
    "Base",
    "BaseModel",
    "AccessLevel",
    "AuditAction",
    "CoachNote",
    "CoachingSession",
    "NoteAuditEntry",
    "NoteShare",
]
