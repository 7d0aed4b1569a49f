"""Repository layer for data access."""

from .audit_repository import AuditRepository
from .note_repository import NoteRepository
from .session_repository import SessionRepository

__all__ = [
    "AuditRepository",
    "NoteRepository",
    "SessionRepository",
]
