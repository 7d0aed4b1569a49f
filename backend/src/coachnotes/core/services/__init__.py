"""
Service layer interfaces and implementations.
"""

from .interfaces import IHealthService, INoteService

from .access_policy import AccessDecision, AccessPolicy, NoteAction, Relationship
from .audit_trail import AuditTrail
from .health_service import HealthService
from .masking import mask_for_viewer
from .note_service import NoteService
from .search_index import SearchIndex, SearchPage

__all__ = [
    # Interfaces
    "IHealthService",
    "INoteService",

    # Implementations
    "AccessDecision",
    "AccessPolicy",
    "AuditTrail",
    "HealthService",
    "NoteAction",
    "NoteService",
    "Relationship",
    "SearchIndex",
    "SearchPage",
    "mask_for_viewer",
]
