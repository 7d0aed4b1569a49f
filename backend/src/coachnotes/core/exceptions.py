"""
Error types raised by the coach notes core.

Every error carries an HTTP status code so the API layer can render it
without knowing about individual failure kinds. Messages never include
note content.
"""

from typing import Any, Dict, Optional


class CoachNotesError(Exception):
    """Base class for all coach notes errors."""

    status_code: int = 500
    error: str = "InternalError"

    def __init__(self, message: str = "Internal error", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(CoachNotesError):
    """Referenced note or session does not exist."""

    status_code = 404
    error = "NotFound"

    def __init__(self, resource: str = "Note"):
        super().__init__(f"{resource} not found")
        self.resource = resource


class ForbiddenError(CoachNotesError):
    """Access policy refused the action."""

    status_code = 403
    error = "Forbidden"

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message)


class NoteValidationError(CoachNotesError):
    """Malformed input that got past schema validation."""

    status_code = 400
    error = "ValidationError"


class DecryptionError(CoachNotesError):
    """Stored ciphertext could not be decrypted (corruption or key mismatch)."""

    status_code = 500
    error = "DecryptionError"

    def __init__(self, message: str = "Note content could not be decrypted"):
        super().__init__(message)


class ShareNotAllowedError(CoachNotesError):
    """Share or unshare attempted while sharing is disabled on the note."""

    status_code = 409
    error = "ShareNotAllowed"

    def __init__(self, message: str = "Sharing is not enabled for this note"):
        super().__init__(message)


class EncryptionKeyMissingError(RuntimeError):
    """No encryption key configured but an encrypted note was requested.

    A deployment fault rather than a domain error: it is logged where it
    surfaces and reaches clients as a plain internal error.
    """

    def __init__(self, message: str = "No note encryption key configured"):
        super().__init__(message)
