"""Field encryption for note bodies.

Bodies are encrypted with Fernet (AES-CBC + HMAC, random IV per call), so
encrypting the same text twice yields different tokens that both decrypt to
the original. Several keys can be configured for rotation: the first one
encrypts, any of them decrypts.

The codec also computes blind-index digests (HMAC-SHA256 of a normalized
search term) so encrypted notes can be searched without storing their words.
"""

import hashlib
import hmac
import logging
from typing import Iterable, List, Optional

from cryptography.fernet import Fernet, InvalidToken, MultiFernet

from ..config import Settings, get_settings
from ..core.exceptions import DecryptionError, EncryptionKeyMissingError

logger = logging.getLogger(__name__)


class EncryptionCodec:
    """Encrypts and decrypts note bodies with the configured keys."""

    def __init__(self, keys: Iterable[str], index_key: str, version: str = "1.0"):
        self._keys: List[str] = [k for k in keys if k]
        self._fernet: Optional[MultiFernet] = None
        if self._keys:
            self._fernet = MultiFernet([Fernet(k.encode()) for k in self._keys])
        self._index_key = index_key.encode()
        self.version = version

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "EncryptionCodec":
        settings = settings or get_settings()
        return cls(
            keys=settings.note_encryption_keys,
            index_key=settings.search_index_key,
            version=settings.encryption_version,
        )

    @staticmethod
    def generate_key() -> str:
        """New random Fernet key (urlsafe base64 text)."""
        return Fernet.generate_key().decode()

    @property
    def is_configured(self) -> bool:
        return self._fernet is not None

    def _require_fernet(self) -> MultiFernet:
        if self._fernet is None:
            raise EncryptionKeyMissingError()
        return self._fernet

    def encrypt(self, plaintext: str) -> str:
        """Encrypt text with the primary key."""
        return self._require_fernet().encrypt(plaintext.encode("utf-8")).decode("ascii")

    def decrypt(self, token: str) -> str:
        """Decrypt a token produced by encrypt() with any configured key."""
        fernet = self._require_fernet()
        try:
            return fernet.decrypt(token.encode("ascii")).decode("utf-8")
        except (InvalidToken, UnicodeError) as e:
            logger.error("Failed to decrypt note body: %s", type(e).__name__)
            raise DecryptionError() from e

    def rotate(self, token: str) -> str:
        """Re-encrypt a token under the primary key."""
        fernet = self._require_fernet()
        try:
            return fernet.rotate(token.encode("ascii")).decode("ascii")
        except (InvalidToken, UnicodeError) as e:
            raise DecryptionError() from e

    def blind_index(self, term: str) -> str:
        """Keyed digest of an already normalized term."""
        return hmac.new(self._index_key, term.encode("utf-8"), hashlib.sha256).hexdigest()
