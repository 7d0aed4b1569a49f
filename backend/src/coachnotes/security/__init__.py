"""Security utilities."""

from .encryption import EncryptionCodec
from .jwt import create_access_token, decode_access_token, get_identity_from_token

__all__ = [
    "EncryptionCodec",
    "create_access_token",
    "decode_access_token",
    "get_identity_from_token",
]
