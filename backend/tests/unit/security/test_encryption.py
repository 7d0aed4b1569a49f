"""Tests for note body encryption."""

import pytest

from coachnotes.config import Settings
from coachnotes.core.exceptions import DecryptionError, EncryptionKeyMissingError
from coachnotes.security.encryption import EncryptionCodec


@pytest.fixture
def key():
    return EncryptionCodec.generate_key()


class TestEncryptionCodec:

    @pytest.mark.parametrize(
        "plaintext",
        [
            "Client showed progress.",
            "",
            "naïve café, ünïcödé ✓",
            "line one\nline two\ttabbed",
            "x" * 10_000,
        ],
    )
    def test_round_trip(self, key, plaintext):
        codec = EncryptionCodec([key], index_key="k")
        assert codec.decrypt(codec.encrypt(plaintext)) == plaintext

    def test_ciphertext_differs_from_plaintext_and_between_calls(self, key):
        codec = EncryptionCodec([key], index_key="k")
        first = codec.encrypt("Client showed progress.")
        second = codec.encrypt("Client showed progress.")

        assert "Client showed progress." not in first
        assert first != second
        assert codec.decrypt(first) == codec.decrypt(second)

    def test_wrong_key_raises_decryption_error(self, key):
        token = EncryptionCodec([key], index_key="k").encrypt("secret")
        other = EncryptionCodec([EncryptionCodec.generate_key()], index_key="k")

        with pytest.raises(DecryptionError):
            other.decrypt(token)

    def test_corrupted_token_raises_decryption_error(self, key):
        codec = EncryptionCodec([key], index_key="k")
        token = codec.encrypt("secret")
        corrupted = token[:-4] + ("AAAA" if not token.endswith("AAAA") else "BBBB")

        with pytest.raises(DecryptionError):
            codec.decrypt(corrupted)
        with pytest.raises(DecryptionError):
            codec.decrypt("not a token at all")

    def test_rotation_old_tokens_still_decrypt(self, key):
        old = EncryptionCodec([key], index_key="k")
        token = old.encrypt("before rotation")

        new_key = EncryptionCodec.generate_key()
        rotated = EncryptionCodec([new_key, key], index_key="k")
        assert rotated.decrypt(token) == "before rotation"

        # re-encrypted under the new primary key only
        fresh = rotated.rotate(token)
        only_new = EncryptionCodec([new_key], index_key="k")
        assert only_new.decrypt(fresh) == "before rotation"
        with pytest.raises(DecryptionError):
            only_new.decrypt(token)

    def test_missing_key(self):
        codec = EncryptionCodec([], index_key="k")
        assert codec.is_configured is False

        with pytest.raises(EncryptionKeyMissingError):
            codec.encrypt("x")
        with pytest.raises(EncryptionKeyMissingError):
            codec.decrypt("x")

    def test_blind_index_is_deterministic_and_keyed(self):
        a = EncryptionCodec([], index_key="one")
        b = EncryptionCodec([], index_key="two")

        assert a.blind_index("progress") == a.blind_index("progress")
        assert a.blind_index("progress") != a.blind_index("setback")
        assert a.blind_index("progress") != b.blind_index("progress")
        assert "progress" not in a.blind_index("progress")

    def test_from_settings(self, key):
        settings = Settings(note_encryption_keys=[key], search_index_key="idx", encryption_version="2.0")
        codec = EncryptionCodec.from_settings(settings)

        assert codec.is_configured
        assert codec.version == "2.0"
        assert codec.decrypt(codec.encrypt("hi")) == "hi"
