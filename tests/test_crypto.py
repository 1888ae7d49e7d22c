"""
tests/test_crypto.py
Unit tests for hashing, HMAC labelling and multibase helpers.
"""
import hashlib
import hmac

import pytest
from zero_reveal_sd.crypto import (
    generate_hmac_key,
    sha256_digest,
    base64url_encode,
    base64url_decode,
    multibase_encode,
    multibase_decode,
    HmacLabeler,
)
from zero_reveal_sd.config import HMAC_KEY_LENGTH
from zero_reveal_sd.errors import FormatError, ValidationError


class TestGenerateHmacKey:
    """Tests for HMAC key generation."""

    def test_key_length(self):
        """Key should be exactly 32 bytes (256 bits)."""
        key = generate_hmac_key()
        assert len(key) == HMAC_KEY_LENGTH
        assert len(key) == 32

    def test_key_randomness(self):
        """Each key should be unique."""
        keys = [generate_hmac_key() for _ in range(100)]
        assert len(set(keys)) == 100


class TestSha256Digest:
    """Tests for the SHA-256 helper."""

    def test_matches_hashlib(self):
        assert sha256_digest(b'test') == hashlib.sha256(b'test').digest()

    def test_hash_length(self):
        assert len(sha256_digest(b'')) == 32


class TestBase64Url:
    """Tests for unpadded base64url."""

    def test_url_safe_alphabet(self):
        """'+' and '/' should be replaced by '-' and '_'."""
        assert base64url_encode(b'\xfb\xff') == '-_8'

    def test_no_padding(self):
        """Output should never carry '=' padding."""
        assert base64url_encode(b'a') == 'YQ'
        assert base64url_decode('YQ') == b'a'

    def test_rejects_padding(self):
        with pytest.raises(FormatError):
            base64url_decode('YQ==')

    def test_rejects_standard_alphabet(self):
        with pytest.raises(FormatError):
            base64url_decode('+/8')

    def test_rejects_invalid_characters(self):
        with pytest.raises(FormatError):
            base64url_decode('ab$d')

    def test_rejects_non_string(self):
        with pytest.raises(FormatError):
            base64url_decode(b'YQ')


class TestMultibase:
    """Tests for 'u'-tagged multibase strings."""

    def test_header(self):
        assert multibase_encode(b'\x00\x01').startswith('u')

    def test_decode(self):
        assert multibase_decode('uAAE') == b'\x00\x01'

    def test_rejects_other_headers(self):
        """Only base64url multibase is accepted."""
        with pytest.raises(FormatError, match="base64url"):
            multibase_decode('zAAE')

    def test_rejects_empty(self):
        with pytest.raises(FormatError):
            multibase_decode('')


class TestHmacLabeler:
    """Tests for HMAC blank-node label blinding."""

    def test_deterministic(self):
        """Same key and id should produce the same label."""
        labeler = HmacLabeler(b'\x00' * 32)
        assert labeler.label('c14n0') == labeler.label('c14n0')

    def test_label_format(self):
        """Labels should be multibase base64url of the HMAC digest."""
        key = b'\x01' * 32
        labeler = HmacLabeler(key)
        expected = hmac.new(key, b'c14n3', 'sha256').digest()
        assert labeler.label('c14n3') == multibase_encode(expected)

    def test_distinct_ids(self):
        labeler = HmacLabeler()
        assert labeler.label('c14n0') != labeler.label('c14n1')

    def test_key_changes_label(self):
        """Different keys should produce different labels."""
        l1 = HmacLabeler(b'\x00' * 32).label('c14n0')
        l2 = HmacLabeler(b'\x01' * 32).label('c14n0')
        assert l1 != l2

    def test_export_rebuilds_labeler(self):
        labeler = HmacLabeler()
        again = HmacLabeler(labeler.export())
        assert again.label('c14n5') == labeler.label('c14n5')

    def test_rejects_short_key(self):
        with pytest.raises(ValidationError, match="hmacKey"):
            HmacLabeler(b'\x00' * 16)

