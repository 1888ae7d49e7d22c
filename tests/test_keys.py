"""
tests/test_keys.py
Unit tests for the P-256 Multikey.
"""
import pytest
from zero_reveal_sd.keys import EcdsaMultikey
from zero_reveal_sd.errors import LogicError, ValidationError


@pytest.fixture
def key():
    return EcdsaMultikey.generate(
        id="did:example:issuer#key-1",
        controller="did:example:issuer"
    )


class TestSignVerify:
    """Tests for raw r||s signatures."""

    def test_signature_length(self, key):
        assert len(key.sign(b'hello')) == 64

    def test_valid_signature(self, key):
        sig = key.sign(b'hello')
        assert key.verify(b'hello', sig) is True

    def test_tampered_message(self, key):
        sig = key.sign(b'hello')
        assert key.verify(b'hellO', sig) is False

    def test_tampered_signature(self, key):
        sig = bytearray(key.sign(b'hello'))
        sig[-1] ^= 0x01
        assert key.verify(b'hello', bytes(sig)) is False

    def test_wrong_length_signature(self, key):
        """Bad lengths should fail without raising."""
        assert key.verify(b'hello', b'\x00' * 63) is False

    def test_other_key(self, key):
        other = EcdsaMultikey.generate()
        assert other.verify(b'hello', key.sign(b'hello')) is False

    def test_public_only_key_cannot_sign(self, key):
        public = EcdsaMultikey.from_public_key_bytes(key.public_key_bytes)
        with pytest.raises(LogicError, match="private key"):
            public.sign(b'hello')


class TestEncoding:
    """Tests for the multicodec / multibase public key forms."""

    def test_public_key_bytes(self, key):
        data = key.public_key_bytes
        assert len(data) == 35
        assert data[:2] == b'\x80\x24'

    def test_multibase_prefix(self, key):
        """P-256 multikeys start with 'zDn'."""
        assert key.public_key_multibase.startswith('zDn')

    def test_multibase_roundtrip(self, key):
        loaded = EcdsaMultikey.from_public_key_multibase(key.public_key_multibase)
        assert loaded.public_key_bytes == key.public_key_bytes
        assert loaded.verify(b'msg', key.sign(b'msg'))

    def test_verification_method(self, key):
        vm = key.to_verification_method()
        assert vm['type'] == 'Multikey'
        assert vm['id'] == "did:example:issuer#key-1"
        assert vm['controller'] == "did:example:issuer"

        loaded = EcdsaMultikey.from_verification_method(vm)
        assert loaded.id == key.id
        assert loaded.public_key_bytes == key.public_key_bytes

    def test_rejects_wrong_length(self, key):
        with pytest.raises(ValidationError, match="35 bytes"):
            EcdsaMultikey.from_public_key_bytes(key.public_key_bytes[:-1])

    def test_rejects_wrong_header(self, key):
        data = b'\xed\x01' + key.public_key_bytes[2:]
        with pytest.raises(ValidationError, match="P-256"):
            EcdsaMultikey.from_public_key_bytes(data)

    def test_rejects_base64url_multibase(self, key):
        with pytest.raises(ValidationError, match="base58btc"):
            EcdsaMultikey.from_public_key_multibase('u' + 'A' * 47)

    def test_algorithm(self, key):
        assert key.algorithm == "P-256"
