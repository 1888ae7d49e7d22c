"""
zero_reveal_sd/crypto.py
Hashing, HMAC blank-node blinding and base64url/multibase helpers.
"""
import base64
import binascii
import hashlib
import hmac
import secrets
from typing import Optional

from .config import HMAC_KEY_LENGTH, MULTIBASE_BASE64URL_HEADER
from .errors import FormatError, ValidationError

HASH_ALGORITHM = 'sha256'


def generate_hmac_key() -> bytes:
    """Generate a fresh 256-bit HMAC key for blank-node label blinding.

    Uses the secrets module (OS CSPRNG).

    Returns:
        32 bytes of cryptographically random data
    """
    return secrets.token_bytes(HMAC_KEY_LENGTH)


def sha256_digest(data: bytes) -> bytes:
    """Return the 32-byte SHA-256 digest of data."""
    return hashlib.sha256(data).digest()


def base64url_encode(data: bytes) -> str:
    """Encode bytes as unpadded base64url text."""
    return base64.urlsafe_b64encode(data).rstrip(b'=').decode('ascii')


def base64url_decode(text: str) -> bytes:
    """Decode unpadded base64url text.

    Raises:
        FormatError: If text contains characters outside the base64url
            alphabet or has an impossible length
    """
    if not isinstance(text, str):
        raise FormatError("base64url input must be a string")
    if '=' in text or '+' in text or '/' in text:
        raise FormatError("base64url input must be unpadded and url-safe")
    padded = text + '=' * (-len(text) % 4)
    try:
        return base64.b64decode(padded, altchars=b'-_', validate=True)
    except (binascii.Error, ValueError) as exc:
        raise FormatError(f"Invalid base64url data: {exc}") from exc


def multibase_encode(data: bytes) -> str:
    """Encode bytes as a base64url-no-pad multibase string ('u' header)."""
    return MULTIBASE_BASE64URL_HEADER + base64url_encode(data)


def multibase_decode(text: str) -> bytes:
    """Decode a 'u'-tagged multibase string.

    Raises:
        FormatError: If the tag is missing or not base64url
    """
    if not isinstance(text, str) or not text:
        raise FormatError("multibase value must be a non-empty string")
    if text[0] != MULTIBASE_BASE64URL_HEADER:
        raise FormatError(
            "Only base64url multibase encoding ('u') is supported.")
    return base64url_decode(text[1:])


class HmacLabeler:
    """Keyed pseudorandom function producing blinded blank-node labels.

    The same key always yields the same label for a canonical identifier,
    so a holder that receives the exported key can reproduce the labels
    used at signing time.

    Example:
        labeler = HmacLabeler()
        label = labeler.label("c14n0")   # 'u' + base64url(HMAC)
        again = HmacLabeler(labeler.export())
        assert again.label("c14n0") == label
    """

    def __init__(self, key: Optional[bytes] = None):
        if key is None:
            key = generate_hmac_key()
        if not isinstance(key, (bytes, bytearray)) or len(key) != HMAC_KEY_LENGTH:
            raise ValidationError(
                f'"hmacKey" must be {HMAC_KEY_LENGTH} bytes.')
        self._key = bytes(key)

    def sign(self, data: bytes) -> bytes:
        """Return HMAC-SHA256(key, data)."""
        return hmac.new(self._key, data, HASH_ALGORITHM).digest()

    def label(self, canonical_id: str) -> str:
        """Blind a canonical blank-node identifier such as 'c14n3'."""
        return multibase_encode(self.sign(canonical_id.encode('utf-8')))

    def export(self) -> bytes:
        """Export the raw key so the labeler can be rebuilt later."""
        return self._key
