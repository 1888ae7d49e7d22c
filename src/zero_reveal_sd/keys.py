"""
zero_reveal_sd/keys.py
ECDSA P-256 Multikey used for both the issuer identity key and the
single-use statement key.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

import base58
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from .config import (
    MULTIBASE_BASE58BTC_HEADER,
    P256_PUBLIC_KEY_HEADER,
    PUBLIC_KEY_LENGTH,
    REQUIRED_ALGORITHM,
    SIGNATURE_LENGTH,
)
from .errors import LogicError, ValidationError

_SCALAR_LENGTH = SIGNATURE_LENGTH // 2


@dataclass
class EcdsaMultikey:
    """P-256 key pair in Multikey form.

    Signatures are raw 64-byte r||s values over SHA-256, the public key is
    the 35-byte multicodec-prefixed compressed point.

    Example:
        key = EcdsaMultikey.generate(id="did:example:issuer#key-1")
        sig = key.sign(b"hello")
        assert key.verify(b"hello", sig)
    """
    public_key: ec.EllipticCurvePublicKey
    private_key: Optional[ec.EllipticCurvePrivateKey] = None
    id: Optional[str] = None
    controller: Optional[str] = None

    algorithm = REQUIRED_ALGORITHM

    @classmethod
    def generate(
        cls,
        id: Optional[str] = None,
        controller: Optional[str] = None
    ) -> 'EcdsaMultikey':
        """Generate a fresh P-256 key pair."""
        private_key = ec.generate_private_key(ec.SECP256R1())
        return cls(
            public_key=private_key.public_key(),
            private_key=private_key,
            id=id,
            controller=controller
        )

    @classmethod
    def from_public_key_bytes(
        cls,
        data: bytes,
        id: Optional[str] = None,
        controller: Optional[str] = None
    ) -> 'EcdsaMultikey':
        """Load a public key from its 35-byte multicodec form.

        Raises:
            ValidationError: If the header, length or curve point is invalid
        """
        if not isinstance(data, (bytes, bytearray)) or len(data) != PUBLIC_KEY_LENGTH:
            raise ValidationError(
                f'"publicKey" must be {PUBLIC_KEY_LENGTH} bytes.')
        if bytes(data[:2]) != P256_PUBLIC_KEY_HEADER:
            raise ValidationError('"publicKey" is not a P-256 multikey.')
        try:
            public_key = ec.EllipticCurvePublicKey.from_encoded_point(
                ec.SECP256R1(), bytes(data[2:]))
        except ValueError as exc:
            raise ValidationError(
                '"publicKey" is not a valid P-256 point.') from exc
        return cls(public_key=public_key, id=id, controller=controller)

    @classmethod
    def from_public_key_multibase(
        cls,
        public_key_multibase: str,
        id: Optional[str] = None,
        controller: Optional[str] = None
    ) -> 'EcdsaMultikey':
        """Load a public key from a 'z' (base58btc) multibase string."""
        if (not isinstance(public_key_multibase, str) or
                not public_key_multibase.startswith(MULTIBASE_BASE58BTC_HEADER)):
            raise ValidationError(
                '"publicKeyMultibase" must be a base58btc multibase string.')
        try:
            data = base58.b58decode(public_key_multibase[1:])
        except ValueError as exc:
            raise ValidationError(
                '"publicKeyMultibase" is not valid base58btc.') from exc
        return cls.from_public_key_bytes(data, id=id, controller=controller)

    @classmethod
    def from_verification_method(
        cls,
        verification_method: Dict[str, Any]
    ) -> 'EcdsaMultikey':
        """Load the public key described by a Multikey verification method."""
        if not isinstance(verification_method, dict):
            raise ValidationError('"verificationMethod" must be an object.')
        return cls.from_public_key_multibase(
            verification_method.get('publicKeyMultibase'),
            id=verification_method.get('id'),
            controller=verification_method.get('controller')
        )

    @property
    def public_key_bytes(self) -> bytes:
        compressed = self.public_key.public_bytes(
            Encoding.X962, PublicFormat.CompressedPoint)
        return P256_PUBLIC_KEY_HEADER + compressed

    @property
    def public_key_multibase(self) -> str:
        encoded = base58.b58encode(self.public_key_bytes).decode('ascii')
        return MULTIBASE_BASE58BTC_HEADER + encoded

    def to_verification_method(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'type': 'Multikey',
            'controller': self.controller,
            'publicKeyMultibase': self.public_key_multibase
        }

    def sign(self, data: bytes) -> bytes:
        """Sign data, returning the raw 64-byte r||s signature.

        Raises:
            LogicError: If this key has no private half
        """
        if self.private_key is None:
            raise LogicError('Signing requires a private key.')
        der = self.private_key.sign(data, ec.ECDSA(hashes.SHA256()))
        r, s = decode_dss_signature(der)
        return r.to_bytes(_SCALAR_LENGTH, 'big') + s.to_bytes(_SCALAR_LENGTH, 'big')

    def verify(self, data: bytes, signature: bytes) -> bool:
        """Verify a raw r||s signature. Never raises for a bad signature."""
        if not isinstance(signature, (bytes, bytearray)) or len(signature) != SIGNATURE_LENGTH:
            return False
        r = int.from_bytes(signature[:_SCALAR_LENGTH], 'big')
        s = int.from_bytes(signature[_SCALAR_LENGTH:], 'big')
        try:
            self.public_key.verify(
                encode_dss_signature(r, s), data, ec.ECDSA(hashes.SHA256()))
        except InvalidSignature:
            return False
        return True
