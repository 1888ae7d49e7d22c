"""
zero_reveal_sd/proof_value.py
Binary encoding of base and derived proof values.

A proof value is 'u' || base64url(prefix || cbor(payload)), where the
3-byte prefix tells base payloads from derived ones:

    base:    [baseSignature, publicKey, hmacKey, signatures, mandatoryPointers]
    derived: [baseSignature, publicKey, signatures, compressedLabelMap,
              mandatoryIndexes]

The compressed label map swaps 'c14n<N>' keys for the integer N and
'u<base64url>' values for the raw bytes.
"""
import io
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List

import cbor2

from .config import (
    BASE_PROOF_PREFIX,
    CANONICAL_LABEL_PREFIX,
    DERIVED_PROOF_PREFIX,
    HASH_LENGTH,
    HMAC_KEY_LENGTH,
    MULTIBASE_BASE64URL_HEADER,
    PUBLIC_KEY_LENGTH,
    SIGNATURE_LENGTH,
)
from .crypto import base64url_decode, base64url_encode, multibase_decode, multibase_encode
from .errors import FormatError, ValidationError

_PREFIX_LENGTH = len(BASE_PROOF_PREFIX)
_CANONICAL_LABEL = re.compile(r'^c14n(0|[1-9][0-9]*)$')
_UINT8_ARRAY_TAG = 64


@dataclass
class BaseProofParams:
    """Payload of a base proof, created once by the signer."""
    base_signature: bytes
    public_key: bytes
    hmac_key: bytes
    signatures: List[bytes] = field(default_factory=list)
    mandatory_pointers: List[str] = field(default_factory=list)


@dataclass
class DerivedProofParams:
    """Payload of a derived (disclosure) proof."""
    base_signature: bytes
    public_key: bytes
    signatures: List[bytes] = field(default_factory=list)
    label_map: Dict[str, str] = field(default_factory=dict)
    mandatory_indexes: List[int] = field(default_factory=list)


def parse_base_proof_value(proof: Dict[str, Any]) -> BaseProofParams:
    """Decode and validate the proofValue of a base proof.

    Raises:
        FormatError: Bad envelope, derived prefix or undecodable payload
        ValidationError: A field has the wrong type or length
    """
    proof_value = _decode_proof_value(proof)
    if not proof_value.startswith(BASE_PROOF_PREFIX):
        raise FormatError('"proof.proofValue" must be a base proof.')

    (base_signature, public_key, hmac_key,
     signatures, mandatory_pointers) = _decode_payload(proof_value)

    params = BaseProofParams(
        base_signature=base_signature,
        public_key=public_key,
        hmac_key=hmac_key,
        signatures=signatures,
        mandatory_pointers=mandatory_pointers
    )
    _validate_base_proof_params(params)
    return params


def parse_derived_proof_value(proof: Dict[str, Any]) -> DerivedProofParams:
    """Decode and validate the proofValue of a derived proof.

    Raises:
        FormatError: Bad envelope, base prefix or undecodable payload
        ValidationError: A field has the wrong type or length
    """
    proof_value = _decode_proof_value(proof)
    if not proof_value.startswith(DERIVED_PROOF_PREFIX):
        raise FormatError('"proof.proofValue" must be a derived proof.')

    (base_signature, public_key, signatures,
     compressed_label_map, mandatory_indexes) = _decode_payload(proof_value)

    params = DerivedProofParams(
        base_signature=base_signature,
        public_key=public_key,
        signatures=signatures,
        label_map=decompress_label_map(compressed_label_map),
        mandatory_indexes=mandatory_indexes
    )
    _validate_derived_proof_params(params)
    return params


def is_base_proof_value(proof: Dict[str, Any]) -> bool:
    return _decode_proof_value(proof).startswith(BASE_PROOF_PREFIX)


def is_derived_proof_value(proof: Dict[str, Any]) -> bool:
    return _decode_proof_value(proof).startswith(DERIVED_PROOF_PREFIX)


def serialize_base_proof_value(params: BaseProofParams) -> str:
    """Validate and encode a base proof payload as a multibase string."""
    _validate_base_proof_params(params)
    payload = [
        params.base_signature,
        params.public_key,
        params.hmac_key,
        params.signatures,
        params.mandatory_pointers
    ]
    return multibase_encode(BASE_PROOF_PREFIX + cbor2.dumps(payload))


def serialize_derived_proof_value(params: DerivedProofParams) -> str:
    """Validate and encode a derived proof payload as a multibase string."""
    _validate_derived_proof_params(params)
    payload = [
        params.base_signature,
        params.public_key,
        params.signatures,
        compress_label_map(params.label_map),
        params.mandatory_indexes
    ]
    return multibase_encode(DERIVED_PROOF_PREFIX + cbor2.dumps(payload))


def serialize_base_verify_data(
    proof_hash: bytes,
    public_key: bytes,
    mandatory_hash: bytes
) -> bytes:
    """Build the bytes covered by the base signature.

    Format: proofHash (32) || publicKey (35) || mandatoryHash (32)
    """
    _check_bytes('proofHash', proof_hash, HASH_LENGTH)
    _check_bytes('publicKey', public_key, PUBLIC_KEY_LENGTH)
    _check_bytes('mandatoryHash', mandatory_hash, HASH_LENGTH)
    return bytes(proof_hash) + bytes(public_key) + bytes(mandatory_hash)


def compress_label_map(label_map: Dict[str, str]) -> Dict[int, bytes]:
    """Turn {'c14n<N>': 'u<b64url>'} into {N: raw bytes}."""
    _validate_label_map(label_map)
    return {
        int(key[len(CANONICAL_LABEL_PREFIX):]): base64url_decode(value[1:])
        for key, value in label_map.items()
    }


def decompress_label_map(compressed: Dict[int, bytes]) -> Dict[str, str]:
    """Inverse of compress_label_map."""
    if not isinstance(compressed, dict):
        raise ValidationError('"labelMap" must be a map of integers to bytes.')
    label_map = {}
    for key, value in compressed.items():
        if (not isinstance(key, int) or isinstance(key, bool) or key < 0 or
                not isinstance(value, bytes)):
            raise ValidationError(
                '"labelMap" must be a map of integers to bytes.')
        label_map[f'{CANONICAL_LABEL_PREFIX}{key}'] = multibase_encode(value)
    return label_map


def _decode_proof_value(proof: Dict[str, Any]) -> bytes:
    proof_value = proof.get('proofValue') if isinstance(proof, dict) else None
    if not isinstance(proof_value, str):
        raise FormatError(
            'The proof does not include a valid "proofValue" property; '
            '"proofValue" must be a string.')
    if not proof_value.startswith(MULTIBASE_BASE64URL_HEADER):
        raise FormatError(
            'The proof does not include a valid "proofValue" property; '
            'only base64url multibase encoding is supported.')
    return multibase_decode(proof_value)


def _decode_payload(proof_value: bytes) -> List[Any]:
    fp = io.BytesIO(proof_value[_PREFIX_LENGTH:])
    try:
        payload = cbor2.CBORDecoder(fp, tag_hook=_tag_hook).decode()
    except (cbor2.CBORDecodeError, ValueError) as exc:
        raise FormatError(
            'The proof does not include a valid "proofValue" property.'
        ) from exc
    if fp.read():
        raise FormatError(
            'The proof value payload has trailing bytes after the CBOR item.')
    if not isinstance(payload, list) or len(payload) != 5:
        raise FormatError(
            'The proof value payload must be an array of five elements.')
    return payload


def _tag_hook(*args):
    # cbor2 5.x calls (decoder, tag), 6.x calls (tag, immutable)
    tag = next(arg for arg in args if isinstance(arg, cbor2.CBORTag))
    if tag.tag == _UINT8_ARRAY_TAG and isinstance(tag.value, bytes):
        return tag.value
    return tag


def _check_bytes(name: str, value: Any, length: int) -> None:
    if not (isinstance(value, bytes) and len(value) == length):
        raise ValidationError(f'"{name}" must be bytes of length {length}.')


def _check_signatures(signatures: Any) -> None:
    if not (isinstance(signatures, list) and all(
            isinstance(s, bytes) and len(s) == SIGNATURE_LENGTH
            for s in signatures)):
        raise ValidationError(
            f'"signatures" must be an array of byte strings, '
            f'each of length {SIGNATURE_LENGTH}.')


def _validate_label_map(label_map: Any) -> None:
    if not isinstance(label_map, dict):
        raise ValidationError('"labelMap" must be a map of strings to strings.')
    for key, value in label_map.items():
        if not (isinstance(key, str) and isinstance(value, str)):
            raise ValidationError(
                '"labelMap" must be a map of strings to strings.')
        if not _CANONICAL_LABEL.match(key):
            raise ValidationError(
                f'"labelMap" key "{key}" must have the form "c14n<N>".')
        if not value.startswith(MULTIBASE_BASE64URL_HEADER):
            raise ValidationError(
                f'"labelMap" value for "{key}" must be base64url multibase.')
        try:
            raw = base64url_decode(value[1:])
        except FormatError as exc:
            raise ValidationError(
                f'"labelMap" value for "{key}" must be base64url multibase.'
            ) from exc
        if base64url_encode(raw) != value[1:]:
            raise ValidationError(
                f'"labelMap" value for "{key}" is not canonical base64url.')


def _validate_base_proof_params(params: BaseProofParams) -> None:
    _check_bytes('baseSignature', params.base_signature, SIGNATURE_LENGTH)
    _check_bytes('publicKey', params.public_key, PUBLIC_KEY_LENGTH)
    _check_bytes('hmacKey', params.hmac_key, HMAC_KEY_LENGTH)
    _check_signatures(params.signatures)
    if not (isinstance(params.mandatory_pointers, list) and all(
            isinstance(p, str) for p in params.mandatory_pointers)):
        raise ValidationError('"mandatoryPointers" must be an array of strings.')


def _validate_derived_proof_params(params: DerivedProofParams) -> None:
    _check_bytes('baseSignature', params.base_signature, SIGNATURE_LENGTH)
    _check_bytes('publicKey', params.public_key, PUBLIC_KEY_LENGTH)
    _check_signatures(params.signatures)
    _validate_label_map(params.label_map)
    indexes = params.mandatory_indexes
    if not (isinstance(indexes, list) and all(
            isinstance(i, int) and not isinstance(i, bool) and i >= 0
            for i in indexes)):
        raise ValidationError(
            '"mandatoryIndexes" must be an array of non-negative integers.')
    if not all(a < b for a, b in zip(indexes, indexes[1:])):
        raise ValidationError(
            '"mandatoryIndexes" must be strictly increasing.')
