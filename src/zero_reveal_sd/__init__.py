"""
Zero-Reveal-SD: Selective-disclosure Data Integrity proofs (ecdsa-sd-2023).

An issuer signs every statement of a document individually and binds the
set with one base signature; a holder can later reveal any superset of the
mandatory statements with a derived proof that verifies on its own.
"""

from .errors import (
    ProofError,
    FormatError,
    ValidationError,
    LogicError,
    CryptosuiteMismatchError,
    SelectionError,
    VerificationError,
)

from .crypto import (
    generate_hmac_key,
    sha256_digest,
    multibase_encode,
    multibase_decode,
    HmacLabeler,
)

from .keys import EcdsaMultikey

from .proof_value import (
    BaseProofParams,
    DerivedProofParams,
    parse_base_proof_value,
    parse_derived_proof_value,
    serialize_base_proof_value,
    serialize_derived_proof_value,
    serialize_base_verify_data,
    compress_label_map,
    decompress_label_map,
)

from .select import parse_pointer, select_json

from .canonicalize import (
    canonicalize,
    canonicalize_and_group,
    create_hmac_label_map_function,
    create_label_map_function,
    hash_canonized_proof,
    hash_mandatory,
)

from .sign import SignCryptosuite, SignData
from .disclose import DiscloseCryptosuite, DisclosureData
from .verify import MultiVerifier, MultiVerifyData, VerifyCryptosuite
from .confirm import ConfirmCryptosuite
from . import proofs

__version__ = "0.1.0"

__all__ = [
    # Errors
    "ProofError",
    "FormatError",
    "ValidationError",
    "LogicError",
    "CryptosuiteMismatchError",
    "SelectionError",
    "VerificationError",
    # Crypto
    "generate_hmac_key",
    "sha256_digest",
    "multibase_encode",
    "multibase_decode",
    "HmacLabeler",
    "EcdsaMultikey",
    # Proof values
    "BaseProofParams",
    "DerivedProofParams",
    "parse_base_proof_value",
    "parse_derived_proof_value",
    "serialize_base_proof_value",
    "serialize_derived_proof_value",
    "serialize_base_verify_data",
    "compress_label_map",
    "decompress_label_map",
    # Selection / canonicalization
    "parse_pointer",
    "select_json",
    "canonicalize",
    "canonicalize_and_group",
    "create_hmac_label_map_function",
    "create_label_map_function",
    "hash_canonized_proof",
    "hash_mandatory",
    # Cryptosuites
    "SignCryptosuite",
    "SignData",
    "DiscloseCryptosuite",
    "DisclosureData",
    "VerifyCryptosuite",
    "MultiVerifier",
    "MultiVerifyData",
    "ConfirmCryptosuite",
    # Driver
    "proofs",
    # Meta
    "__version__",
]
