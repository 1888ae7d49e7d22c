"""
zero_reveal_sd/config.py
Cryptosuite constants and wire-format parameters.
"""
import os

SUITE_NAME = "ecdsa-sd-2023"
PROOF_TYPE = "DataIntegrityProof"
REQUIRED_ALGORITHM = "P-256"
DEFAULT_PROOF_PURPOSE = "assertionMethod"

# Wire format: 'u' || base64url(prefix || cbor(payload))
MULTIBASE_BASE64URL_HEADER = "u"
MULTIBASE_BASE58BTC_HEADER = "z"
BASE_PROOF_PREFIX = bytes([0xd9, 0x5d, 0x00])
DERIVED_PROOF_PREFIX = bytes([0xd9, 0x5d, 0x01])

SIGNATURE_LENGTH = 64
PUBLIC_KEY_LENGTH = 35
HMAC_KEY_LENGTH = 32
HASH_LENGTH = 32

# multicodec varint for p256-pub (0x1200)
P256_PUBLIC_KEY_HEADER = bytes([0x80, 0x24])

CANONICAL_LABEL_PREFIX = "c14n"
SKOLEM_PREFIX = "urn:bnid:"

# Per-statement signing/verification pool size
MAX_WORKERS = int(os.environ.get("ZERO_REVEAL_SD_MAX_WORKERS", "8"))
