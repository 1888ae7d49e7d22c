"""
zero_reveal_sd/verify.py
Verifier side: rebuild the signed data for a base or derived proof and check
every signature. No secret material and no network access are needed.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from itertools import repeat
from typing import Any, Dict, List, Optional

from .canonicalize import (
    canonicalize,
    canonicalize_and_group,
    create_hmac_label_map_function,
    create_label_map_function,
    hash_canonized_proof,
    hash_mandatory,
)
from .config import MAX_WORKERS
from .crypto import HmacLabeler
from .cryptosuite import Cryptosuite
from .errors import FormatError, LogicError, ValidationError, VerificationError
from .keys import EcdsaMultikey
from .proof_value import (
    is_base_proof_value,
    is_derived_proof_value,
    parse_base_proof_value,
    parse_derived_proof_value,
    serialize_base_verify_data,
)

logger = logging.getLogger(__name__)


@dataclass
class MultiVerifyData:
    """Data checked by MultiVerifier, rebuilt from the presented document."""
    base_signature: bytes
    proof_hash: bytes
    public_key: bytes
    signatures: List[bytes] = field(default_factory=list)
    non_mandatory: List[str] = field(default_factory=list)
    mandatory_hash: bytes = b''


class MultiVerifier:
    """Checks the per-statement signatures and then the base signature.

    The identity key verifies the base signature; the statement key carried
    in the proof verifies the per-statement signatures.
    """

    def __init__(self, key: EcdsaMultikey, max_workers: Optional[int] = None):
        self.key = key
        self.id = key.id
        self.algorithm = key.algorithm
        self.max_workers = max_workers or MAX_WORKERS

    def verify(self, data: MultiVerifyData) -> bool:
        """Verify all signatures of a proof.

        Returns:
            True if every statement signature and the base signature are
            valid, False otherwise

        Raises:
            VerificationError: If the signature count differs from the
                number of non-mandatory statements
        """
        if len(data.signatures) != len(data.non_mandatory):
            raise VerificationError(
                f'Signature count ({len(data.signatures)}) does not match '
                f'non-mandatory message count ({len(data.non_mandatory)}).')

        try:
            statement_key = EcdsaMultikey.from_public_key_bytes(data.public_key)
        except ValidationError as e:
            logger.warning("Proof statement key is unusable: %s", e)
            return False

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            results = list(executor.map(
                _verify_statement,
                repeat(statement_key),
                data.non_mandatory,
                data.signatures
            ))

        failed = results.count(False)
        if failed:
            logger.warning(
                "%d of %d statement signatures failed", failed, len(results))
            return False

        to_verify = serialize_base_verify_data(
            data.proof_hash, data.public_key, data.mandatory_hash)
        if not self.key.verify(to_verify, data.base_signature):
            logger.warning("Base signature verification failed")
            return False
        return True


class VerifyCryptosuite(Cryptosuite):
    """Verifies base and derived proofs, chosen by the proof value prefix."""

    usage = "verify"

    def create_verifier(self, verification_method: Dict[str, Any]) -> MultiVerifier:
        key = EcdsaMultikey.from_verification_method(verification_method)
        if key.algorithm != self.required_algorithm:
            raise LogicError(
                f'Verification method algorithm must be '
                f'"{self.required_algorithm}".')
        return MultiVerifier(key, self.max_workers)

    def create_verify_data(
        self,
        document: Dict[str, Any],
        proof: Dict[str, Any]
    ) -> MultiVerifyData:
        """Rebuild the verify data for the proof over the given document.

        Raises:
            CryptosuiteMismatchError: Proof made by another cryptosuite
            FormatError / ValidationError: Malformed proof value
            VerificationError: Proof does not fit the document structure
        """
        self.assert_cryptosuite(proof)
        if is_derived_proof_value(proof):
            return create_derived_verify_data(document, proof)
        if is_base_proof_value(proof):
            return create_base_verify_data(document, proof)
        raise FormatError('"proof.proofValue" must be a base or derived proof.')


def create_derived_verify_data(
    document: Dict[str, Any],
    proof: Dict[str, Any]
) -> MultiVerifyData:
    """Verify data for a derived proof over a (partial) document."""
    with ThreadPoolExecutor(max_workers=1) as executor:
        proof_hash_future = executor.submit(hash_canonized_proof, document, proof)

        params = parse_derived_proof_value(proof)
        statements = canonicalize(
            document, create_label_map_function(params.label_map))

        out_of_range = [i for i in params.mandatory_indexes if i >= len(statements)]
        if out_of_range:
            raise VerificationError(
                f'Mandatory indexes {out_of_range} exceed the '
                f'{len(statements)} disclosed statements.')

        mandatory_indexes = set(params.mandatory_indexes)
        mandatory = []
        non_mandatory = []
        for index, statement in enumerate(statements):
            if index in mandatory_indexes:
                mandatory.append(statement)
            else:
                non_mandatory.append(statement)

        mandatory_hash = hash_mandatory(mandatory)
        proof_hash = proof_hash_future.result()

    return MultiVerifyData(
        base_signature=params.base_signature,
        proof_hash=proof_hash,
        public_key=params.public_key,
        signatures=params.signatures,
        non_mandatory=non_mandatory,
        mandatory_hash=mandatory_hash
    )


def create_base_verify_data(
    document: Dict[str, Any],
    proof: Dict[str, Any]
) -> MultiVerifyData:
    """Verify data for a base proof over the complete document."""
    with ThreadPoolExecutor(max_workers=1) as executor:
        proof_hash_future = executor.submit(hash_canonized_proof, document, proof)

        params = parse_base_proof_value(proof)
        labeler = HmacLabeler(params.hmac_key)
        grouped = canonicalize_and_group(
            document,
            create_hmac_label_map_function(labeler),
            {'mandatory': params.mandatory_pointers}
        )
        mandatory_group = grouped.groups['mandatory']
        mandatory_hash = hash_mandatory(list(mandatory_group.matching.values()))

        proof_hash = proof_hash_future.result()

    return MultiVerifyData(
        base_signature=params.base_signature,
        proof_hash=proof_hash,
        public_key=params.public_key,
        signatures=params.signatures,
        non_mandatory=list(mandatory_group.non_matching.values()),
        mandatory_hash=mandatory_hash
    )


def _verify_statement(key: EcdsaMultikey, statement: str, signature: bytes) -> bool:
    return key.verify(statement.encode('utf-8'), signature)
