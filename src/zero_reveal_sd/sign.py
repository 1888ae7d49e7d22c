"""
zero_reveal_sd/sign.py
Issuer side: sign every non-mandatory statement and bind the set with one
base signature.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from .canonicalize import (
    canonicalize_and_group,
    create_hmac_label_map_function,
    hash_canonized_proof,
    hash_mandatory,
)
from .config import HASH_LENGTH, HMAC_KEY_LENGTH, REQUIRED_ALGORITHM
from .crypto import HmacLabeler
from .cryptosuite import Cryptosuite
from .errors import LogicError, ValidationError
from .keys import EcdsaMultikey
from .proof_value import (
    BaseProofParams,
    serialize_base_proof_value,
    serialize_base_verify_data,
)

logger = logging.getLogger(__name__)


@dataclass
class SignData:
    """Everything the signer needs, as computed from the document."""
    proof_hash: bytes
    mandatory_pointers: List[str]
    mandatory_hash: bytes
    non_mandatory: List[str]
    hmac_key: bytes


class SignCryptosuite(Cryptosuite):
    """Creates base proofs.

    Example:
        suite = SignCryptosuite(mandatory_pointers=["/issuer"])
        data = suite.create_verify_data(document, proof_options)
        proof_options["proofValue"] = suite.create_proof_value(data, issuer_key)
    """

    usage = "sign"

    def __init__(
        self,
        mandatory_pointers: Optional[Sequence[str]] = None,
        required_algorithm: str = REQUIRED_ALGORITHM,
        max_workers: Optional[int] = None
    ):
        super().__init__(required_algorithm, max_workers)
        if mandatory_pointers is None:
            mandatory_pointers = []
        if not (isinstance(mandatory_pointers, (list, tuple)) and all(
                isinstance(p, str) for p in mandatory_pointers)):
            raise ValidationError(
                '"mandatoryPointers" must be an array of strings.')
        self.mandatory_pointers = list(mandatory_pointers)

    def create_verify_data(
        self,
        document: Dict[str, Any],
        proof: Dict[str, Any]
    ) -> SignData:
        """Canonicalize the document and split it into mandatory statements.

        The proof hash is computed concurrently and joined before returning;
        its error, if any, is re-raised here.
        """
        self.assert_cryptosuite(proof)

        with ThreadPoolExecutor(max_workers=1) as executor:
            proof_hash_future = executor.submit(
                hash_canonized_proof, document, proof)

            labeler = HmacLabeler()
            grouped = canonicalize_and_group(
                document,
                create_hmac_label_map_function(labeler),
                {'mandatory': self.mandatory_pointers}
            )
            mandatory_group = grouped.groups['mandatory']
            mandatory = list(mandatory_group.matching.values())
            non_mandatory = list(mandatory_group.non_matching.values())
            mandatory_hash = hash_mandatory(mandatory)

            proof_hash = proof_hash_future.result()

        logger.debug(
            "Grouped %d statements: %d mandatory, %d non-mandatory",
            len(grouped.statements), len(mandatory), len(non_mandatory))

        return SignData(
            proof_hash=proof_hash,
            mandatory_pointers=list(self.mandatory_pointers),
            mandatory_hash=mandatory_hash,
            non_mandatory=non_mandatory,
            hmac_key=labeler.export()
        )

    def create_proof_value(self, verify_data: SignData, signer) -> str:
        """Sign the statements and encode the base proof value.

        Args:
            verify_data: Output of create_verify_data
            signer: Identity key with .algorithm and .sign(bytes)

        Returns:
            Multibase base proof value

        Raises:
            ValidationError: Malformed verify data (nothing is signed)
            LogicError: Signer algorithm does not match the suite
        """
        _validate_sign_data(verify_data)
        if getattr(signer, 'algorithm', None) != self.required_algorithm:
            raise LogicError(
                f'Signer algorithm must be "{self.required_algorithm}".')

        statement_key = EcdsaMultikey.generate()
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            signatures = list(executor.map(
                lambda statement: statement_key.sign(statement.encode('utf-8')),
                verify_data.non_mandatory))

        public_key = statement_key.public_key_bytes
        to_sign = serialize_base_verify_data(
            verify_data.proof_hash, public_key, verify_data.mandatory_hash)
        base_signature = signer.sign(to_sign)

        logger.debug("Signed %d non-mandatory statements", len(signatures))

        return serialize_base_proof_value(BaseProofParams(
            base_signature=base_signature,
            public_key=public_key,
            hmac_key=verify_data.hmac_key,
            signatures=signatures,
            mandatory_pointers=verify_data.mandatory_pointers
        ))


def _validate_sign_data(verify_data: Any) -> None:
    if not isinstance(verify_data, SignData):
        raise ValidationError('"verifyData" must be SignData.')
    if not (isinstance(verify_data.proof_hash, bytes) and
            len(verify_data.proof_hash) == HASH_LENGTH):
        raise ValidationError(f'"proofHash" must be bytes of length {HASH_LENGTH}.')
    if not (isinstance(verify_data.mandatory_hash, bytes) and
            len(verify_data.mandatory_hash) == HASH_LENGTH):
        raise ValidationError(
            f'"mandatoryHash" must be bytes of length {HASH_LENGTH}.')
    if not (isinstance(verify_data.hmac_key, bytes) and
            len(verify_data.hmac_key) == HMAC_KEY_LENGTH):
        raise ValidationError(
            f'"hmacKey" must be bytes of length {HMAC_KEY_LENGTH}.')
    if not (isinstance(verify_data.non_mandatory, list) and all(
            isinstance(s, str) for s in verify_data.non_mandatory)):
        raise ValidationError('"nonMandatory" must be an array of strings.')
    if not (isinstance(verify_data.mandatory_pointers, list) and all(
            isinstance(p, str) for p in verify_data.mandatory_pointers)):
        raise ValidationError('"mandatoryPointers" must be an array of strings.')
