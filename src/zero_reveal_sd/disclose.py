"""
zero_reveal_sd/disclose.py
Holder side: derive a disclosure proof revealing the mandatory statements
plus a caller-chosen selection, without contacting the issuer.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .canonicalize import (
    canonicalize_and_group,
    create_hmac_label_map_function,
    deskolemize,
    label_replacement_canonicalize,
)
from .config import DEFAULT_PROOF_PURPOSE, PROOF_TYPE, REQUIRED_ALGORITHM
from .crypto import HmacLabeler
from .cryptosuite import Cryptosuite
from .errors import LogicError, ValidationError, VerificationError
from .proof_value import (
    DerivedProofParams,
    parse_base_proof_value,
    serialize_derived_proof_value,
)

logger = logging.getLogger(__name__)


@dataclass
class DisclosureData:
    """Derived proof parameters plus the document they apply to."""
    base_signature: bytes
    public_key: bytes
    signatures: List[bytes]
    label_map: Dict[str, str]
    mandatory_indexes: List[int]
    reveal_document: Dict[str, Any] = field(default_factory=dict)


class DiscloseCryptosuite(Cryptosuite):
    """Derives disclosure proofs from a base proof.

    Example:
        suite = DiscloseCryptosuite(selective_pointers=["/credentialSubject/name"])
        revealed = suite.derive(document, [base_proof])
    """

    usage = "derive"

    def __init__(
        self,
        proof_id: Optional[str] = None,
        selective_pointers: Optional[Sequence[str]] = None,
        required_algorithm: str = REQUIRED_ALGORITHM,
        max_workers: Optional[int] = None
    ):
        super().__init__(required_algorithm, max_workers)
        if selective_pointers is None:
            selective_pointers = []
        if not (isinstance(selective_pointers, (list, tuple)) and all(
                isinstance(p, str) for p in selective_pointers)):
            raise ValidationError(
                '"selectivePointers" must be an array of strings.')
        self.proof_id = proof_id
        self.selective_pointers = list(selective_pointers)

    def derive(
        self,
        document: Dict[str, Any],
        proof_set: Iterable[Dict[str, Any]],
        purpose: str = DEFAULT_PROOF_PURPOSE,
        match_proof: Optional[Callable[[Dict[str, Any]], bool]] = None
    ) -> Dict[str, Any]:
        """Produce the revealed document with a derived proof attached.

        Args:
            document: Document without its proof
            proof_set: Proofs that were attached to the document
            purpose: Proof purpose the base proof must have
            match_proof: Predicate selecting candidate base proofs when no
                proof_id was given; defaults to type and cryptosuite match

        Raises:
            LogicError: No/multiple matching base proofs, purpose mismatch
                or nothing selected
        """
        base_proof = self._find_proof(list(proof_set), match_proof)

        if base_proof.get('proofPurpose') != purpose:
            raise LogicError(
                'Base proof purpose does not match purpose for derived proof.')

        data = self.create_disclosure_data(document, base_proof)

        new_proof = dict(base_proof)
        new_proof.pop('@context', None)
        new_proof['proofValue'] = serialize_derived_proof_value(
            DerivedProofParams(
                base_signature=data.base_signature,
                public_key=data.public_key,
                signatures=data.signatures,
                label_map=data.label_map,
                mandatory_indexes=data.mandatory_indexes
            ))

        reveal_document = data.reveal_document
        reveal_document['proof'] = new_proof
        return reveal_document

    def create_disclosure_data(
        self,
        document: Dict[str, Any],
        proof: Dict[str, Any]
    ) -> DisclosureData:
        """Recompute indexes, filter signatures and remap blank-node labels."""
        self.assert_cryptosuite(proof)
        params = parse_base_proof_value(proof)

        if not (params.mandatory_pointers or self.selective_pointers):
            raise LogicError('Nothing selected for disclosure.')

        labeler = HmacLabeler(params.hmac_key)
        combined_pointers = params.mandatory_pointers + self.selective_pointers
        grouped = canonicalize_and_group(
            document,
            create_hmac_label_map_function(labeler),
            {
                'mandatory': params.mandatory_pointers,
                'selective': self.selective_pointers,
                'combined': combined_pointers,
            }
        )
        mandatory_group = grouped.groups['mandatory']
        selective_group = grouped.groups['selective']
        combined_group = grouped.groups['combined']

        if not combined_group.matching:
            raise LogicError('Nothing selected for disclosure.')
        if len(params.signatures) != len(mandatory_group.non_matching):
            raise VerificationError(
                f'Signature count ({len(params.signatures)}) does not match '
                f'non-mandatory statement count '
                f'({len(mandatory_group.non_matching)}).')

        mandatory_indexes = relative_mandatory_indexes(
            combined_group.matching, mandatory_group.matching)

        filtered_signatures = [
            signature
            for index, signature in pair_signatures(
                params.signatures, mandatory_group.matching)
            if index in selective_group.matching
        ]

        # Key the label map by the disclosed document's own canonical ids
        _, reduced_ids = label_replacement_canonicalize(combined_group.selection)
        verifier_label_map = {
            canonical_id: grouped.label_map[input_label]
            for input_label, canonical_id in reduced_ids.items()
        }

        logger.debug(
            "Disclosing %d of %d statements (%d mandatory, %d signatures)",
            len(combined_group.matching), len(grouped.statements),
            len(mandatory_indexes), len(filtered_signatures))

        return DisclosureData(
            base_signature=params.base_signature,
            public_key=params.public_key,
            signatures=filtered_signatures,
            label_map=verifier_label_map,
            mandatory_indexes=mandatory_indexes,
            reveal_document=deskolemize(combined_group.selection)
        )

    def _find_proof(
        self,
        proof_set: List[Dict[str, Any]],
        match_proof: Optional[Callable[[Dict[str, Any]], bool]]
    ) -> Dict[str, Any]:
        proof = None
        if self.proof_id:
            proof = next(
                (p for p in proof_set if p.get('id') == self.proof_id), None)
        else:
            match_proof = match_proof or self._matches
            for candidate in proof_set:
                if match_proof(candidate):
                    if proof is not None:
                        raise LogicError(
                            'Multiple matching proofs; a "proofId" must be '
                            'specified.')
                    proof = candidate
        if proof is None:
            raise LogicError(
                'No matching base proof found from which to derive a '
                'disclosure proof.')
        return proof

    def _matches(self, proof: Dict[str, Any]) -> bool:
        return (isinstance(proof, dict) and
                proof.get('type') == PROOF_TYPE and
                proof.get('cryptosuite') == self.name)


def relative_mandatory_indexes(
    combined: Mapping[int, str],
    mandatory: Mapping[int, str]
) -> List[int]:
    """Positions, within the disclosed statements, of the mandatory ones.

    Args:
        combined: Absolute index -> statement for every disclosed statement,
            in ascending order
        mandatory: Absolute index -> statement for mandatory statements
    """
    indexes = []
    for relative_index, absolute_index in enumerate(combined):
        if absolute_index in mandatory:
            indexes.append(relative_index)
    return indexes


def pair_signatures(
    signatures: Sequence[bytes],
    mandatory: Mapping[int, str]
) -> List[Tuple[int, bytes]]:
    """Attach each base signature to the absolute index it was made for.

    Signatures follow the non-mandatory statements in order, so the walk
    steps over every mandatory index before assigning the next signature.
    """
    pairs = []
    index = 0
    for signature in signatures:
        while index in mandatory:
            index += 1
        pairs.append((index, signature))
        index += 1
    return pairs
