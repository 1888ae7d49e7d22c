"""
zero_reveal_sd/proofs.py
Minimal Data Integrity driver: attach, derive and verify proofs on JSON
documents using the cryptosuites of this package.
"""
import copy
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from .config import DEFAULT_PROOF_PURPOSE, PROOF_TYPE
from .disclose import DiscloseCryptosuite
from .errors import LogicError
from .sign import SignCryptosuite
from .verify import VerifyCryptosuite

logger = logging.getLogger(__name__)

VerificationMethodResolver = Callable[[str], Dict[str, Any]]


def sign(
    document: Dict[str, Any],
    cryptosuite: SignCryptosuite,
    signer,
    purpose: str = DEFAULT_PROOF_PURPOSE,
    created: Optional[str] = None
) -> Dict[str, Any]:
    """Add a base proof to a copy of the document.

    Args:
        document: Document to sign; existing proofs are kept as a proof set
        cryptosuite: SignCryptosuite carrying the mandatory pointers
        signer: Identity key (EcdsaMultikey with a private key and an id)
        purpose: proofPurpose term
        created: XML datetime, defaults to now (UTC)

    Returns:
        Signed copy of the document
    """
    unsigned, proof_set = _split_proofs(document)
    proof = {
        'type': PROOF_TYPE,
        'cryptosuite': cryptosuite.name,
        'created': created or _now(),
        'verificationMethod': signer.id,
        'proofPurpose': purpose,
    }

    verify_data = cryptosuite.create_verify_data(unsigned, proof)
    proof['proofValue'] = cryptosuite.create_proof_value(verify_data, signer)

    signed = copy.deepcopy(unsigned)
    proof_set.append(proof)
    signed['proof'] = proof_set[0] if len(proof_set) == 1 else proof_set
    return signed


def derive(
    document: Dict[str, Any],
    cryptosuite: DiscloseCryptosuite,
    purpose: str = DEFAULT_PROOF_PURPOSE
) -> Dict[str, Any]:
    """Derive a selectively disclosed copy of a signed document."""
    unsigned, proof_set = _split_proofs(document)
    return cryptosuite.derive(unsigned, proof_set, purpose=purpose)


def verify(
    document: Dict[str, Any],
    cryptosuite: VerifyCryptosuite,
    resolve_verification_method: VerificationMethodResolver
) -> bool:
    """Verify every proof of this cryptosuite attached to the document.

    Args:
        document: Signed or derived document
        cryptosuite: VerifyCryptosuite (or ConfirmCryptosuite)
        resolve_verification_method: Maps a verificationMethod id to a
            Multikey verification method; key storage is up to the caller

    Returns:
        True if all matching proofs verify, False otherwise

    Raises:
        LogicError: If the document has no proof of this cryptosuite
        ProofError: For malformed proofs
    """
    unsigned, proof_set = _split_proofs(document)
    matching = [p for p in proof_set if p.get('cryptosuite') == cryptosuite.name]
    if not matching:
        raise LogicError(
            f'No "{cryptosuite.name}" proof found on the document.')

    for proof in matching:
        verification_method = resolve_verification_method(
            proof.get('verificationMethod'))
        verifier = cryptosuite.create_verifier(verification_method)
        verify_data = cryptosuite.create_verify_data(unsigned, proof)
        if not verifier.verify(verify_data):
            logger.info("Proof by %s failed verification",
                        proof.get('verificationMethod'))
            return False
    return True


def _split_proofs(document: Dict[str, Any]) -> Tuple[Dict[str, Any], List[Dict[str, Any]]]:
    unsigned = {key: value for key, value in document.items() if key != 'proof'}
    proofs = document.get('proof', [])
    if isinstance(proofs, dict):
        proofs = [proofs]
    return unsigned, [copy.deepcopy(p) for p in proofs]


def _now() -> str:
    return datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')
