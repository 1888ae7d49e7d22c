"""
zero_reveal_sd/cryptosuite.py
Shared base for the sign, disclose, verify and confirm cryptosuites.
"""
from typing import Any, Dict, Optional

from .config import MAX_WORKERS, REQUIRED_ALGORITHM, SUITE_NAME
from .errors import CryptosuiteMismatchError, LogicError


class Cryptosuite:
    """Base cryptosuite: every operation is unsupported until overridden.

    Each concrete suite implements only the operations of its role, so a
    verifier can never be used to sign and vice versa.
    """

    name = SUITE_NAME
    usage = "sign"

    def __init__(
        self,
        required_algorithm: str = REQUIRED_ALGORITHM,
        max_workers: Optional[int] = None
    ):
        self.required_algorithm = required_algorithm
        self.max_workers = max_workers or MAX_WORKERS

    def create_verifier(self, verification_method: Dict[str, Any]):
        self._throw_usage_error()

    def create_verify_data(self, document: Dict[str, Any], proof: Dict[str, Any]):
        self._throw_usage_error()

    def create_proof_value(self, verify_data, signer) -> str:
        self._throw_usage_error()

    def derive(self, document: Dict[str, Any], proof_set, **kwargs) -> Dict[str, Any]:
        self._throw_usage_error()

    def assert_cryptosuite(self, proof: Dict[str, Any]) -> None:
        """Reject proofs created by a different cryptosuite.

        Raises:
            CryptosuiteMismatchError: If proof["cryptosuite"] is not this suite
        """
        if not isinstance(proof, dict) or proof.get('cryptosuite') != self.name:
            raise CryptosuiteMismatchError(
                f'"cryptosuite.name" must be "{self.name}".')

    def _throw_usage_error(self):
        raise LogicError(
            f'This cryptosuite must only be used with "{self.usage}".')
