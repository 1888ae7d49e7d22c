"""
zero_reveal_sd/confirm.py
Issuer-side confirmation that a base proof still verifies over the full
document, e.g. before handing the credential to a holder.
"""
from typing import Any, Dict

from .verify import MultiVerifyData, VerifyCryptosuite, create_base_verify_data


class ConfirmCryptosuite(VerifyCryptosuite):
    """Verifies base proofs only; a derived proof value is a FormatError."""

    def create_verify_data(
        self,
        document: Dict[str, Any],
        proof: Dict[str, Any]
    ) -> MultiVerifyData:
        self.assert_cryptosuite(proof)
        return create_base_verify_data(document, proof)
