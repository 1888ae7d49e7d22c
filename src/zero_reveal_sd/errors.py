"""
zero_reveal_sd/errors.py
Error taxonomy for proof encoding, disclosure and verification.
"""


class ProofError(Exception):
    """Base class for every error raised while handling a proof."""


class FormatError(ProofError, ValueError):
    """Malformed multibase envelope, payload prefix or binary structure."""


class ValidationError(ProofError, TypeError):
    """Decodable value with the wrong type or length for its field."""


class LogicError(ProofError):
    """Well-formed input that violates a protocol precondition."""


class CryptosuiteMismatchError(LogicError, TypeError):
    """A proof was handed to a cryptosuite with a different name."""


class SelectionError(LogicError, ValueError):
    """A JSON pointer does not match the document."""


class VerificationError(ProofError):
    """The proof cannot be checked against the presented document.

    Raised for signature/statement count mismatches and other structural
    disagreements; a proof that is merely invalid verifies as False.
    """
