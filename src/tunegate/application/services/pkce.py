"""PKCE (Proof Key for Code Exchange) helpers.

RFC 7636 with the S256 challenge method. The verifier never leaves the
admin's browser except to come back with the authorization code; the server
does not store it.
"""

from __future__ import annotations

import hashlib
import secrets
import string
from base64 import urlsafe_b64encode
from dataclasses import dataclass

VERIFIER_ALPHABET = string.ascii_letters + string.digits

# RFC 7636 section 4.1 bounds for code_verifier
MIN_VERIFIER_LENGTH = 43
MAX_VERIFIER_LENGTH = 128


def generate_verifier(length: int = 64) -> str:
    """Generate a random alphanumeric code verifier.

    Each character is drawn uniformly from [A-Za-z0-9] with the ``secrets``
    CSPRNG.

    Args:
        length: Number of characters (43-128)

    Returns:
        Code verifier string

    Raises:
        ValueError: If length is outside the RFC 7636 bounds
    """
    if not MIN_VERIFIER_LENGTH <= length <= MAX_VERIFIER_LENGTH:
        raise ValueError(
            f"Verifier length must be between {MIN_VERIFIER_LENGTH} "
            f"and {MAX_VERIFIER_LENGTH}, got {length}"
        )
    return "".join(secrets.choice(VERIFIER_ALPHABET) for _ in range(length))


def derive_challenge(verifier: str) -> str:
    """Derive the S256 code challenge for a verifier.

    base64url(SHA-256(utf-8 bytes)) without "=" padding. Deterministic, so the
    provider computes the same value at exchange time.
    """
    digest = hashlib.sha256(verifier.encode("utf-8")).digest()
    return urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


@dataclass(frozen=True)
class PKCEPair:
    """PKCE code verifier and challenge pair.

    Attributes
    ----------
    verifier : str
        The code verifier (high-entropy random string).
    challenge : str
        The code challenge (base64url-encoded SHA-256 hash of verifier).
    method : str
        The challenge method, always "S256".
    """

    verifier: str
    challenge: str
    method: str = "S256"

    @classmethod
    def generate(cls, length: int = 64) -> PKCEPair:
        """Generate a new PKCE code verifier and challenge."""
        verifier = generate_verifier(length)
        return cls(verifier=verifier, challenge=derive_challenge(verifier))
