"""PKCE (Proof Key for Code Exchange) helpers, see RFC 7636 section 4."""

import base64
import hashlib
import secrets
from dataclasses import dataclass

from .constants import CODE_CHALLENGE_METHOD

# RFC 7636 section 7.1 recommends 32 octets of randomness.
VERIFIER_BYTES = 32


@dataclass
class PKCEPair:
    verifier: str
    challenge: str
    method: str = CODE_CHALLENGE_METHOD


def base64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def base64url_decode(value: str) -> bytes:
    padding = "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(value + padding)


def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def generate_code_verifier() -> str:
    return base64url_encode(secrets.token_bytes(VERIFIER_BYTES))


def derive_code_challenge(verifier: str) -> str:
    return base64url_encode(sha256(verifier.encode("ascii")))


def generate_pkce() -> PKCEPair:
    verifier = generate_code_verifier()
    return PKCEPair(verifier=verifier, challenge=derive_code_challenge(verifier))
