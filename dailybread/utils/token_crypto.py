"""
Token generation, parsing, and hashing utilities for sessions and
single-use email tokens, plus password hashing.

Responsibilities:
- Generate token strings of the form: mdb_<kind>_<token_id>_<secret>
- Hash secrets and passwords with Argon2id
- Verify secrets without raising on malformed input
- Generate referral codes and share tokens
"""
from __future__ import annotations

import secrets
import string
import uuid
from dataclasses import dataclass
from typing import Optional, Tuple

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from argon2.low_level import Type

_hasher = PasswordHasher(time_cost=2, memory_cost=102400, parallelism=8, hash_len=32, type=Type.ID)

TOKEN_PREFIX = "mdb_"

# kind -> prefix segment
TOKEN_KINDS = {
    "session": "sess",
    "verify_email": "verify",
    "password_reset": "reset",
}

_REFERRAL_ALPHABET = string.ascii_uppercase + string.digits


@dataclass(frozen=True)
class ParsedToken:
    kind: str
    token_id: str
    secret: str


def generate_token_id() -> str:
    """Return a short hex token id suitable for DB lookup and logs."""
    return uuid.uuid4().hex[:16]


def generate_secret(length: int = 32) -> str:
    return secrets.token_urlsafe(length)


def build_token_string(kind: str, token_id: str, secret: str) -> str:
    return f"{TOKEN_PREFIX}{TOKEN_KINDS[kind]}_{token_id}_{secret}"


def parse_token(token: Optional[str]) -> Optional[ParsedToken]:
    """Parse a token string into kind, token_id and secret.

    Returns None if format is invalid.
    """
    if not token or not token.startswith(TOKEN_PREFIX):
        return None
    body = token[len(TOKEN_PREFIX):]
    segment, _, rest = body.partition("_")
    kind = next((k for k, v in TOKEN_KINDS.items() if v == segment), None)
    if kind is None:
        return None
    # token_id is hex; the secret may itself contain '_'
    token_id, _, secret = rest.partition("_")
    if not token_id or not secret:
        return None
    return ParsedToken(kind=kind, token_id=token_id, secret=secret)


def generate_token(kind: str) -> Tuple[str, str, str]:
    """Generate a new token and return (token_id, secret, full_token)."""
    tid = generate_token_id()
    sec = generate_secret()
    return tid, sec, build_token_string(kind, tid, sec)


def hash_secret(secret: str) -> str:
    return _hasher.hash(secret)


def verify_secret(secret: Optional[str], encoded_hash: Optional[str]) -> bool:
    if not secret or not encoded_hash:
        return False
    try:
        return _hasher.verify(encoded_hash, secret)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


# Passwords share the Argon2id parameters used for token secrets.
hash_password = hash_secret
verify_password = verify_secret


def generate_referral_code(length: int = 8) -> str:
    return "".join(secrets.choice(_REFERRAL_ALPHABET) for _ in range(length))


def generate_share_token() -> str:
    """32 hex chars (16 random bytes) for plan shares and lesson slugs."""
    return secrets.token_hex(16)
