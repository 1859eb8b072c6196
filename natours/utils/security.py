"""Password hashing and reset-token primitives."""

from __future__ import annotations

import hashlib
import secrets

from passlib.context import CryptContext

# Fixed bcrypt cost; each hash carries it alongside its salt.
BCRYPT_ROUNDS = 12
RESET_TOKEN_BYTES = 32

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=BCRYPT_ROUNDS,
    bcrypt__min_rounds=BCRYPT_ROUNDS,
)


def hash_password(plain: str) -> str:
    """Hash a plaintext password using bcrypt with a fresh salt."""
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str | None) -> bool:
    """Verify plaintext password against a bcrypt hash.

    A missing or unparseable hash counts as a mismatch.
    """
    if not plain or not hashed:
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError):
        return False


def needs_rehash(hashed: str | None) -> bool:
    if not hashed:
        return False
    try:
        return pwd_context.needs_update(hashed)
    except (ValueError, TypeError):
        return False


def generate_reset_token() -> str:
    return secrets.token_hex(RESET_TOKEN_BYTES)


def digest_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()
