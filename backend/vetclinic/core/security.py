"""Module: security."""

import hashlib
import hmac
import os
import uuid
from secrets import token_urlsafe
from typing import Dict

from vetclinic.core.config import settings

# Shared password hashing format/version marker.
PASSWORD_SCHEME = "pbkdf2_sha256"
PASSWORD_ITERATIONS = 390000

# Issued bearer tokens mapped to the user id they authenticate.
TOKENS: Dict[str, uuid.UUID] = {}


def hash_password(password: str) -> str:
    """
    Create a PBKDF2-SHA256 password hash string.

    Stored format:
      pbkdf2_sha256$<iterations>$<salt_hex>$<hash_hex>
    """
    salt = os.urandom(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt,
        PASSWORD_ITERATIONS,
    )
    return f"{PASSWORD_SCHEME}${PASSWORD_ITERATIONS}${salt.hex()}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    """Verify a password against a stored PBKDF2 hash string."""
    if not stored or not stored.startswith(f"{PASSWORD_SCHEME}$"):
        return False

    try:
        _, iterations_raw, salt_hex, hash_hex = stored.split("$", 3)
        iterations = int(iterations_raw)
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(hash_hex)
    except ValueError:
        return False

    computed = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt,
        iterations,
    )
    return hmac.compare_digest(computed, expected)


def issue_token(user_id: uuid.UUID) -> str:
    token = token_urlsafe(settings.token_bytes)
    TOKENS[token] = user_id
    return token


def resolve_token(token: str) -> uuid.UUID | None:
    return TOKENS.get(token)


def revoke_token(token: str) -> None:
    TOKENS.pop(token, None)
