# FILE: orderdesk/core/security.py
from __future__ import annotations

import secrets

from passlib.context import CryptContext

from orderdesk.core.config import settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str | None) -> bool:
    """
    Safe bcrypt verify: malformed hashes count as a mismatch.
    """
    if not plain or not hashed:
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError):
        return False


def random_password(length: int = 12) -> str:
    return secrets.token_urlsafe(length)[:length]
