"""Password hashing for accounts and pending registration requests.

A registration request stores the bcrypt hash at submission time and the
approved account takes that hash over unchanged, so the plain password is
never kept anywhere.
"""

import logging

from passlib.context import CryptContext
from passlib.exc import UnknownHashError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Check a password against a stored hash.

    A stored value that is not a recognizable hash (e.g. a row imported from
    another system) never matches.

    Returns:
        True if the password matches
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (UnknownHashError, ValueError, TypeError) as e:
        logger.warning(f"Unverifiable password hash: {e}")
        return False


def get_password_hash(password: str) -> str:
    """Hash a password with the current bcrypt settings."""
    return pwd_context.hash(password)


def password_needs_rehash(hashed_password: str) -> bool:
    """True when the hash was made with outdated settings (e.g. a lower bcrypt cost)."""
    try:
        return pwd_context.needs_update(hashed_password)
    except (UnknownHashError, ValueError, TypeError):
        return False
