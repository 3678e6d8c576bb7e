"""Utility functions and helpers."""

from .security import get_password_hash, verify_password
from .validators import is_valid_uuid, parse_optional_uuid, parse_uuid

__all__ = [
    "get_password_hash",
    "is_valid_uuid",
    "parse_optional_uuid",
    "parse_uuid",
    "verify_password",
]
