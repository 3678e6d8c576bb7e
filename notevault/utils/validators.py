"""Identifier validation for request input."""

import re
from typing import Optional
from uuid import UUID

from ..services.errors import InvalidArgument

# Canonical UUIDv4, any case. Every id the service generates is a uuid4.
UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_valid_uuid(value: Optional[str]) -> bool:
    """Return True if value is a canonical UUIDv4 string."""
    return bool(value) and UUID_PATTERN.match(value) is not None


def parse_uuid(value: str, field_name: str = "id") -> UUID:
    """
    Validate and convert an id received over HTTP.

    Args:
        value: Raw id string from a path, query or body
        field_name: Name reported back to the caller

    Returns:
        The parsed UUID

    Raises:
        InvalidArgument: If the value is not a canonical UUIDv4
    """
    if not is_valid_uuid(value):
        raise InvalidArgument(f"Invalid {field_name} format: {value}", field_name=field_name)
    return UUID(value)


def parse_optional_uuid(value: Optional[str], field_name: str = "id") -> Optional[UUID]:
    """Same as parse_uuid, but None and empty strings pass through as None."""
    if value is None or value == "":
        return None
    return parse_uuid(value, field_name)
