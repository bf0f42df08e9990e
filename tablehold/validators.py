"""Validation and normalization of customer contact details."""

import re

from tablehold.exceptions import InvalidInputError

EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_REGEX = re.compile(r"^\+?[1-9]\d{1,14}$")
_PHONE_SEPARATORS = re.compile(r"[\s\-()]")


def normalize_email(email: str) -> str:
    """Return the trimmed, lower-cased address or raise InvalidInputError."""
    value = email.strip()
    if not EMAIL_REGEX.match(value):
        raise InvalidInputError("Invalid email format")
    return value.lower()


def normalize_phone(phone: str) -> str:
    """Strip spaces, dashes and parentheses, then check E.164-like shape."""
    value = _PHONE_SEPARATORS.sub("", phone)
    if not PHONE_REGEX.match(value):
        raise InvalidInputError(
            "Invalid phone number format. Use international format (e.g., +1234567890)"
        )
    return value


def validate_party(
    party_size: int,
    children_count: int,
    min_party_size: int,
    max_party_size: int,
) -> None:
    if not min_party_size <= party_size <= max_party_size:
        raise InvalidInputError(
            f"Party size must be between {min_party_size} and {max_party_size}"
        )
    if children_count < 0:
        raise InvalidInputError("Children count cannot be negative")
    if children_count > party_size:
        raise InvalidInputError("Children count cannot exceed party size")
