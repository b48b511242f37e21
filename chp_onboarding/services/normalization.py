from __future__ import annotations

import re

"""Field normalization rules for roster rows.

Pure functions, no I/O:
- phone numbers: local trunk prefix "07" -> country code "254"
- phone validation: 4-15 digits, optional leading '+', no leading zero
- usernames: "John  O'Doe" -> "john.odoe"
"""

__all__ = [
    "normalize_phone_number",
    "validate_phone_number",
    "normalize_username",
]

TRUNK_PREFIX = "07"
COUNTRY_CODE = "254"

# ASCII digits only; \d would also accept Arabic-Indic or fullwidth digits
_PHONE_PATTERN = re.compile(r"^\+?[1-9][0-9]{3,14}$")
_PHONE_SEPARATORS = re.compile(r"[\s\-()]")
_USERNAME_DISALLOWED = re.compile(r"[^a-z0-9\s]")
_WHITESPACE_RUN = re.compile(r"\s+")


def normalize_phone_number(raw: str) -> str:
    """Convert a local Kenyan mobile number to international form.

    Only the "07" trunk prefix is rewritten; anything else (already
    international, landline, foreign) is returned trimmed but otherwise as-is.

    >>> normalize_phone_number(" 0712345678 ")
    '254712345678'
    >>> normalize_phone_number("254712345678")
    '254712345678'
    """
    value = raw.strip()
    if value.startswith(TRUNK_PREFIX):
        # Only the trunk zero is dropped; the 7 is part of the subscriber number
        return COUNTRY_CODE + value[1:]
    return value


def validate_phone_number(value: str) -> bool:
    return bool(_PHONE_PATTERN.match(_PHONE_SEPARATORS.sub("", value)))


def normalize_username(full_name: str) -> str:
    """Derive a dotted login name from a person's full name.

    Returns "" when nothing usable remains; callers must treat that as an
    input error.

    >>> normalize_username("John O. Doe")
    'john.o.doe'
    """
    cleaned = _USERNAME_DISALLOWED.sub("", full_name.lower()).strip()
    return _WHITESPACE_RUN.sub(".", cleaned)
