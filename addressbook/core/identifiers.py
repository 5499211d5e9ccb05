"""Identifier Parsing: integer record ids from URLs, documents and filters.

Invariants:
    - Only plain ASCII digits name a record ("1_000", "+7", " 7" do not)
    - Nothing above the signed 64-bit range reaches the database
"""

import re
from typing import Any

MAX_DATABASE_INT = 2**63 - 1
_MAX_DIGITS = len(str(MAX_DATABASE_INT))

_DIGITS = re.compile(r"[0-9]+")


def parse_identifier(raw: Any) -> int | None:
    """Integer id for `raw`, or None when it cannot name a stored record."""
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw if 0 <= raw <= MAX_DATABASE_INT else None
    if not isinstance(raw, str) or not _DIGITS.fullmatch(raw):
        return None
    if len(raw.lstrip("0")) > _MAX_DIGITS:
        return None
    value = int(raw)
    if value > MAX_DATABASE_INT:
        return None
    return value
