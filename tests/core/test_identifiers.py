"""Identifier Parsing: which URL, document and filter values name a record.

Tests:
    - Plain digit strings and non-negative ints parse
    - Signs, underscores, whitespace and non-ASCII digits are rejected
    - Values past the signed 64-bit range are rejected, however long
"""

import pytest

from addressbook.core.identifiers import MAX_DATABASE_INT, parse_identifier


@pytest.mark.parametrize("raw,expected", [
    ("7", 7),
    ("007", 7),
    ("0", 0),
    (42, 42),
    (str(MAX_DATABASE_INT), MAX_DATABASE_INT),
])
def test_plain_digits(raw, expected):
    assert parse_identifier(raw) == expected


@pytest.mark.parametrize("raw", [
    "1_000", "+7", "-7", " 7", "7 ", "7\n", "", "x", "1.0", "٧", True, None, 1.0, -1,
])
def test_rejected_values(raw):
    assert parse_identifier(raw) is None


def test_past_64_bit_range():
    assert parse_identifier(str(MAX_DATABASE_INT + 1)) is None
    assert parse_identifier(MAX_DATABASE_INT + 1) is None
    assert parse_identifier("99999999999999999999999") is None


def test_longer_than_int_conversion_limit():
    assert parse_identifier("9" * 5000) is None
    assert parse_identifier("0" * 5000 + "7") == 7
