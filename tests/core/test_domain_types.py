"""Domain Types: verifies enum values.

Tests:
    - ResourceType values are the JSON:API type names
    - Paginator kinds accept their setting strings
"""

from addressbook.core.domain_types import PaginatorKind, RelationshipKind, ResourceType


def test_resource_types_are_table_names():
    assert {t.value for t in ResourceType} == {"contacts", "phone_numbers"}


def test_enums_compare_equal_to_their_values():
    assert ResourceType.CONTACTS == "contacts"
    assert RelationshipKind.TO_MANY == "to_many"


def test_paginator_kind_from_setting_string():
    assert PaginatorKind("offset") is PaginatorKind.OFFSET
    assert len(PaginatorKind) == 3
