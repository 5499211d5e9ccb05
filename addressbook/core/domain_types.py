"""Domain Types: enums shared across the address book.

Invariants:
    - JSON:API type names are the table names (ResourceType values)
    - All valid states encoded as Enums, no raw string matching

Design Decisions:
    - str Enums: serialize straight into JSON:API documents
"""

from enum import Enum


# ─── Enums ───────────────────────────────────────────────────────

class ResourceType(str, Enum):
    """JSON:API resource types exposed under /api/v1."""
    CONTACTS = "contacts"
    PHONE_NUMBERS = "phone_numbers"


class RelationshipKind(str, Enum):
    """Relationship cardinality as seen from the owning resource."""
    TO_ONE = "to_one"
    TO_MANY = "to_many"


class PaginatorKind(str, Enum):
    """Paginator strategies selectable at startup."""
    NONE = "none"
    OFFSET = "offset"
    PAGED = "paged"
