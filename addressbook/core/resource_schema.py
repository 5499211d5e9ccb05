"""Resource Schemas: static JSON:API shape of each resource type.

Invariants:
    - Attribute whitelists are explicit for every type; anything not listed is
      never serialized or written
    - Filter keys are a closed set per type; contacts accept none
    - Relationship foreign keys always live on the phone_numbers table

Design Decisions:
    - Frozen dataclasses over class-level declarations: the schema is data that
      mappers, query parsing and serialization read, never mutate
"""

from dataclasses import dataclass

from addressbook.core.domain_types import RelationshipKind, ResourceType


@dataclass(frozen=True)
class RelationshipSpec:
    """A named relationship and the column that links the two tables."""
    name: str
    kind: RelationshipKind
    related_type: ResourceType
    foreign_key: str


@dataclass(frozen=True)
class FilterSpec:
    """A whitelisted filter key mapped onto an integer column."""
    name: str
    column: str


@dataclass(frozen=True)
class ResourceSchema:
    type: ResourceType
    attributes: tuple[str, ...]
    read_only: frozenset[str] = frozenset()
    relationships: tuple[RelationshipSpec, ...] = ()
    filters: tuple[FilterSpec, ...] = ()

    @property
    def writable_attributes(self) -> frozenset[str]:
        return frozenset(self.attributes) - self.read_only

    @property
    def sortable_fields(self) -> frozenset[str]:
        return frozenset(("id", *self.attributes))

    @property
    def fields(self) -> frozenset[str]:
        """Names accepted in a sparse fieldset for this type."""
        return frozenset(
            (*self.attributes, *(r.name for r in self.relationships)),
        )

    def relationship(self, name: str) -> RelationshipSpec | None:
        for rel in self.relationships:
            if rel.name == name:
                return rel
        return None

    def filter(self, name: str) -> FilterSpec | None:
        for spec in self.filters:
            if spec.name == name:
                return spec
        return None


CONTACT_SCHEMA = ResourceSchema(
    type=ResourceType.CONTACTS,
    attributes=(
        "name_first", "name_last", "email", "twitter",
        "created_at", "updated_at",
    ),
    read_only=frozenset({"created_at", "updated_at"}),
    relationships=(
        RelationshipSpec(
            "phone_numbers", RelationshipKind.TO_MANY,
            ResourceType.PHONE_NUMBERS, "contact_id",
        ),
    ),
)

PHONE_NUMBER_SCHEMA = ResourceSchema(
    type=ResourceType.PHONE_NUMBERS,
    attributes=("name", "phone_number"),
    relationships=(
        RelationshipSpec(
            "contact", RelationshipKind.TO_ONE,
            ResourceType.CONTACTS, "contact_id",
        ),
    ),
    filters=(FilterSpec("contact", "contact_id"),),
)

SCHEMAS: dict[ResourceType, ResourceSchema] = {
    CONTACT_SCHEMA.type: CONTACT_SCHEMA,
    PHONE_NUMBER_SCHEMA.type: PHONE_NUMBER_SCHEMA,
}
