"""JSON:API Documents: serialize entities into resource objects and top-level documents.

Invariants:
    - Resource ids are always strings; types are ResourceType values
    - Only schema-whitelisted attributes are read from an entity
    - Every relationship carries data linkage ({type, id} or null / list)
      plus self and related links
    - datetimes serialize as ISO 8601 strings

Design Decisions:
    - Entities are read with getattr only: works for ORM rows and plain objects
      alike, so this module has no database imports
"""

from datetime import datetime
from typing import Any

from addressbook.core.domain_types import RelationshipKind, ResourceType
from addressbook.core.resource_schema import RelationshipSpec, ResourceSchema


def resource_identifier(resource_type: ResourceType, resource_id: Any) -> dict:
    return {"type": resource_type.value, "id": str(resource_id)}


def resource_url(base_url: str, resource_type: ResourceType, resource_id: Any) -> str:
    return f"{base_url}/{resource_type.value}/{resource_id}"


def serialize_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def relationship_linkage(entity: Any, rel: RelationshipSpec) -> dict | list | None:
    """Resource identifier(s) the entity is linked to through `rel`."""
    if rel.kind == RelationshipKind.TO_ONE:
        related_id = getattr(entity, rel.foreign_key)
        if related_id is None:
            return None
        return resource_identifier(rel.related_type, related_id)
    return [
        resource_identifier(rel.related_type, related.id)
        for related in getattr(entity, rel.name)
    ]


def relationship_links(self_url: str, rel: RelationshipSpec) -> dict:
    return {
        "self": f"{self_url}/relationships/{rel.name}",
        "related": f"{self_url}/{rel.name}",
    }


def serialize_resource(
    entity: Any,
    schema: ResourceSchema,
    base_url: str,
    fieldset: frozenset[str] | None = None,
) -> dict:
    """Build a resource object, restricted to `fieldset` when one is given."""
    self_url = resource_url(base_url, schema.type, entity.id)
    attributes = {
        name: serialize_value(getattr(entity, name))
        for name in schema.attributes
        if fieldset is None or name in fieldset
    }
    relationships = {
        rel.name: {
            "links": relationship_links(self_url, rel),
            "data": relationship_linkage(entity, rel),
        }
        for rel in schema.relationships
        if fieldset is None or rel.name in fieldset
    }
    return {
        "id": str(entity.id),
        "type": schema.type.value,
        "links": {"self": self_url},
        "attributes": attributes,
        "relationships": relationships,
    }


def resource_document(data: dict | None, included: list[dict] | None = None) -> dict:
    document = {"data": data}
    if included:
        document["included"] = included
    return document


def collection_document(
    data: list[dict],
    links: dict[str, str] | None = None,
    meta: dict[str, Any] | None = None,
    included: list[dict] | None = None,
) -> dict:
    document: dict[str, Any] = {"data": data}
    if included:
        document["included"] = included
    if meta:
        document["meta"] = meta
    if links:
        document["links"] = links
    return document


def linkage_document(
    entity: Any, schema: ResourceSchema, rel: RelationshipSpec, base_url: str,
) -> dict:
    """Document for GET /<type>/<id>/relationships/<rel>."""
    self_url = resource_url(base_url, schema.type, entity.id)
    return {
        "links": relationship_links(self_url, rel),
        "data": relationship_linkage(entity, rel),
    }
