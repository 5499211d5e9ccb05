"""Request Document Schemas: the {"data": {...}} envelope accepted on POST/PATCH/PUT.

Invariants:
    - ids are normalized to strings (clients may send 1 or "1")
    - relationships[...].data is required but may be null (to-one) or a list (to-many)
    - Unknown top-level members of a resource object are rejected
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _normalize_id(v: Any) -> Any:
    if isinstance(v, bool):
        raise ValueError("id must be a string or integer")
    if isinstance(v, int):
        return str(v)
    return v


class ResourceIdentifierIn(BaseModel):
    """Linkage object {"type": ..., "id": ...}."""
    type: str
    id: str

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, v: Any) -> Any:
        return _normalize_id(v)


class RelationshipIn(BaseModel):
    data: ResourceIdentifierIn | list[ResourceIdentifierIn] | None = Field(...)


class ResourceObjectIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: str = Field(min_length=1)
    id: str | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)
    relationships: dict[str, RelationshipIn] = Field(default_factory=dict)

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, v: Any) -> Any:
        return _normalize_id(v)


class ResourceDocumentIn(BaseModel):
    """Top-level request document."""
    data: ResourceObjectIn
