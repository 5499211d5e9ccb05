"""Query Parameter Parsing: JSON:API query strings checked against a resource schema.

Invariants:
    - Only filter[...], page[...], fields[...], sort and include are accepted
    - filter keys must be whitelisted by the schema (UnsupportedFilterError otherwise)
    - Filter values are comma-separated integers, matched with IN
    - page[...] values are passed through untouched; the paginator owns them
    - include is one level deep and limited to the schema's relationships

Design Decisions:
    - Pure function over the raw (key, value) pairs: no Request object, no IO,
      so the same parser serves list and related-resource endpoints
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from addressbook.core.domain_types import ResourceType
from addressbook.core.errors import (
    InvalidQueryParameterError, UnsupportedFilterError,
)
from addressbook.core.identifiers import parse_identifier
from addressbook.core.resource_schema import SCHEMAS, ResourceSchema

_BRACKETED = re.compile(r"^(filter|page|fields)\[([^\[\]]+)\]$")


@dataclass(frozen=True)
class SortField:
    name: str
    descending: bool = False


@dataclass(frozen=True)
class QueryParams:
    filters: dict[str, list[int]] = field(default_factory=dict)
    page: dict[str, str] = field(default_factory=dict)
    sort: tuple[SortField, ...] = ()
    include: tuple[str, ...] = ()
    fields: dict[ResourceType, frozenset[str]] = field(default_factory=dict)


def _split(value: str) -> list[str]:
    return [part.strip() for part in value.split(",")]


def parse_filter_values(key: str, raw: str) -> list[int]:
    values = []
    for part in _split(raw):
        value = parse_identifier(part)
        if value is None:
            raise InvalidQueryParameterError(
                f"filter[{key}]", f"{part!r} is not a valid value for filter[{key}]",
            )
        values.append(value)
    return values


def parse_sort(raw: str, schema: ResourceSchema) -> tuple[SortField, ...]:
    fields = []
    for part in _split(raw):
        descending = part.startswith("-")
        name = part[1:] if descending else part
        if name not in schema.sortable_fields:
            raise InvalidQueryParameterError(
                "sort", f"{name!r} is not a valid sort field for {schema.type.value}",
            )
        fields.append(SortField(name, descending))
    return tuple(fields)


def parse_include(raw: str, schema: ResourceSchema) -> tuple[str, ...]:
    names = []
    for name in _split(raw):
        if schema.relationship(name) is None:
            raise InvalidQueryParameterError(
                "include",
                f"{name!r} is not a valid relationship of {schema.type.value}",
            )
        if name not in names:
            names.append(name)
    return tuple(names)


def parse_fieldset(type_name: str, raw: str) -> tuple[ResourceType, frozenset[str]]:
    parameter = f"fields[{type_name}]"
    try:
        resource_type = ResourceType(type_name)
    except ValueError:
        raise InvalidQueryParameterError(
            parameter, f"{type_name!r} is not a valid resource type",
        )
    names = frozenset(name for name in _split(raw) if name)
    unknown = sorted(names - SCHEMAS[resource_type].fields)
    if unknown:
        raise InvalidQueryParameterError(
            parameter, f"{', '.join(unknown)} not valid for {type_name}",
        )
    return resource_type, names


def parse_query_params(
    items: Iterable[tuple[str, str]], schema: ResourceSchema,
) -> QueryParams:
    """Validate query string pairs for a request whose primary data is `schema`."""
    filters: dict[str, list[int]] = {}
    page: dict[str, str] = {}
    fields: dict[ResourceType, frozenset[str]] = {}
    sort: tuple[SortField, ...] = ()
    include: tuple[str, ...] = ()

    for key, value in items:
        match = _BRACKETED.match(key)
        if match:
            family, name = match.groups()
            if family == "filter":
                spec = schema.filter(name)
                if spec is None:
                    raise UnsupportedFilterError(schema.type.value, name)
                filters[spec.column] = parse_filter_values(name, value)
            elif family == "page":
                page[name] = value
            else:
                resource_type, names = parse_fieldset(name, value)
                fields[resource_type] = names
        elif key == "sort":
            sort = parse_sort(value, schema)
        elif key == "include":
            include = parse_include(value, schema)
        else:
            raise InvalidQueryParameterError(key, f"{key} is not allowed")

    return QueryParams(
        filters=filters, page=page, sort=sort, include=include, fields=fields,
    )
