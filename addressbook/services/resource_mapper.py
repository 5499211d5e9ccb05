"""Resource Mapper: list/fetch/create/update/delete and relationship writes for one JSON:API type.

Invariants:
    - Query parameters are validated against the schema before any IO
    - Writes accept only writable attributes and declared relationships;
      anything else is rejected with a pointer into the document
    - Relationship linkage must reference existing records (404 otherwise)
    - validate() runs on the merged entity before flush, on create and update
    - Every successful write commits once, then evicts cached documents that
      depend on this resource type
    - GET documents are served from the response cache when caching is enabled

Design Decisions:
    - One generic mapper driven by ResourceSchema; subclasses only bind the
      schema/model pair and add validation
    - Mappers are stateless per request: the AsyncSession is passed to each call
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

from sqlalchemy.ext.asyncio import AsyncSession

from addressbook.core.documents import (
    collection_document, linkage_document, resource_document, serialize_resource,
)
from addressbook.core.domain_types import RelationshipKind
from addressbook.core.errors import (
    InvalidDocumentError,
    MethodNotAllowedError,
    NotFoundError,
    RelatedResourceNotFoundError,
    ResourceNotFoundError,
    ResourceTypeMismatchError,
)
from addressbook.core.identifiers import parse_identifier
from addressbook.core.pagination import pagination_links
from addressbook.core.query_params import QueryParams, parse_query_params
from addressbook.core.resource_schema import RelationshipSpec, ResourceSchema
from addressbook.db.base import Base
from addressbook.infrastructure.response_cache import make_cache_key
from addressbook.schemas.document import (
    RelationshipIn, ResourceDocumentIn, ResourceIdentifierIn, ResourceObjectIn,
)
from addressbook.services.repository import ResourceRepository

if TYPE_CHECKING:
    from addressbook.services.resource_registry import ResourceRegistry

logger = logging.getLogger(__name__)

RelationshipChanges = dict[RelationshipSpec, int | list[int] | None]
Linkage = ResourceIdentifierIn | list[ResourceIdentifierIn] | None


@dataclass(frozen=True)
class RequestContext:
    """What a mapper needs to know about the HTTP request."""
    base_url: str
    url: str
    query_items: tuple[tuple[str, str], ...] = ()


def parse_id(resource_type: str, resource_id: str) -> int:
    value = parse_identifier(resource_id)
    if value is None:
        raise ResourceNotFoundError(resource_type, str(resource_id))
    return value


class ResourceMapper:
    schema: ResourceSchema
    model: type[Base]

    def __init__(self, registry: "ResourceRegistry"):
        self.registry = registry
        self.paginator = registry.paginator
        self.cache = registry.cache

    @property
    def type_name(self) -> str:
        return self.schema.type.value

    def repository(self, db: AsyncSession) -> ResourceRepository:
        return ResourceRepository(db, self.model)

    def validate(self, entity: Any) -> None:
        """Field-level rules checked before persisting; none by default."""

    # ─── Serialization ──────────────────────────────────────────

    def serialize(self, entity: Any, ctx: RequestContext, params: QueryParams) -> dict:
        return serialize_resource(
            entity, self.schema, ctx.base_url, params.fields.get(self.schema.type),
        )

    async def _related_entities(
        self, db: AsyncSession, entities: list[Any], rel: RelationshipSpec,
    ) -> list[Any]:
        if rel.kind == RelationshipKind.TO_MANY:
            return [related for e in entities for related in getattr(e, rel.name)]
        ids = {getattr(e, rel.foreign_key) for e in entities} - {None}
        related_mapper = self.registry.get(rel.related_type)
        return await related_mapper.repository(db).get_many(ids)

    async def _included(
        self,
        db: AsyncSession,
        entities: list[Any],
        params: QueryParams,
        ctx: RequestContext,
    ) -> list[dict]:
        included: list[dict] = []
        seen: set[tuple[str, int]] = set()
        for name in params.include:
            rel = self.schema.relationship(name)
            related_mapper = self.registry.get(rel.related_type)
            for related in await self._related_entities(db, entities, rel):
                key = (rel.related_type.value, related.id)
                if key in seen:
                    continue
                seen.add(key)
                included.append(related_mapper.serialize(related, ctx, params))
        return included

    # ─── Caching ────────────────────────────────────────────────

    def _depends_on(self) -> set[str]:
        return {
            self.type_name,
            *(rel.related_type.value for rel in self.schema.relationships),
        }

    async def _cached(
        self, ctx: RequestContext, build: Callable[[], Awaitable[dict]],
    ) -> dict:
        if self.cache is None:
            return await build()
        key = make_cache_key(ctx.url, ctx.query_items)
        document = self.cache.get(key)
        if document is not None:
            logger.debug(
                f"Cache hit for {ctx.url}",
                extra={"resource_type": self.type_name, "cache": "hit"},
            )
            return document
        depends_on = self._depends_on()
        generation = self.cache.generation(depends_on)
        document = await build()
        self.cache.store(key, document, depends_on, generation)
        return document

    def _invalidate(self) -> None:
        if self.cache is not None:
            self.cache.invalidate(self.type_name)

    # ─── Reads ──────────────────────────────────────────────────

    async def get_or_404(self, db: AsyncSession, resource_id: str) -> Any:
        entity = await self.repository(db).get(parse_id(self.type_name, resource_id))
        if entity is None:
            raise ResourceNotFoundError(self.type_name, str(resource_id))
        return entity

    async def list_resources(
        self,
        db: AsyncSession,
        ctx: RequestContext,
        scope: dict[str, list[int]] | None = None,
    ) -> dict:
        """Paginated collection; `scope` adds filters the client cannot override."""
        params = parse_query_params(ctx.query_items, self.schema)
        window = self.paginator.window(params.page)
        filters = {**params.filters, **(scope or {})}

        async def build() -> dict:
            repo = self.repository(db)
            record_count = await repo.count(filters)
            rows = await repo.list_rows(
                filters, params.sort, window.offset, window.limit,
            )
            return collection_document(
                [self.serialize(row, ctx, params) for row in rows],
                links=pagination_links(
                    ctx.url, ctx.query_items,
                    self.paginator.link_params(window, record_count),
                ),
                meta={
                    "record_count": record_count,
                    "page_count": self.paginator.page_count(window, record_count),
                },
                included=await self._included(db, rows, params, ctx),
            )

        return await self._cached(ctx, build)

    async def fetch(self, db: AsyncSession, resource_id: str, ctx: RequestContext) -> dict:
        params = parse_query_params(ctx.query_items, self.schema)

        async def build() -> dict:
            entity = await self.get_or_404(db, resource_id)
            return resource_document(
                self.serialize(entity, ctx, params),
                await self._included(db, [entity], params, ctx),
            )

        return await self._cached(ctx, build)

    def _relationship_or_404(self, name: str) -> RelationshipSpec:
        rel = self.schema.relationship(name)
        if rel is None:
            raise NotFoundError(f"{self.type_name} has no relationship '{name}'")
        return rel

    async def fetch_relationship(
        self, db: AsyncSession, resource_id: str, name: str, ctx: RequestContext,
    ) -> dict:
        """Linkage document for /<type>/<id>/relationships/<name>."""
        rel = self._relationship_or_404(name)

        async def build() -> dict:
            entity = await self.get_or_404(db, resource_id)
            return linkage_document(entity, self.schema, rel, ctx.base_url)

        return await self._cached(ctx, build)

    async def fetch_related(
        self, db: AsyncSession, resource_id: str, name: str, ctx: RequestContext,
    ) -> dict:
        """Related resource(s) for /<type>/<id>/<name>; to-many results are paginated."""
        rel = self._relationship_or_404(name)
        related_mapper = self.registry.get(rel.related_type)
        entity = await self.get_or_404(db, resource_id)
        if rel.kind == RelationshipKind.TO_MANY:
            return await related_mapper.list_resources(
                db, ctx, scope={rel.foreign_key: [entity.id]},
            )
        related_id = getattr(entity, rel.foreign_key)
        if related_id is None:
            parse_query_params(ctx.query_items, related_mapper.schema)
            return resource_document(None)
        return await related_mapper.fetch(db, str(related_id), ctx)

    # ─── Writes ─────────────────────────────────────────────────

    def _check_type(self, resource: ResourceObjectIn) -> None:
        if resource.type != self.type_name:
            raise ResourceTypeMismatchError(self.type_name, resource.type)

    def _attribute_changes(self, resource: ResourceObjectIn) -> dict[str, Any]:
        writable = self.schema.writable_attributes
        for name, value in resource.attributes.items():
            pointer = f"/data/attributes/{name}"
            if name not in writable:
                raise InvalidDocumentError(
                    f"{name} is not allowed on {self.type_name}", pointer,
                )
            if value is not None and not isinstance(value, str):
                raise InvalidDocumentError(f"{name} must be a string or null", pointer)
        return dict(resource.attributes)

    def _linkage_id(
        self, rel: RelationshipSpec, identifier: ResourceIdentifierIn, pointer: str,
    ) -> int:
        if identifier.type != rel.related_type.value:
            raise InvalidDocumentError(
                f"{rel.name} expects type '{rel.related_type.value}', "
                f"got '{identifier.type}'",
                pointer,
            )
        value = parse_identifier(identifier.id)
        if value is None:
            raise RelatedResourceNotFoundError(
                rel.name, rel.related_type.value, identifier.id,
            )
        return value

    def _linkage_value(
        self, rel: RelationshipSpec, data: Linkage, pointer: str,
    ) -> int | list[int] | None:
        """Ids named by a linkage: one id or None for to-one, a list for to-many."""
        if rel.kind == RelationshipKind.TO_ONE:
            if isinstance(data, list):
                raise InvalidDocumentError(
                    f"{rel.name} takes a single resource identifier or null", pointer,
                )
            return None if data is None else self._linkage_id(rel, data, pointer)
        if not isinstance(data, list):
            raise InvalidDocumentError(
                f"{rel.name} takes an array of resource identifiers", pointer,
            )
        return [self._linkage_id(rel, item, pointer) for item in data]

    def _relationship_changes(self, resource: ResourceObjectIn) -> RelationshipChanges:
        changes: RelationshipChanges = {}
        for name, relationship in resource.relationships.items():
            pointer = f"/data/relationships/{name}"
            rel = self.schema.relationship(name)
            if rel is None:
                raise InvalidDocumentError(
                    f"{name} is not a relationship of {self.type_name}", pointer,
                )
            changes[rel] = self._linkage_value(rel, relationship.data, pointer)
        return changes

    async def _related_or_404(
        self, db: AsyncSession, rel: RelationshipSpec, ids: list[int],
    ) -> list[Any]:
        related_repo = self.registry.get(rel.related_type).repository(db)
        related = await related_repo.get_many(ids)
        missing = set(ids) - {r.id for r in related}
        if missing:
            raise RelatedResourceNotFoundError(
                rel.name, rel.related_type.value, str(min(missing)),
            )
        return related

    async def _apply_relationships(
        self, db: AsyncSession, entity: Any, changes: RelationshipChanges,
    ) -> None:
        for rel, value in changes.items():
            if rel.kind == RelationshipKind.TO_ONE:
                related_repo = self.registry.get(rel.related_type).repository(db)
                if value is not None and await related_repo.get(value) is None:
                    raise RelatedResourceNotFoundError(
                        rel.name, rel.related_type.value, str(value),
                    )
                setattr(entity, rel.foreign_key, value)
            else:
                setattr(entity, rel.name, await self._related_or_404(db, rel, value))

    async def _reload(self, db: AsyncSession, entity_id: int) -> Any:
        return await self.repository(db).get(entity_id, refresh=True)

    async def create(
        self, db: AsyncSession, document: ResourceDocumentIn, ctx: RequestContext,
    ) -> dict:
        resource = document.data
        self._check_type(resource)
        if resource.id is not None:
            raise InvalidDocumentError(
                "Client-generated ids are not supported", "/data/id",
            )
        attributes = self._attribute_changes(resource)
        changes = self._relationship_changes(resource)

        entity = self.model(
            **attributes,
            **{
                rel.name: []
                for rel in self.schema.relationships
                if rel.kind == RelationshipKind.TO_MANY
            },
        )
        await self._apply_relationships(db, entity, changes)
        self.validate(entity)
        self.repository(db).add(entity)
        await db.commit()
        self._invalidate()

        entity = await self._reload(db, entity.id)
        logger.info(
            f"Created {self.type_name}/{entity.id}",
            extra={"resource_type": self.type_name, "resource_id": str(entity.id)},
        )
        return resource_document(self.serialize(entity, ctx, QueryParams()))

    async def update(
        self,
        db: AsyncSession,
        resource_id: str,
        document: ResourceDocumentIn,
        ctx: RequestContext,
    ) -> dict:
        resource = document.data
        self._check_type(resource)
        if resource.id is None:
            raise InvalidDocumentError("data.id is required on update", "/data/id")
        if resource.id != str(resource_id):
            raise InvalidDocumentError(
                f"data.id '{resource.id}' does not match the URL id '{resource_id}'",
                "/data/id",
            )
        attributes = self._attribute_changes(resource)
        changes = self._relationship_changes(resource)

        entity = await self.get_or_404(db, resource_id)
        for name, value in attributes.items():
            setattr(entity, name, value)
        await self._apply_relationships(db, entity, changes)
        self.validate(entity)
        await db.commit()
        self._invalidate()

        entity = await self._reload(db, entity.id)
        logger.info(
            f"Updated {self.type_name}/{entity.id}",
            extra={"resource_type": self.type_name, "resource_id": str(entity.id)},
        )
        return resource_document(self.serialize(entity, ctx, QueryParams()))

    async def delete(self, db: AsyncSession, resource_id: str) -> None:
        entity = await self.get_or_404(db, resource_id)
        await self.repository(db).delete(entity)
        await db.commit()
        self._invalidate()
        logger.info(
            f"Deleted {self.type_name}/{resource_id}",
            extra={"resource_type": self.type_name, "resource_id": str(resource_id)},
        )

    # ─── Relationship writes ────────────────────────────────────

    def _to_many_or_405(
        self, name: str, method: str, ctx: RequestContext,
    ) -> RelationshipSpec:
        rel = self._relationship_or_404(name)
        if rel.kind != RelationshipKind.TO_MANY:
            raise MethodNotAllowedError(method, urlsplit(ctx.url).path)
        return rel

    async def _commit_relationship(
        self, db: AsyncSession, entity: Any, rel: RelationshipSpec, action: str,
    ) -> None:
        self.validate(entity)
        await db.commit()
        self._invalidate()
        logger.info(
            f"{action} {self.type_name}/{entity.id} {rel.name}",
            extra={"resource_type": self.type_name, "resource_id": str(entity.id)},
        )

    async def replace_relationship(
        self, db: AsyncSession, resource_id: str, name: str, body: RelationshipIn,
    ) -> None:
        """PATCH /<type>/<id>/relationships/<name>: the linkage becomes exactly `body.data`."""
        rel = self._relationship_or_404(name)
        value = self._linkage_value(rel, body.data, "/data")
        entity = await self.get_or_404(db, resource_id)
        await self._apply_relationships(db, entity, {rel: value})
        await self._commit_relationship(db, entity, rel, "Replaced")

    async def add_to_relationship(
        self,
        db: AsyncSession,
        resource_id: str,
        name: str,
        body: RelationshipIn,
        ctx: RequestContext,
    ) -> None:
        """POST /<type>/<id>/relationships/<name>: link members not already linked."""
        rel = self._to_many_or_405(name, "POST", ctx)
        ids = self._linkage_value(rel, body.data, "/data")
        entity = await self.get_or_404(db, resource_id)
        collection = getattr(entity, rel.name)
        for related in await self._related_or_404(db, rel, ids):
            if related not in collection:
                collection.append(related)
        await self._commit_relationship(db, entity, rel, "Added to")

    async def remove_from_relationship(
        self,
        db: AsyncSession,
        resource_id: str,
        name: str,
        body: RelationshipIn,
        ctx: RequestContext,
    ) -> None:
        """DELETE /<type>/<id>/relationships/<name>: unlink the listed members."""
        rel = self._to_many_or_405(name, "DELETE", ctx)
        ids = self._linkage_value(rel, body.data, "/data")
        entity = await self.get_or_404(db, resource_id)
        await self._related_or_404(db, rel, ids)
        removed = set(ids)
        setattr(
            entity, rel.name,
            [r for r in getattr(entity, rel.name) if r.id not in removed],
        )
        await self._commit_relationship(db, entity, rel, "Removed from")
