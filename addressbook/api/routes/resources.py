"""Resource Routes: the JSON:API endpoints of one resource type under /api/v1.

Invariants:
    - GET    /<type>                              list (paginated)
    - GET    /<type>/{id}                         fetch
    - POST   /<type>                              create → 201 + Location
    - PATCH  /<type>/{id} (and PUT)               update → 200
    - DELETE /<type>/{id}                         delete → 204
    - GET    /<type>/{id}/relationships/{name}    linkage
    - PATCH  /<type>/{id}/relationships/{name}    replace linkage → 204
    - POST   /<type>/{id}/relationships/{name}    add members (to-many) → 204
    - DELETE /<type>/{id}/relationships/{name}    remove members (to-many) → 204
    - GET    /<type>/{id}/{name}                  related resource(s)
    - Any other verb on these paths → 405 (Starlette), any other path → 404

Design Decisions:
    - One router builder for both types: the routes are identical, only the
      mapper behind them differs
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from addressbook.api.dependencies import get_registry, get_request_context
from addressbook.api.responses import JsonApiResponse
from addressbook.api.routes import API_PREFIX
from addressbook.core.domain_types import ResourceType
from addressbook.infrastructure.database import get_db
from addressbook.schemas.document import RelationshipIn, ResourceDocumentIn
from addressbook.services.resource_mapper import RequestContext
from addressbook.services.resource_registry import ResourceRegistry


def build_resource_router(resource_type: ResourceType) -> APIRouter:
    router = APIRouter(
        prefix=f"{API_PREFIX}/{resource_type.value}", tags=[resource_type.value],
    )

    @router.get("")
    async def list_resources(
        db: AsyncSession = Depends(get_db),
        registry: ResourceRegistry = Depends(get_registry),
        ctx: RequestContext = Depends(get_request_context),
    ):
        """List resources, honoring filter, sort, include, fields and page params."""
        mapper = registry.get(resource_type)
        return JsonApiResponse(await mapper.list_resources(db, ctx))

    @router.post("", status_code=status.HTTP_201_CREATED)
    async def create_resource(
        body: ResourceDocumentIn,
        db: AsyncSession = Depends(get_db),
        registry: ResourceRegistry = Depends(get_registry),
        ctx: RequestContext = Depends(get_request_context),
    ):
        mapper = registry.get(resource_type)
        document = await mapper.create(db, body, ctx)
        return JsonApiResponse(
            document,
            status_code=status.HTTP_201_CREATED,
            headers={"Location": document["data"]["links"]["self"]},
        )

    @router.get("/{resource_id}")
    async def fetch_resource(
        resource_id: str,
        db: AsyncSession = Depends(get_db),
        registry: ResourceRegistry = Depends(get_registry),
        ctx: RequestContext = Depends(get_request_context),
    ):
        mapper = registry.get(resource_type)
        return JsonApiResponse(await mapper.fetch(db, resource_id, ctx))

    @router.api_route("/{resource_id}", methods=["PATCH", "PUT"])
    async def update_resource(
        resource_id: str,
        body: ResourceDocumentIn,
        db: AsyncSession = Depends(get_db),
        registry: ResourceRegistry = Depends(get_registry),
        ctx: RequestContext = Depends(get_request_context),
    ):
        mapper = registry.get(resource_type)
        return JsonApiResponse(await mapper.update(db, resource_id, body, ctx))

    @router.delete("/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_resource(
        resource_id: str,
        db: AsyncSession = Depends(get_db),
        registry: ResourceRegistry = Depends(get_registry),
    ):
        mapper = registry.get(resource_type)
        await mapper.delete(db, resource_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @router.get("/{resource_id}/relationships/{relationship}")
    async def fetch_relationship(
        resource_id: str,
        relationship: str,
        db: AsyncSession = Depends(get_db),
        registry: ResourceRegistry = Depends(get_registry),
        ctx: RequestContext = Depends(get_request_context),
    ):
        mapper = registry.get(resource_type)
        return JsonApiResponse(
            await mapper.fetch_relationship(db, resource_id, relationship, ctx),
        )

    @router.patch(
        "/{resource_id}/relationships/{relationship}",
        status_code=status.HTTP_204_NO_CONTENT,
    )
    async def replace_relationship(
        resource_id: str,
        relationship: str,
        body: RelationshipIn,
        db: AsyncSession = Depends(get_db),
        registry: ResourceRegistry = Depends(get_registry),
    ):
        mapper = registry.get(resource_type)
        await mapper.replace_relationship(db, resource_id, relationship, body)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @router.post(
        "/{resource_id}/relationships/{relationship}",
        status_code=status.HTTP_204_NO_CONTENT,
    )
    async def add_to_relationship(
        resource_id: str,
        relationship: str,
        body: RelationshipIn,
        db: AsyncSession = Depends(get_db),
        registry: ResourceRegistry = Depends(get_registry),
        ctx: RequestContext = Depends(get_request_context),
    ):
        """To-many only; to-one relationships answer 405."""
        mapper = registry.get(resource_type)
        await mapper.add_to_relationship(db, resource_id, relationship, body, ctx)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @router.delete(
        "/{resource_id}/relationships/{relationship}",
        status_code=status.HTTP_204_NO_CONTENT,
    )
    async def remove_from_relationship(
        resource_id: str,
        relationship: str,
        body: RelationshipIn,
        db: AsyncSession = Depends(get_db),
        registry: ResourceRegistry = Depends(get_registry),
        ctx: RequestContext = Depends(get_request_context),
    ):
        mapper = registry.get(resource_type)
        await mapper.remove_from_relationship(db, resource_id, relationship, body, ctx)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @router.get("/{resource_id}/{relationship}")
    async def fetch_related(
        resource_id: str,
        relationship: str,
        db: AsyncSession = Depends(get_db),
        registry: ResourceRegistry = Depends(get_registry),
        ctx: RequestContext = Depends(get_request_context),
    ):
        mapper = registry.get(resource_type)
        return JsonApiResponse(
            await mapper.fetch_related(db, resource_id, relationship, ctx),
        )

    return router
