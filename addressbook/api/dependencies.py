"""Route Dependencies: per-request access to the registry and request context.

Invariants:
    - The registry is read from app.state, set once by create_app()
    - base_url always ends with the versioned prefix (/api/v1), no trailing slash
"""

from fastapi import Request

from addressbook.api.routes import API_PREFIX
from addressbook.services.resource_mapper import RequestContext
from addressbook.services.resource_registry import ResourceRegistry


def get_registry(request: Request) -> ResourceRegistry:
    return request.app.state.resources


def get_request_context(request: Request) -> RequestContext:
    root = str(request.base_url).rstrip("/")
    return RequestContext(
        base_url=f"{root}{API_PREFIX}",
        url=f"{root}{request.url.path}",
        query_items=tuple(request.query_params.multi_items()),
    )
