"""Resource Registry: the mappers of one application, sharing one policy.

Invariants:
    - Exactly one mapper per ResourceType
    - All mappers share the registry's paginator and response cache
    - cache is None when caching is disabled

Design Decisions:
    - Built once per application by build_registry() and stored on app.state;
      no module-level registry
"""

from addressbook.core.domain_types import ResourceType
from addressbook.core.errors import NotFoundError
from addressbook.core.pagination import Paginator, build_paginator
from addressbook.core.resource_config import ResourceConfig
from addressbook.infrastructure.response_cache import ResponseCache
from addressbook.services.contact_mapper import ContactMapper
from addressbook.services.phone_number_mapper import PhoneNumberMapper
from addressbook.services.resource_mapper import ResourceMapper


class ResourceRegistry:
    def __init__(self, config: ResourceConfig, cache: ResponseCache | None = None):
        self.config = config
        self.cache = cache
        self.paginator: Paginator = build_paginator(config)
        self._mappers: dict[ResourceType, ResourceMapper] = {}

    def register(self, mapper_class: type[ResourceMapper]) -> ResourceMapper:
        mapper = mapper_class(self)
        if mapper.schema.type in self._mappers:
            raise ValueError(f"{mapper.schema.type.value} is already registered")
        self._mappers[mapper.schema.type] = mapper
        return mapper

    def get(self, resource_type: ResourceType | str) -> ResourceMapper:
        try:
            return self._mappers[ResourceType(resource_type)]
        except (KeyError, ValueError):
            raise NotFoundError(f"Unknown resource type '{resource_type}'")


def build_registry(config: ResourceConfig) -> ResourceRegistry:
    cache = None
    if config.caching:
        cache = ResponseCache(
            max_entries=config.cache_max_entries,
            ttl_seconds=config.cache_ttl_seconds,
        )
    registry = ResourceRegistry(config, cache)
    registry.register(ContactMapper)
    registry.register(PhoneNumberMapper)
    return registry
