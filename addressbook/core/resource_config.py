"""Resource Configuration: pagination and caching policy shared by every mapper.

Invariants:
    - Built once when the application is constructed, then read-only
    - 1 <= default_page_size <= maximum_page_size
"""

from dataclasses import dataclass

from addressbook.core.domain_types import PaginatorKind


@dataclass(frozen=True)
class ResourceConfig:
    paginator: PaginatorKind = PaginatorKind.PAGED
    default_page_size: int = 5
    maximum_page_size: int = 100
    caching: bool = True
    cache_ttl_seconds: float = 300.0
    cache_max_entries: int = 1024

    def __post_init__(self):
        if self.default_page_size < 1:
            raise ValueError("default_page_size must be at least 1")
        if self.maximum_page_size < self.default_page_size:
            raise ValueError(
                "maximum_page_size must be >= default_page_size "
                f"({self.maximum_page_size} < {self.default_page_size})",
            )
        if self.cache_max_entries < 1:
            raise ValueError("cache_max_entries must be at least 1")
