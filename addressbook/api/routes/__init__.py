"""Route Modules: one file per concern.

Invariants:
    - Each module exposes an APIRouter (or a builder for one) with prefix and tags
    - Routes never contain business logic (delegate to resource mappers)
"""

API_PREFIX = "/api/v1"
