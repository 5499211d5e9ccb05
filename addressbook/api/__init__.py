"""API Layer: FastAPI routes and error handlers.

Invariants:
    - Routes registered explicitly in create_app() (no auto-discovery)
    - All endpoints return JSON:API documents

Design Decisions:
    - Thin routes delegate to resource mappers
"""
