"""Infrastructure Layer: database sessions, response cache and logging.

Invariants:
    - Infrastructure never imports from services/ or api/
"""
