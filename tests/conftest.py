"""Root conftest: shared test configuration."""

import os

# Ensure tests never reach a real database
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DATABASE_CREATE_TABLES", "false")
os.environ.setdefault("LOG_FORMAT", "text")
