"""API test fixtures: async DB + FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - Every test gets a fresh application (and so a fresh response cache)
    - get_db dependency overridden to use the test DB session factory
"""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession, async_sessionmaker, create_async_engine,
)
from sqlalchemy.pool import StaticPool

import addressbook.models  # noqa: F401
from addressbook.config import Settings
from addressbook.db.base import Base
from addressbook.infrastructure.database import get_db
from addressbook.main import create_app
from addressbook.models.contact import Contact
from addressbook.models.phone_number import PhoneNumber


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def make_app(test_session_factory):
    """Build an app with Settings overrides, wired to the test database."""
    def _make_app(**overrides) -> FastAPI:
        app = create_app(Settings(**overrides))

        async def override_get_db():
            async with test_session_factory() as session:
                yield session

        app.dependency_overrides[get_db] = override_get_db
        return app

    return _make_app


@pytest.fixture
def app(make_app):
    return make_app()


@pytest.fixture
def make_client():
    def _make_client(app: FastAPI) -> AsyncClient:
        return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
    return _make_client


@pytest.fixture
async def client(app, make_client):
    async with make_client(app) as c:
        yield c


@pytest.fixture
async def seed_contacts(test_db):
    """Seven contacts, each with a cell and a home number."""
    contacts = []
    for i in range(7):
        contact = Contact(
            name_first=f"First{i}",
            name_last=f"Last{i}",
            email=f"person{i}@example.com",
            twitter=f"@person{i}",
            phone_numbers=[
                PhoneNumber(name="cell", phone_number=f"555-010{i}"),
                PhoneNumber(name="home", phone_number=f"555-020{i}"),
            ],
        )
        test_db.add(contact)
        contacts.append(contact)
    await test_db.commit()
    return contacts


@pytest.fixture
async def seed_contact(seed_contacts):
    return seed_contacts[0]
