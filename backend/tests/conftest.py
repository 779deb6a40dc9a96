"""
GenEdu Backend — Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets a fresh in-memory SQLite database built from the
       model metadata through the same init_engine() used in production.

Fixture Hierarchy:
    db_engine          in-memory sqlite+aiosqlite engine, tables created
    ├── db_session     short-lived session for seeding / reading back
    ├── test_client    httpx AsyncClient bound to the FastAPI app
    ├── create_user    factory: insert a User row
    └── create_notebook factory: insert a Notebook row
"""

import os

# Must precede any genedu import: settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET"] = "test-secret-not-for-production"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import Any, Dict, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.pool import StaticPool

from genedu import database
from genedu.config import settings
from genedu.database import Base
from genedu.models.activity import Activity  # noqa: F401
from genedu.models.notebook import Notebook, default_sharing
from genedu.models.user import User
from genedu.security import create_access_token


# ══════════════════════════════════════════════════════════════════════════
# Helpers
# ══════════════════════════════════════════════════════════════════════════

def make_token(user_id: str, role: str = "student", **claims: Any) -> str:
    """Sign a token the way the login service does."""
    payload = {"userId": user_id, "email": f"{user_id}@example.com", "role": role}
    payload.update(claims)
    return create_access_token(payload)


def login(client: AsyncClient, user_id: str, role: str = "student", cookie: Optional[str] = None) -> str:
    """Replace the client's cookies with a token for user_id."""
    token = make_token(user_id, role=role)
    client.cookies.clear()
    client.cookies.set(cookie or settings.auth_cookie_name, token)
    return token


async def fetch(model, pk):
    """Read a row back in a new session, bypassing any identity map."""
    async with database.async_session_factory() as session:
        return await session.get(model, pk)


async def fetch_all(model):
    async with database.async_session_factory() as session:
        result = await session.execute(select(model))
        return list(result.scalars().all())


# ══════════════════════════════════════════════════════════════════════════
# Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """
    In-memory database shared by every connection of one test.

    StaticPool keeps a single connection so the tables created here are
    visible to the sessions opened by the app.
    """
    engine = database.init_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await database.dispose_engine()


@pytest_asyncio.fixture
async def db_session(db_engine):
    async with database.async_session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def test_client(db_engine):
    """
    HTTPX AsyncClient talking to the app through ASGITransport.

    The lifespan is not run; db_engine has already initialized the engine.
    """
    from genedu.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def create_notebook(db_engine):
    async def _create(
        notebook_id: str = "nb_1",
        user_id: str = "u1",
        sharing: Optional[Dict[str, Any]] = None,
        **fields: Any,
    ) -> Notebook:
        notebook = Notebook(
            notebook_id=notebook_id,
            user_id=user_id,
            sharing=sharing if sharing is not None else default_sharing(),
            **fields,
        )
        async with database.async_session_factory() as session:
            session.add(notebook)
            await session.commit()
        return notebook

    return _create


@pytest.fixture
def create_user(db_engine):
    async def _create(
        user_id: str,
        role: str = "student",
        email: Optional[str] = None,
        **fields: Any,
    ) -> User:
        user = User(
            user_id=user_id,
            name=fields.pop("name", user_id.title()),
            email=email or f"{user_id}@example.com",
            password=fields.pop("password", "$2b$12$hashedpasswordvalue"),
            role=role,
            **fields,
        )
        async with database.async_session_factory() as session:
            session.add(user)
            await session.commit()
        return user

    return _create
