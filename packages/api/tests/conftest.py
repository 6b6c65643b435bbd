# This project was developed with assistance from AI tools.
"""Shared fixtures -- in-memory SQLite, the bundled policy, principals, HTTP client.

Every test gets a fresh in-memory database. StaticPool keeps the single
aiosqlite connection alive for the engine's lifetime so every session of a
test sees the same data. The real app from ``scopegate.main`` is a module
singleton; ``client_factory`` clears its dependency overrides afterwards.
"""

import uuid
from collections import namedtuple
from datetime import UTC, datetime, timedelta

import httpx
import pytest
import pytest_asyncio
from scopegate_db import Base, DatabaseService, get_db, get_db_service
from scopegate_db.enums import UserRole
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from scopegate.core.policy import get_policy, load_policy
from scopegate.core.tokens import TokenService, get_token_service
from scopegate.schemas.auth import Principal, PrincipalClaims
from scopegate.services.lifecycle import create_resource

TEST_SECRET = "test-secret-0123456789abcdef0123456789abcdef"


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database with every table created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Policy + tokens + principals
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def policy():
    """The bundled policy document."""
    return load_policy()


@pytest.fixture
def tokens():
    return TokenService(
        TEST_SECRET,
        access_ttl=timedelta(minutes=15),
        refresh_ttl=timedelta(days=1),
    )


@pytest.fixture
def make_principal():
    """Factory: build a Principal without going through login."""

    def _make(role: UserRole, scope_path=(), principal_id: str | None = None) -> Principal:
        now = datetime.now(UTC)
        return Principal(
            id=principal_id or str(uuid.uuid4()),
            role=role,
            scope_path=tuple(scope_path),
            email=f"{role.value}@example.com",
            name=role.value,
            session_id=uuid.uuid4().hex,
            issued_at=now,
            expires_at=now + timedelta(hours=1),
        )

    return _make


@pytest.fixture
def bearer(tokens):
    """Factory: Authorization header for a principal."""

    def _bearer(principal: Principal) -> dict[str, str]:
        claims = PrincipalClaims(
            id=principal.id,
            role=principal.role,
            scope_path=principal.scope_path,
            email=principal.email,
            name=principal.name,
        )
        token = tokens.issue(claims)
        return {"Authorization": f"Bearer {token.access}"}

    return _bearer


# ---------------------------------------------------------------------------
# Seeded scope tree
# ---------------------------------------------------------------------------

World = namedtuple(
    "World",
    ["admin", "tenant", "org", "other_org", "department", "project", "board"],
)


@pytest_asyncio.fixture
async def world(db_session, policy, make_principal):
    """tenant -> {org -> {department, project -> board}, other_org}.

    Fields hold scope ids only, so tests never touch ORM rows across
    session boundaries.
    """
    admin = make_principal(UserRole.SYSTEM_ADMIN)

    async def _make(resource_type, name, parent=None):
        row = await create_resource(
            db_session, policy, admin, resource_type, {"name": name}, parent
        )
        return row.id

    tenant = await _make("tenant", "Acme")
    org = await _make("organization", "North Clinic", tenant)
    other_org = await _make("organization", "South Clinic", tenant)
    department = await _make("department", "Cardiology", org)
    project = await _make("project", "Apollo", org)
    board = await _make("board", "Sprint 1", project)
    return World(admin, tenant, org, other_org, department, project, board)


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


@pytest.fixture
def client_factory(session_factory, engine, policy, tokens):
    """Factory returning an async httpx client bound to the test database."""
    from scopegate.main import app

    async def _make() -> httpx.AsyncClient:
        async def _get_db():
            async with session_factory() as session:
                try:
                    yield session
                except Exception:
                    await session.rollback()
                    raise

        async def _get_db_service():
            return DatabaseService(engine=engine)

        app.dependency_overrides[get_db] = _get_db
        app.dependency_overrides[get_db_service] = _get_db_service
        app.dependency_overrides[get_policy] = lambda: policy
        app.dependency_overrides[get_token_service] = lambda: tokens
        transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
        return httpx.AsyncClient(transport=transport, base_url="http://test")

    yield _make

    app.dependency_overrides.clear()
