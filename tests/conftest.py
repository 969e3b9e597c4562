"""Test configuration and fixtures.

Supports parallel execution via pytest-xdist (pytest -n auto).
Each worker gets its own Postgres schema. Within a worker, tables are created
once per session and each test runs inside a rolled-back transaction (fast).
Tests that need truly concurrent sessions use ``committed_sessions`` instead,
which commits for real and truncates afterwards.
"""

import asyncio
import uuid
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
import redis.asyncio as aioredis
import sqlalchemy
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.config import settings
from app.database import Base, get_db
from app.main import app
from app.redis import get_redis

IDENTITY_HEADER = "X-User-Id"


# ---------------------------------------------------------------------------
# Per-worker database isolation (for pytest-xdist)
# ---------------------------------------------------------------------------

def _worker_schema(worker_id: str) -> str:
    """Each xdist worker gets its own Postgres schema for isolation."""
    if worker_id == "master":
        return "public"
    return f"test_{worker_id}"


def _worker_redis_db(worker_id: str) -> int:
    if worker_id == "master":
        return 0
    return int(worker_id.replace("gw", "")) + 1


@pytest.fixture(scope="session")
def worker_id(request: pytest.FixtureRequest) -> str:
    if hasattr(request.config, "workerinput"):
        return request.config.workerinput["workerid"]
    return "master"


def _drop_enum_types_sql(schema: str) -> str:
    return (
        "DO $$ DECLARE r RECORD; "
        "BEGIN FOR r IN (SELECT typname FROM pg_type t JOIN pg_namespace n ON t.typnamespace = n.oid "
        f"WHERE n.nspname = '{schema}' AND t.typtype = 'e') "
        f"LOOP EXECUTE 'DROP TYPE IF EXISTS {schema}.' || quote_ident(r.typname) || ' CASCADE'; END LOOP; END $$;"
    )


async def _setup_schema(schema: str) -> None:
    """Create per-worker schema and tables."""
    engine_auto = create_async_engine(
        settings.test_database_url, isolation_level="AUTOCOMMIT"
    )
    async with engine_auto.connect() as conn:
        if schema != "public":
            await conn.execute(text(f'DROP SCHEMA IF EXISTS "{schema}" CASCADE'))
            await conn.execute(text(f'CREATE SCHEMA "{schema}"'))
    await engine_auto.dispose()

    engine = create_async_engine(
        settings.test_database_url,
        connect_args={"server_settings": {"search_path": schema}},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.execute(text(_drop_enum_types_sql(schema)))
        await conn.execute(text("DROP TABLE IF EXISTS alembic_version"))
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()


async def _teardown_schema(schema: str) -> None:
    """Drop per-worker schema or clean public schema."""
    if schema != "public":
        engine = create_async_engine(
            settings.test_database_url, isolation_level="AUTOCOMMIT"
        )
        async with engine.connect() as conn:
            await conn.execute(text(f'DROP SCHEMA IF EXISTS "{schema}" CASCADE'))
        await engine.dispose()
        return

    engine = create_async_engine(settings.test_database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.execute(text(_drop_enum_types_sql("public")))
    await engine.dispose()


@pytest.fixture(scope="session")
def _worker_db_setup(worker_id: str) -> tuple[str, str]:
    """Create per-worker schema and tables once per session (sync wrapper).

    Returns (async_db_url, schema_name).
    """
    schema = _worker_schema(worker_id)
    asyncio.run(_setup_schema(schema))

    yield settings.test_database_url, schema

    asyncio.run(_teardown_schema(schema))


# ---------------------------------------------------------------------------
# Per-test fixtures: transaction rollback isolation
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolate_settings() -> None:
    """Snapshot settings before each test and restore after to prevent mutation bleed."""
    original = settings.model_dump()
    # Generous buckets so lifecycle tests never trip the limiter
    for category in ("read", "write", "bid", "review"):
        object.__setattr__(settings, f"rate_limit_{category}_capacity", 1000)
        object.__setattr__(settings, f"rate_limit_{category}_refill_per_min", 1000)
    yield  # type: ignore[misc]
    for key, value in original.items():
        object.__setattr__(settings, key, value)


@pytest_asyncio.fixture
async def _worker_engine(_worker_db_setup: tuple[str, str]) -> AsyncGenerator[AsyncEngine, None]:
    """Async engine for this worker's test DB (created per-test, cheap)."""
    url, schema = _worker_db_setup
    engine = create_async_engine(
        url,
        connect_args={"server_settings": {"search_path": schema}},
    )
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def _worker_redis(worker_id: str) -> AsyncGenerator[aioredis.Redis, None]:
    """Per-worker Redis connection using separate DB numbers."""
    base_url = settings.redis_url.rsplit("/", 1)[0]
    db_num = _worker_redis_db(worker_id)
    redis_client = aioredis.from_url(f"{base_url}/{db_num}")
    await redis_client.flushdb()
    yield redis_client
    await redis_client.flushdb()
    await redis_client.aclose()


@pytest_asyncio.fixture
async def db_session(
    _worker_engine: AsyncEngine,
) -> AsyncGenerator[AsyncSession, None]:
    """Per-test session wrapped in a transaction that rolls back after the test.

    Tests that call session.commit() will commit the inner SAVEPOINT, not the
    outer transaction — so data is still rolled back at the end.
    """
    async with _worker_engine.connect() as conn:
        txn = await conn.begin()
        await conn.begin_nested()

        session = AsyncSession(bind=conn, expire_on_commit=False)

        @sqlalchemy.event.listens_for(session.sync_session, "after_transaction_end")
        def reopen_nested(session_sync, transaction):  # type: ignore[no-untyped-def]
            if conn.closed:
                return
            if not conn.in_nested_transaction():
                conn.sync_connection.begin_nested()  # type: ignore[union-attr]

        yield session

        await session.close()
        await txn.rollback()


@pytest_asyncio.fixture
async def committed_sessions(
    _worker_engine: AsyncEngine,
) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory with real commits, for tests that race independent sessions.

    Every table is emptied afterwards.
    """
    factory = async_sessionmaker(_worker_engine, class_=AsyncSession, expire_on_commit=False)
    yield factory

    async with _worker_engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            await conn.execute(table.delete())


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    _worker_redis: aioredis.Redis,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP test client with overridden DB and Redis dependencies."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    async def override_get_redis() -> AsyncGenerator[aioredis.Redis, None]:
        yield _worker_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def as_user(user_id: str) -> dict[str, str]:
    """Headers the auth gateway would forward for this user."""
    return {IDENTITY_HEADER: user_id}


def make_user_data(role: str = "requester", name: str | None = None) -> dict:
    """Factory for user registration payload."""
    return {
        "display_name": name or f"Test {role.title()}",
        "email": f"{uuid.uuid4().hex[:12]}@example.com",
        "phone": "+15550100",
        "role": role,
    }


def make_request_data(**overrides: object) -> dict:
    """Factory for service request payload."""
    data = {
        "service_type": "plumbing",
        "description": "Kitchen sink is leaking",
        "location": "12 Harbour Road",
        "scheduled_date": "2026-11-02",
        "scheduled_time": "09:30",
        "phone": "+15550199",
    }
    data.update(overrides)
    return data


async def create_user(client: AsyncClient, role: str = "requester") -> str:
    resp = await client.post("/users", json=make_user_data(role))
    assert resp.status_code == 201, resp.text
    return resp.json()["user_id"]


async def post_request(client: AsyncClient, requester_id: str, **overrides: object) -> str:
    resp = await client.post(
        "/requests", json=make_request_data(**overrides), headers=as_user(requester_id)
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["request_id"]


async def place_bid(client: AsyncClient, worker_id: str, request_id: str, amount: str) -> str:
    resp = await client.post(
        "/bids",
        json={"request_id": request_id, "amount": amount},
        headers=as_user(worker_id),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["bid_id"]


async def accept(client: AsyncClient, requester_id: str, bid_id: str):  # type: ignore[no-untyped-def]
    return await client.put(f"/bids/{bid_id}/accept", headers=as_user(requester_id))


async def complete(client: AsyncClient, user_id: str, request_id: str):  # type: ignore[no-untyped-def]
    return await client.put(
        f"/requests/{request_id}", json={"status": "completed"}, headers=as_user(user_id)
    )


async def completed_job(client: AsyncClient, amount: str = "1000") -> tuple[str, str, str]:
    """Drive a request to completed. Returns (request_id, requester_id, worker_id)."""
    requester_id = await create_user(client, "requester")
    worker_id = await create_user(client, "worker")
    request_id = await post_request(client, requester_id)
    bid_id = await place_bid(client, worker_id, request_id, amount)
    resp = await accept(client, requester_id, bid_id)
    assert resp.status_code == 200, resp.text
    resp = await complete(client, requester_id, request_id)
    assert resp.status_code == 200, resp.text
    return request_id, requester_id, worker_id
