"""Integration-test fixtures (requires a migrated PostgreSQL).

Pre-condition: alembic upgrade head

All integration tests share a single event loop so the module-level
SQLAlchemy async engine pool stays valid for the whole session. The suite is
skipped when the database is unreachable or not migrated.
"""

import asyncio
import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from src.bg_common.database import engine
from src.bg_game.application.service import get_game_engine
from src.main import app


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client — keeps the engine pool alive."""
    try:
        async with asyncio.timeout(3):
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1 FROM games LIMIT 1"))
    except (OSError, SQLAlchemyError, TimeoutError) as exc:
        pytest.skip(f"PostgreSQL not available: {exc!r}")

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    await get_game_engine().shutdown()
    await engine.dispose()


@pytest_asyncio.fixture(loop_scope="session")
async def make_user(client: AsyncClient):  # type: ignore[no-untyped-def]
    """Insert a funded user directly; there is no signup endpoint."""

    async def _make(balance: int = 1000) -> int:
        async with engine.begin() as conn:
            row = (
                await conn.execute(
                    text(
                        "INSERT INTO users (username, balance) VALUES (:username, :balance) "
                        "RETURNING id"
                    ),
                    {"username": f"it_{uuid.uuid4().hex[:10]}", "balance": balance},
                )
            ).fetchone()
        assert row is not None
        return int(row.id)

    return _make
