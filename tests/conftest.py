"""
Pytest configuration and fixtures for sender rewriting tests.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import AsyncGenerator, Callable, Iterator

import asyncpg
import pytest
from dotenv import load_dotenv

from srs_rewrite import (
    EngineConfig,
    InMemoryAliasStore,
    PostgresAliasStore,
    RewriteEngine,
)

# 2024-06-01T12:00:00Z
NOW = 1717243200.0
SECONDS_PER_DAY = 86400


class FakeClock:
    """Settable Unix clock for deterministic timestamps."""

    def __init__(self, now: float = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance_days(self, days: int) -> None:
        self.now += days * SECONDS_PER_DAY


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config() -> EngineConfig:
    return EngineConfig(secrets=("primary-secret", "rotated-secret"))


@pytest.fixture
def make_engine(clock: FakeClock) -> Iterator[Callable[..., RewriteEngine]]:
    """Factory for ready engines sharing the fake clock; closed on teardown."""
    engines = []

    def _make(config: EngineConfig | None = None, **overrides) -> RewriteEngine:
        if config is None:
            config = EngineConfig(secrets=("primary-secret", "rotated-secret"), **overrides)
        engine = RewriteEngine.open(config, clock=clock)
        engines.append(engine)
        return engine

    yield _make

    for engine in engines:
        engine.close()


@pytest.fixture
def engine(make_engine: Callable[..., RewriteEngine]) -> RewriteEngine:
    return make_engine()


@pytest.fixture
def memory_store() -> InMemoryAliasStore:
    """Create an in-memory alias store for testing."""
    return InMemoryAliasStore()


@pytest.fixture
async def pg_pool() -> AsyncGenerator[asyncpg.Pool, None]:
    """Create a PostgreSQL connection pool for testing."""
    # Load environment from project root
    env_path = Path(__file__).parent.parent / ".env"
    load_dotenv(env_path)

    database_url = os.environ.get("DATABASE_URL")
    if not database_url:
        pytest.skip("DATABASE_URL not set, skipping PostgreSQL tests")

    pool = await asyncpg.create_pool(database_url)
    if pool is None:
        pytest.skip("Failed to create PostgreSQL connection pool")

    yield pool

    await pool.close()


@pytest.fixture
async def postgres_store(pg_pool: asyncpg.Pool) -> PostgresAliasStore:
    """Create a PostgreSQL alias store with an empty table."""
    store = PostgresAliasStore(pg_pool)
    await store.ensure_schema()
    await pg_pool.execute("TRUNCATE TABLE srs_aliases")
    return store
