"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- In-memory store and fast bcrypt hasher for domain tests
- PostgreSQL connection pool (tests skip when the database is unreachable)
- Application factory with the in-memory backend
"""

from collections.abc import Generator
from unittest.mock import Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from psycopg_pool import ConnectionPool, PoolTimeout

from referly.adapters.hashing.bcrypt_hasher import BcryptCredentialHasher
from referly.adapters.store.memory import InMemoryAccountStore
from referly.adapters.store.postgres import PostgresAccountStore, run_migrations
from referly.api.main import create_app
from referly.config.settings import Settings, get_settings
from referly.domain.lifecycle import AccountLifecycle
from referly.domain.profile import ProfileService

# Lowest cost bcrypt accepts
TEST_BCRYPT_COST = 4


@pytest.fixture
def memory_store() -> InMemoryAccountStore:
    return InMemoryAccountStore()


@pytest.fixture(scope="session")
def hasher() -> BcryptCredentialHasher:
    return BcryptCredentialHasher(cost=TEST_BCRYPT_COST)


@pytest.fixture
def otp_sender() -> Mock:
    return Mock()


@pytest.fixture
def lifecycle(
    memory_store: InMemoryAccountStore, hasher: BcryptCredentialHasher, otp_sender: Mock
) -> AccountLifecycle:
    """Lifecycle service over a fresh in-memory store."""
    return AccountLifecycle(store=memory_store, hasher=hasher, otp_sender=otp_sender)


@pytest.fixture
def profiles(memory_store: InMemoryAccountStore) -> ProfileService:
    return ProfileService(store=memory_store)


@pytest.fixture
def memory_settings() -> Settings:
    return Settings(store_backend="memory", bcrypt_cost=TEST_BCRYPT_COST, _env_file=None)


@pytest.fixture
def memory_app(memory_settings: Settings) -> FastAPI:
    return create_app(memory_settings)


@pytest.fixture
def memory_client(memory_app: FastAPI) -> Generator[TestClient, None, None]:
    """Test client with the lifespan run, backed by the in-memory store."""
    with TestClient(memory_app) as client:
        yield client


@pytest.fixture(scope="session")
def pg_pool() -> Generator[ConnectionPool, None, None]:
    """Connection pool for PostgreSQL tests; skips when the database is down."""
    settings = get_settings()
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=1,
        max_size=10,
        open=False,
    )
    try:
        pool.open(wait=True, timeout=3)
    except PoolTimeout:
        pool.close()
        pytest.skip("PostgreSQL not reachable at DATABASE_URL")
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture
def pg_store(pg_pool: ConnectionPool) -> PostgresAccountStore:
    """Store over a freshly emptied accounts table."""
    with pg_pool.connection() as conn:
        conn.execute("DELETE FROM accounts")
        conn.commit()
    return PostgresAccountStore(pg_pool)
