"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- In-memory storage with a controllable clock
- A fast bcrypt hasher (cost 4) for domain tests
- A fully wired AuthenticationService with a mocked email sender
- A helper that pulls the last delivered code out of the sender mock
- A PostgreSQL pool and repository, skipped when no database is reachable
"""

from collections.abc import Callable, Generator
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest
from psycopg_pool import ConnectionPool, PoolTimeout

from otpgate.adapters.repository.memory import InMemoryAccountRepository
from otpgate.adapters.repository.postgres import PostgresAccountRepository, run_migrations
from otpgate.config.settings import get_settings
from otpgate.domain.authentication import AuthenticationService
from otpgate.domain.hashing import CredentialHasher
from otpgate.domain.otp import OtpIssuer
from otpgate.domain.sessions import SessionTokenService

TEST_SECRET_KEY = "test-signing-secret-that-is-long-enough-123"


class FakeClock:
    """Mutable clock for expiry tests."""

    def __init__(self) -> None:
        self.now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repository(clock: FakeClock) -> InMemoryAccountRepository:
    return InMemoryAccountRepository(clock=clock)


@pytest.fixture
def hasher() -> CredentialHasher:
    # Lowest bcrypt cost keeps the suite fast
    return CredentialHasher(rounds=4)


@pytest.fixture
def sender() -> Mock:
    return Mock()


@pytest.fixture
def sessions() -> SessionTokenService:
    return SessionTokenService(secret_key=TEST_SECRET_KEY, expire_seconds=3600)


@pytest.fixture
def service(
    repository: InMemoryAccountRepository,
    hasher: CredentialHasher,
    sender: Mock,
    sessions: SessionTokenService,
) -> AuthenticationService:
    return AuthenticationService(
        accounts=repository,
        otp_issuer=OtpIssuer(repository=repository, hasher=hasher, ttl_seconds=3600),
        sessions=sessions,
        email_sender=sender,
        hasher=hasher,
    )


@pytest.fixture
def last_code(sender: Mock) -> Callable[[], str]:
    """Return the code from the most recent send_verification_code call."""

    def _last_code() -> str:
        return sender.send_verification_code.call_args[0][1]

    return _last_code


@pytest.fixture(scope="module")
def pool() -> Generator[ConnectionPool, None, None]:
    """PostgreSQL pool with migrations applied. Skips when DATABASE_URL is unreachable."""
    settings = get_settings()
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=1,
        max_size=10,
        kwargs={"connect_timeout": 2},
        open=True,
    )
    try:
        pool.wait(timeout=3.0)
    except PoolTimeout:
        pool.close()
        pytest.skip(f"PostgreSQL not reachable at {settings.database_url}")

    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture
def pg_repository(pool: ConnectionPool) -> Generator[PostgresAccountRepository, None, None]:
    """Repository over an emptied database. OTP rows cascade with their account."""
    with pool.connection() as conn:
        conn.execute("DELETE FROM accounts")
        conn.commit()
    yield PostgresAccountRepository(pool)
