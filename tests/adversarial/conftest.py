"""
Shared fixtures for adversarial tests.

Concurrency attacks run against a real PostgreSQL through the pool and
pg_repository fixtures, and are skipped when DATABASE_URL is unreachable.
"""

import bcrypt
import pytest

from otpgate.adapters.repository.postgres import PostgresAccountRepository
from otpgate.domain.ports import Account


@pytest.fixture
def victim(pg_repository: PostgresAccountRepository) -> Account:
    """An unverified account with a live OTP for code 1234."""
    password_hash = bcrypt.hashpw(b"secure123", bcrypt.gensalt(4)).decode()
    otp_hash = bcrypt.hashpw(b"1234", bcrypt.gensalt(4)).decode()
    account, _ = pg_repository.create_account(
        "victim@example.com", password_hash, "", "", otp_hash, 3600
    )
    return account
