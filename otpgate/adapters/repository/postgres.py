"""
PostgreSQL repository adapter - Implements AccountRepository and OtpRepository.

This module provides the PostgreSQL implementation of the domain's
repository ports using psycopg3 with raw SQL.

Consistency Design:
------------------
1. **Registration**: The account row and its first OTP row are inserted in
   one transaction. INSERT ... ON CONFLICT (email) DO NOTHING on the UNIQUE
   email constraint makes concurrent registrations for one email safe:
   exactly one INSERT returns a row.

2. **OTP replacement**: SELECT ... FOR UPDATE on the account row serialises
   concurrent issuers for the same account before the delete-then-insert.
   The last writer wins; an earlier delivered code stops validating.

3. **Expiry**: Every OTP read filters on expires_at > NOW() using database
   time. Expired rows are inert until purge_expired_otps() removes them.

4. **Verification**: UPDATE ... WHERE verified = FALSE flips the flag at
   most once, so a lost verify race is detectable by rowcount.

All psycopg failures (including pool timeouts) surface as StorageError.
"""

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import psycopg
from psycopg_pool import ConnectionPool

from otpgate.config.settings import Settings
from otpgate.domain.exceptions import StorageError
from otpgate.domain.ports import Account, OtpRecord

logger = logging.getLogger(__name__)

_ACCOUNT_COLUMNS = "id, email, password_hash, first_name, last_name, verified, created_at"
_OTP_COLUMNS = "account_id, otp_hash, created_at, expires_at"


def create_pool(settings: Settings) -> ConnectionPool:
    """
    Create a connection pool with bounded waits.

    Every connection carries a server-side statement_timeout and every
    checkout waits at most pool_timeout_seconds.
    """
    return ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        timeout=settings.pool_timeout_seconds,
        kwargs={
            "connect_timeout": max(1, int(settings.pool_timeout_seconds)),
            "options": f"-c statement_timeout={settings.statement_timeout_ms}",
        },
        open=True,
    )


@contextmanager
def _storage_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except psycopg.Error as e:
        logger.error("Storage operation failed: %s - %s", operation, e)
        raise StorageError() from e


def _parse_id(account_id: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(account_id)
    except (TypeError, ValueError):
        return None


def _row_to_account(row: tuple) -> Account:
    return Account(
        id=str(row[0]),
        email=row[1],
        password_hash=row[2],
        first_name=row[3],
        last_name=row[4],
        verified=row[5],
        created_at=row[6],
    )


def _row_to_otp(row: tuple) -> OtpRecord:
    return OtpRecord(
        account_id=str(row[0]),
        otp_hash=row[1],
        created_at=row[2],
        expires_at=row[3],
    )


class PostgresAccountRepository:
    """
    Implements AccountRepository and OtpRepository protocols via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def create_account(
        self,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        otp_hash: str,
        otp_ttl_seconds: int,
    ) -> tuple[Account, OtpRecord] | None:
        """
        Insert the account and its first OTP record in one transaction.

        Returns:
            (account, otp_record), or None if the email is already taken
        """
        account_sql = f"""
            INSERT INTO accounts (email, password_hash, first_name, last_name)
            VALUES (%s, %s, %s, %s)
            ON CONFLICT (email) DO NOTHING
            RETURNING {_ACCOUNT_COLUMNS}
        """
        otp_sql = f"""
            INSERT INTO otp_records (account_id, otp_hash, created_at, expires_at)
            VALUES (%s, %s, NOW(), NOW() + make_interval(secs => %s))
            RETURNING {_OTP_COLUMNS}
        """

        with _storage_errors("create_account"):
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(account_sql, (email, password_hash, first_name, last_name))
                account_row = cursor.fetchone()
                if account_row is None:
                    conn.rollback()
                    return None

                cursor.execute(otp_sql, (account_row[0], otp_hash, otp_ttl_seconds))
                otp_row = cursor.fetchone()
                conn.commit()

        return _row_to_account(account_row), _row_to_otp(otp_row)

    def get_by_email(self, email: str) -> Account | None:
        sql = f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE email = %s"
        with _storage_errors("get_by_email"):
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, (email,))
                row = cursor.fetchone()
        return _row_to_account(row) if row is not None else None

    def get_by_id(self, account_id: str) -> Account | None:
        parsed = _parse_id(account_id)
        if parsed is None:
            return None

        sql = f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE id = %s"
        with _storage_errors("get_by_id"):
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, (parsed,))
                row = cursor.fetchone()
        return _row_to_account(row) if row is not None else None

    def mark_verified(self, account_id: str) -> bool:
        parsed = _parse_id(account_id)
        if parsed is None:
            return False

        sql = """
            UPDATE accounts
            SET verified = TRUE, verified_at = NOW()
            WHERE id = %s AND verified = FALSE
        """
        with _storage_errors("mark_verified"):
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, (parsed,))
                conn.commit()
                return cursor.rowcount == 1

    def replace_otp(self, account_id: str, otp_hash: str, ttl_seconds: int) -> OtpRecord:
        """
        Delete-then-insert the account's OTP record under an account row lock.

        Raises:
            StorageError: If the account does not exist or storage fails
        """
        parsed = _parse_id(account_id)
        if parsed is None:
            raise StorageError(f"Malformed account id: {account_id!r}")

        lock_sql = "SELECT id FROM accounts WHERE id = %s FOR UPDATE"
        delete_sql = "DELETE FROM otp_records WHERE account_id = %s"
        insert_sql = f"""
            INSERT INTO otp_records (account_id, otp_hash, created_at, expires_at)
            VALUES (%s, %s, NOW(), NOW() + make_interval(secs => %s))
            RETURNING {_OTP_COLUMNS}
        """

        with _storage_errors("replace_otp"):
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(lock_sql, (parsed,))
                if cursor.fetchone() is None:
                    conn.rollback()
                    raise StorageError(f"Unknown account: {account_id}")

                cursor.execute(delete_sql, (parsed,))
                cursor.execute(insert_sql, (parsed, otp_hash, ttl_seconds))
                row = cursor.fetchone()
                conn.commit()

        return _row_to_otp(row)

    def get_active_otp(self, account_id: str) -> OtpRecord | None:
        parsed = _parse_id(account_id)
        if parsed is None:
            return None

        sql = f"""
            SELECT {_OTP_COLUMNS}
            FROM otp_records
            WHERE account_id = %s AND expires_at > NOW()
        """
        with _storage_errors("get_active_otp"):
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, (parsed,))
                row = cursor.fetchone()
        return _row_to_otp(row) if row is not None else None

    def delete_otp(self, account_id: str) -> None:
        parsed = _parse_id(account_id)
        if parsed is None:
            return

        with _storage_errors("delete_otp"):
            with self._pool.connection() as conn:
                conn.execute("DELETE FROM otp_records WHERE account_id = %s", (parsed,))
                conn.commit()

    def purge_expired_otps(self) -> int:
        with _storage_errors("purge_expired_otps"):
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute("DELETE FROM otp_records WHERE expires_at <= NOW()")
                conn.commit()
                purged = cursor.rowcount

        if purged:
            logger.info("Purged %d expired OTP record(s)", purged)
        return purged

    def ping(self) -> None:
        with _storage_errors("ping"):
            with self._pool.connection() as conn:
                conn.execute("SELECT 1")


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: otpgate/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning("Migrations directory not found: %s", migrations_dir)
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info("Running %d migration(s)", len(sql_files))

    for sql_file in sql_files:
        logger.info("Executing migration: %s", sql_file.name)
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info("Migration complete: %s", sql_file.name)
        except Exception as e:
            logger.error("Migration failed: %s - %s", sql_file.name, e)
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
