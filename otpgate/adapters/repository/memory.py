"""
In-memory repository adapter - Implements AccountRepository and OtpRepository.

Process-local storage for development (STORAGE_BACKEND=memory) and for
deterministic tests. A single lock around every operation stands in for
the UNIQUE email constraint and the account row lock of the PostgreSQL
adapter. Expiry is evaluated against an injectable clock.
"""

import threading
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timedelta, timezone

from otpgate.domain.exceptions import StorageError
from otpgate.domain.ports import Account, OtpRecord


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryAccountRepository:
    """
    Implements AccountRepository and OtpRepository protocols with dicts.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._accounts: dict[str, Account] = {}
        self._ids_by_email: dict[str, str] = {}
        self._otps: dict[str, OtpRecord] = {}

    def create_account(
        self,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        otp_hash: str,
        otp_ttl_seconds: int,
    ) -> tuple[Account, OtpRecord] | None:
        with self._lock:
            if email in self._ids_by_email:
                return None

            now = self._clock()
            account = Account(
                id=str(uuid.uuid4()),
                email=email,
                password_hash=password_hash,
                first_name=first_name,
                last_name=last_name,
                verified=False,
                created_at=now,
            )
            record = self._new_record(account.id, otp_hash, otp_ttl_seconds, now)
            self._accounts[account.id] = account
            self._ids_by_email[email] = account.id
            self._otps[account.id] = record
            return account, record

    def get_by_email(self, email: str) -> Account | None:
        with self._lock:
            account_id = self._ids_by_email.get(email)
            return self._accounts.get(account_id) if account_id else None

    def get_by_id(self, account_id: str) -> Account | None:
        with self._lock:
            return self._accounts.get(account_id)

    def mark_verified(self, account_id: str) -> bool:
        with self._lock:
            account = self._accounts.get(account_id)
            if account is None or account.verified:
                return False
            self._accounts[account_id] = replace(account, verified=True)
            return True

    def replace_otp(self, account_id: str, otp_hash: str, ttl_seconds: int) -> OtpRecord:
        with self._lock:
            if account_id not in self._accounts:
                raise StorageError(f"Unknown account: {account_id}")
            self._otps.pop(account_id, None)
            record = self._new_record(account_id, otp_hash, ttl_seconds, self._clock())
            self._otps[account_id] = record
            return record

    def get_active_otp(self, account_id: str) -> OtpRecord | None:
        with self._lock:
            record = self._otps.get(account_id)
            if record is None or record.expires_at <= self._clock():
                return None
            return record

    def delete_otp(self, account_id: str) -> None:
        with self._lock:
            self._otps.pop(account_id, None)

    def purge_expired_otps(self) -> int:
        with self._lock:
            now = self._clock()
            expired = [key for key, record in self._otps.items() if record.expires_at <= now]
            for key in expired:
                del self._otps[key]
            return len(expired)

    def ping(self) -> None:
        return None

    def _new_record(
        self, account_id: str, otp_hash: str, ttl_seconds: int, now: datetime
    ) -> OtpRecord:
        return OtpRecord(
            account_id=account_id,
            otp_hash=otp_hash,
            created_at=now,
            expires_at=now + timedelta(seconds=ttl_seconds),
        )
