"""
Session tokens - Stateless signed credentials for logged-in accounts.

Tokens are HS256 JWTs carrying the account id as the subject claim plus
an expiry. Nothing is persisted: validity is signature check then expiry
check. Expired and tampered tokens produce different errors so callers
can clear the session on expiry and treat tampering as a hard failure.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt

from .exceptions import SessionExpired, SessionInvalid
from .results import AuthResult

ALGORITHM = "HS256"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SessionTokenService:
    """Issues and verifies session tokens."""

    secret_key: str
    expire_seconds: int = 86400
    clock: Callable[[], datetime] = field(default=_utcnow)

    def issue(self, account_id: str) -> str:
        """Encode a signed token for account_id with the configured expiry."""
        expire = self.clock() + timedelta(seconds=self.expire_seconds)
        payload = {"sub": account_id, "exp": expire}
        return jwt.encode(payload, self.secret_key, algorithm=ALGORITHM)

    def verify(self, token: str) -> AuthResult[str]:
        """
        Verify a token and return the account id it was issued for.

        Returns:
            AuthResult with the account id, or SessionExpired / SessionInvalid
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[ALGORITHM])
        except ExpiredSignatureError:
            return AuthResult.fail(SessionExpired())
        except JWTError:
            return AuthResult.fail(SessionInvalid())

        account_id = payload.get("sub")
        if not isinstance(account_id, str) or not account_id:
            return AuthResult.fail(SessionInvalid())
        return AuthResult.ok(account_id)
