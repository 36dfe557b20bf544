"""
Credential hasher - One-way hash and verify for passwords and OTPs.

Both secrets go through bcrypt with the same fixed cost factor. A bcrypt
failure (malformed digest, oversized input) is raised as HashingError and
is never reported as a mismatch.
"""

from dataclasses import dataclass

import bcrypt

from .exceptions import HashingError

# bcrypt only consumes the first 72 bytes of its input
BCRYPT_MAX_BYTES = 72


@dataclass(frozen=True)
class CredentialHasher:
    """bcrypt hasher with a fixed work factor."""

    rounds: int = 10

    def hash(self, plaintext: str) -> str:
        """Hash plaintext using bcrypt with the configured cost factor."""
        try:
            return bcrypt.hashpw(plaintext.encode(), bcrypt.gensalt(rounds=self.rounds)).decode()
        except (TypeError, ValueError) as e:
            raise HashingError() from e

    def verify(self, plaintext: str, digest: str) -> bool:
        """
        Compare plaintext against a bcrypt digest in constant time.

        Returns:
            True on match, False on mismatch

        Raises:
            HashingError: If the digest is malformed or bcrypt fails
        """
        try:
            return bcrypt.checkpw(plaintext.encode(), digest.encode())
        except (TypeError, ValueError) as e:
            raise HashingError() from e
