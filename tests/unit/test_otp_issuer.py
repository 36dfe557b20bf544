"""
Unit tests for OtpIssuer and the credential hasher.

Tests verify:
- Code generation range and randomness
- Only hashes are persisted
- Delete-then-create keeps one record per account
- validate() distinguishes mismatch, missing record, and hasher failure
"""

from unittest.mock import Mock

import pytest

from otpgate.domain.exceptions import HashingError, OtpNotFound
from otpgate.domain.hashing import CredentialHasher
from otpgate.domain.otp import OTP_MAX, OTP_MIN, OtpIssuer, generate_code


@pytest.fixture
def account_id(repository) -> str:
    account, _ = repository.create_account(
        "user@example.com", "$2b$04$hash", "", "", "$2b$04$otp", 3600
    )
    return account.id


@pytest.fixture
def issuer(repository, hasher) -> OtpIssuer:
    return OtpIssuer(repository=repository, hasher=hasher, ttl_seconds=3600)


class TestGenerateCode:
    """Tests for generate_code()."""

    def test_code_is_four_digits_in_range(self) -> None:
        for _ in range(200):
            code = generate_code()
            assert len(code) == 4
            assert OTP_MIN <= int(code) <= OTP_MAX

    def test_codes_vary(self) -> None:
        """Codes are not always the same (randomness check)."""
        codes = {generate_code() for _ in range(10)}
        assert len(codes) >= 2


class TestIssue:
    """Tests for issue()."""

    def test_issue_returns_plaintext_and_hashed_record(self, issuer, hasher, account_id) -> None:
        issued = issuer.issue(account_id)

        assert issued.record.account_id == account_id
        assert issued.record.otp_hash != issued.plaintext
        assert hasher.verify(issued.plaintext, issued.record.otp_hash)

    def test_record_has_no_plaintext_field(self, issuer, account_id) -> None:
        issued = issuer.issue(account_id)

        assert not hasattr(issued.record, "plaintext")

    def test_issue_replaces_existing_record(self, issuer, repository, account_id) -> None:
        first = issuer.issue(account_id)
        second = issuer.issue(account_id)

        active = repository.get_active_otp(account_id)
        assert active == second.record
        assert active != first.record

    def test_ttl_applied(self, issuer, clock, account_id) -> None:
        issued = issuer.issue(account_id)

        assert (issued.record.expires_at - clock.now).total_seconds() == 3600


class TestValidate:
    """Tests for validate() and consume()."""

    def test_matching_code(self, issuer, account_id) -> None:
        issued = issuer.issue(account_id)

        assert issuer.validate(account_id, issued.plaintext) is True

    def test_mismatched_code(self, issuer, account_id) -> None:
        issued = issuer.issue(account_id)
        other = "1000" if issued.plaintext != "1000" else "1001"

        assert issuer.validate(account_id, other) is False

    def test_missing_record_raises_not_found(self, issuer, account_id) -> None:
        issuer.consume(account_id)

        with pytest.raises(OtpNotFound):
            issuer.validate(account_id, "1234")

    def test_expired_record_raises_not_found(self, issuer, clock, account_id) -> None:
        issued = issuer.issue(account_id)
        clock.advance(3600)

        with pytest.raises(OtpNotFound):
            issuer.validate(account_id, issued.plaintext)

    def test_consume_deletes_record(self, issuer, repository, account_id) -> None:
        issuer.issue(account_id)

        issuer.consume(account_id)

        assert repository.get_active_otp(account_id) is None

    def test_hasher_failure_is_not_a_mismatch(self, repository, account_id) -> None:
        """A corrupt stored digest raises HashingError instead of returning False."""
        repository.replace_otp(account_id, "not-a-bcrypt-digest", 3600)
        issuer = OtpIssuer(repository=repository, hasher=CredentialHasher(rounds=4))

        with pytest.raises(HashingError):
            issuer.validate(account_id, "1234")


class TestCredentialHasher:
    """Tests for CredentialHasher."""

    def test_hash_uses_configured_cost(self) -> None:
        digest = CredentialHasher(rounds=5).hash("secret")

        assert digest.split("$")[2] == "05"

    def test_default_cost_is_10(self) -> None:
        assert CredentialHasher().rounds == 10

    def test_verify_round_trip(self, hasher) -> None:
        digest = hasher.hash("secret")

        assert hasher.verify("secret", digest) is True
        assert hasher.verify("other", digest) is False

    def test_malformed_digest_raises(self, hasher) -> None:
        with pytest.raises(HashingError):
            hasher.verify("secret", "garbage")

    def test_bcrypt_error_wrapped(self, monkeypatch, hasher) -> None:
        monkeypatch.setattr(
            "otpgate.domain.hashing.bcrypt.hashpw", Mock(side_effect=ValueError("boom"))
        )

        with pytest.raises(HashingError):
            hasher.hash("secret")
