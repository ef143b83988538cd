"""
Unit tests for credvault.core.security
"""
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from credvault.core.errors import ExpiredToken, InvalidToken
from credvault.core.security import PasswordHasher, TokenSigner, generate_otp, password_too_long


class TestPasswordHasher:
    """Tests for PasswordHasher"""

    def test_hash_not_equal_to_plain(self, hasher):
        result = hasher.hash("secret123")
        assert isinstance(result, str)
        assert result != "secret123"

    def test_different_salts_per_call(self, hasher):
        assert hasher.hash("same") != hasher.hash("same")

    def test_verify(self, hasher):
        hashed = hasher.hash("correct")
        assert hasher.verify("correct", hashed) is True
        assert hasher.verify("wrong", hashed) is False

    def test_malformed_hash_does_not_verify(self, hasher):
        assert hasher.verify("anything", "not-a-bcrypt-hash") is False

    def test_default_cost_is_fixed(self):
        hashed = PasswordHasher().hash("pw")
        assert hashed.startswith("$2b$12$")

    def test_overlong_password_does_not_verify(self, hasher):
        hashed = hasher.hash("correct")
        # 72 characters but 144 bytes
        assert hasher.verify("\u00e9" * 72, hashed) is False

    def test_length_limit_counts_bytes(self):
        assert password_too_long("a" * 72) is False
        assert password_too_long("a" * 73) is True
        assert password_too_long("\u00e9" * 37) is True


class TestGenerateOtp:
    """Tests for generate_otp"""

    def test_four_digits_by_default(self):
        code = generate_otp()
        assert len(code) == 4
        assert code.isdigit()

    def test_custom_length(self):
        assert len(generate_otp(6)) == 6

    def test_codes_vary(self):
        codes = {generate_otp() for _ in range(50)}
        assert len(codes) > 1


class TestTokenSigner:
    """Tests for TokenSigner"""

    def test_issue_and_verify(self, signer):
        token = signer.issue(42)
        assert signer.verify(token) == 42

    def test_expiry_is_one_hour(self, signer):
        token = signer.issue(7)
        claims = jwt.get_unverified_claims(token)
        assert claims["sub"] == "7"
        assert claims["exp"] - claims["iat"] == 3600

    def test_wrong_secret_is_invalid(self, signer):
        token = TokenSigner("another-secret").issue(1)
        with pytest.raises(InvalidToken):
            signer.verify(token)

    def test_tampered_token_is_invalid(self, signer):
        token = signer.issue(1)
        with pytest.raises(InvalidToken):
            signer.verify(token[:-5] + "xxxxx")

    def test_garbage_is_invalid(self, signer):
        with pytest.raises(InvalidToken):
            signer.verify("invalid.jwt.token")

    def test_expired_token(self):
        expired_signer = TokenSigner("secret", expires_delta=timedelta(seconds=-10))
        token = expired_signer.issue(1)
        with pytest.raises(ExpiredToken):
            expired_signer.verify(token)

    def test_non_numeric_subject_is_invalid(self):
        token = jwt.encode(
            {"sub": "alice", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            "secret",
            algorithm="HS256",
        )
        with pytest.raises(InvalidToken):
            TokenSigner("secret").verify(token)

    def test_empty_secret_rejected(self):
        with pytest.raises(ValueError):
            TokenSigner("")
