"""Unit tests for auth/tokens.py -- password hashing and bearer tokens.

Covers:
- bcrypt hash / verify round trip, salted output, mismatch returns False
- a corrupt stored hash raises InternalError (not a silent False)
- issue -> verify returns the same subject
- tampered, foreign-key, expired, malformed and missing tokens raise InvalidToken
- TOKEN_EXPIRE_SECONDS semantics: exp present by default, absent when 0
"""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from auth.tokens import create_access_token, hash_password, verify_access_token, verify_password
from core.config import get_settings
from core.errors import InternalError, InvalidToken

# ---------------------------------------------------------------------------
# Credential hasher
# ---------------------------------------------------------------------------


class TestPasswordHashing:
    def test_verify_matches_original(self) -> None:
        digest = hash_password("Abc123")
        assert verify_password("Abc123", digest) is True

    def test_verify_rejects_other_password(self) -> None:
        digest = hash_password("Abc123")
        assert verify_password("Abc124", digest) is False

    def test_hash_is_salted(self) -> None:
        """Two hashes of the same password differ -- each carries its own salt."""
        assert hash_password("Abc123") != hash_password("Abc123")

    def test_hash_never_contains_plaintext(self) -> None:
        assert "Abc123" not in hash_password("Abc123")

    def test_empty_password_hashes(self) -> None:
        digest = hash_password("")
        assert verify_password("", digest) is True
        assert verify_password("x", digest) is False

    def test_corrupt_hash_is_internal_error(self) -> None:
        with pytest.raises(InternalError):
            verify_password("Abc123", "not-a-bcrypt-hash")


# ---------------------------------------------------------------------------
# Token service
# ---------------------------------------------------------------------------


class TestAccessTokens:
    def test_round_trip(self) -> None:
        assert verify_access_token(create_access_token(42)) == 42

    def test_tokens_for_same_subject_differ(self) -> None:
        assert create_access_token(7) != create_access_token(7)

    def test_tampered_payload_rejected(self) -> None:
        """Splice another token's payload under this token's signature."""
        header, _, signature = create_access_token(1).split(".")
        _, other_payload, _ = create_access_token(2).split(".")
        forged = f"{header}.{other_payload}.{signature}"
        with pytest.raises(InvalidToken):
            verify_access_token(forged)

    def test_foreign_key_rejected(self) -> None:
        token = jwt.encode({"sub": "1"}, "x" * 40, algorithm="HS256")
        with pytest.raises(InvalidToken):
            verify_access_token(token)

    def test_expired_rejected(self) -> None:
        past = datetime.now(timezone.utc) - timedelta(hours=1)
        token = jwt.encode({"sub": "1", "exp": past}, get_settings().secret_key, algorithm="HS256")
        with pytest.raises(InvalidToken):
            verify_access_token(token)

    def test_non_numeric_subject_rejected(self) -> None:
        token = jwt.encode({"sub": "alice"}, get_settings().secret_key, algorithm="HS256")
        with pytest.raises(InvalidToken):
            verify_access_token(token)

    @pytest.mark.parametrize("token", [None, "", "garbage", "a.b.c"])
    def test_missing_or_malformed_rejected(self, token) -> None:
        with pytest.raises(InvalidToken) as exc_info:
            verify_access_token(token)
        assert exc_info.value.message == "Access token is required"

    def test_expiry_claim_present_by_default(self) -> None:
        claims = jwt.get_unverified_claims(create_access_token(3))
        assert claims["sub"] == "3"
        assert claims["exp"] > claims["iat"]

    def test_zero_expiry_omits_exp(self) -> None:
        token = create_access_token(3, expire_seconds=0)
        assert "exp" not in jwt.get_unverified_claims(token)
        assert verify_access_token(token) == 3
