"""Unit tests for password hashing and access tokens."""

import jwt
import pytest

from app.core.security import create_access_token, decode_access_token, hash_password, verify_password


@pytest.mark.unit
class TestPasswords:
    """Test suite for bcrypt helpers."""

    def test_hash_verifies(self) -> None:
        """Test that a hashed password verifies."""
        hashed = hash_password("s3cret-pass")
        assert hashed != "s3cret-pass"
        assert verify_password("s3cret-pass", hashed)

    def test_wrong_password(self) -> None:
        """Test that a wrong password does not verify."""
        assert not verify_password("other", hash_password("s3cret-pass"))

    def test_malformed_hash(self) -> None:
        """Test that a malformed hash fails verification instead of raising."""
        assert not verify_password("s3cret-pass", "not-a-bcrypt-hash")


@pytest.mark.unit
class TestAccessTokens:
    """Test suite for staff JWTs."""

    def test_claims(self) -> None:
        """Test that a token carries subject, role and resID."""
        token = create_access_token("7", "subadmin", res_id="RES123")
        payload = decode_access_token(token)
        assert payload["sub"] == "7"
        assert payload["role"] == "subadmin"
        assert payload["resID"] == "RES123"

    def test_admin_token_has_no_restaurant(self) -> None:
        """Test that an admin token has no resID."""
        payload = decode_access_token(create_access_token("1", "admin"))
        assert "resID" not in payload

    def test_expired_token_rejected(self) -> None:
        """Test that an expired token is rejected."""
        token = create_access_token("1", "admin", expires_minutes=-1)
        with pytest.raises(jwt.ExpiredSignatureError):
            decode_access_token(token)

    def test_tampered_token_rejected(self) -> None:
        """Test that a token with a modified payload is rejected."""
        token = create_access_token("1", "admin")
        with pytest.raises(jwt.PyJWTError):
            decode_access_token(token[:-2] + ("A" if token[-2] != "A" else "B") + token[-1])
