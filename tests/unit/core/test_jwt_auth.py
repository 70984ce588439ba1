"""Unit tests for access token verification and user mapping."""

import time

import jwt
import pytest

from visa_assistant.core.auth import user_from_claims
from visa_assistant.core.jwt import JWTVerifier
from visa_assistant.schemas.auth import JWTClaims

SUPABASE_URL = "https://project.supabase.co"
SECRET = "unit-test-secret-that-is-long-enough-for-hs256"


def _token(secret: str = SECRET, **overrides) -> str:
    now = int(time.time())
    payload = {
        "sub": "user-123",
        "email": "maria.silva@example.com",
        "aud": "authenticated",
        "iss": f"{SUPABASE_URL}/auth/v1",
        "iat": now,
        "exp": now + 3600,
        "role": "authenticated",
    }
    payload.update(overrides)
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture
def verifier() -> JWTVerifier:
    return JWTVerifier(supabase_url=f"{SUPABASE_URL}/", jwt_secret=SECRET)


class TestJWTVerifier:

    def test_valid_token(self, verifier):
        claims = verifier.verify_token(_token())

        assert claims.sub == "user-123"
        assert claims.email == "maria.silva@example.com"

    def test_expired_token(self, verifier):
        now = int(time.time())

        with pytest.raises(jwt.InvalidTokenError, match="Token has expired"):
            verifier.verify_token(_token(iat=now - 7200, exp=now - 3600))

    def test_wrong_issuer(self, verifier):
        with pytest.raises(jwt.InvalidTokenError, match="Invalid token issuer"):
            verifier.verify_token(_token(iss="https://evil.example.com/auth/v1"))

    def test_wrong_audience(self, verifier):
        with pytest.raises(jwt.InvalidTokenError):
            verifier.verify_token(_token(aud="anon"))

    def test_wrong_signature(self, verifier):
        with pytest.raises(jwt.InvalidTokenError):
            verifier.verify_token(_token(secret="another-secret-that-is-also-long-enough"))

    def test_missing_secret_rejects_everything(self):
        with pytest.raises(jwt.InvalidTokenError, match="not configured"):
            JWTVerifier(supabase_url=SUPABASE_URL).verify_token(_token())


class TestUserFromClaims:

    def _claims(self, metadata=None) -> JWTClaims:
        return JWTClaims(
            sub="user-123",
            email="maria.silva@example.com",
            exp=2000000000,
            iat=1700000000,
            iss=f"{SUPABASE_URL}/auth/v1",
            user_metadata=metadata,
        )

    def test_explicit_names(self):
        user = user_from_claims(self._claims({"first_name": "Maria", "last_name": "Silva"}))

        assert user.full_name == "Maria Silva"
        assert user.role == "authenticated"

    def test_full_name_is_split(self):
        user = user_from_claims(self._claims({"full_name": "Maria Fernanda Silva"}))

        assert user.first_name == "Maria"
        assert user.last_name == "Fernanda Silva"

    def test_no_metadata(self):
        user = user_from_claims(self._claims())

        assert user.id == "user-123"
        assert user.full_name is None
