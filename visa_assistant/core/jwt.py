"""JWT verification for Supabase HS256 access tokens."""

import jwt

from visa_assistant.core.config import settings
from visa_assistant.schemas.auth import JWTClaims
from visa_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)

AUDIENCE = "authenticated"


class JWTVerifier:
    """Verifies signature, expiry, audience and issuer of access tokens."""

    def __init__(self, supabase_url: str, jwt_secret: str = ""):
        """Initialize JWT verifier.

        Args:
            supabase_url: Supabase project URL; the issuer is ``{url}/auth/v1``
            jwt_secret: Shared HS256 secret
        """
        self.supabase_url = supabase_url.rstrip("/")
        self.expected_issuer = f"{self.supabase_url}/auth/v1"
        self.jwt_secret = jwt_secret

    def verify_token(self, token: str) -> JWTClaims:
        """Verify and decode a token.

        Raises:
            jwt.InvalidTokenError: If the token is invalid, expired or misconfigured
        """
        if not self.jwt_secret:
            raise jwt.InvalidTokenError("SUPABASE_JWT_SECRET is not configured")

        try:
            payload = jwt.decode(
                token,
                self.jwt_secret,
                algorithms=["HS256"],
                audience=AUDIENCE,
                issuer=self.expected_issuer,
                options={"require": ["sub", "exp", "iat", "iss"]},
            )
        except jwt.ExpiredSignatureError as e:
            LOGGER.warning(f"Token expired: {e}")
            raise jwt.InvalidTokenError("Token has expired") from e
        except jwt.InvalidIssuerError as e:
            LOGGER.warning(f"Invalid issuer: {e}")
            raise jwt.InvalidTokenError("Invalid token issuer") from e
        except jwt.InvalidTokenError as e:
            LOGGER.warning(f"Invalid token: {e}")
            raise

        claims = JWTClaims(**payload)
        LOGGER.debug(f"Successfully verified token for user: {claims.sub}")
        return claims


jwt_verifier = JWTVerifier(
    supabase_url=settings.supabase_url,
    jwt_secret=settings.supabase_jwt_secret,
)
