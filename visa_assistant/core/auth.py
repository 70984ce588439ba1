"""Authentication dependencies for FastAPI routes."""

from typing import Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from visa_assistant.core.jwt import jwt_verifier
from visa_assistant.schemas.auth import CurrentUser, JWTClaims
from visa_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)

security = HTTPBearer(auto_error=False)


def user_from_claims(claims: JWTClaims) -> CurrentUser:
    """Map token claims to a user; names come from ``user_metadata`` when present."""
    metadata = claims.user_metadata or {}
    first_name = metadata.get("first_name") or metadata.get("given_name")
    last_name = metadata.get("last_name") or metadata.get("family_name")
    if not first_name and not last_name and metadata.get("full_name"):
        parts = str(metadata["full_name"]).split()
        first_name = parts[0]
        last_name = " ".join(parts[1:]) or None
    return CurrentUser(
        id=claims.sub,
        email=claims.email or None,
        role=claims.role or "user",
        first_name=first_name,
        last_name=last_name,
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CurrentUser:
    """Resolve the bearer token to the current user.

    Raises:
        HTTPException: 401 if the token is missing or invalid
    """
    if not credentials:
        LOGGER.warning("No authorization credentials provided")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        claims = jwt_verifier.verify_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        LOGGER.warning(f"Invalid token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    user = user_from_claims(claims)
    LOGGER.debug(f"Authenticated user: {user.id}")
    return user
