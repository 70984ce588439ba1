"""Authentication schemas for Supabase JWT tokens."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class JWTClaims(BaseModel):
    """Decoded JWT claims from a Supabase access token."""

    sub: str
    email: str = ""
    role: str = "authenticated"
    exp: int
    iat: int
    iss: str
    aud: str = ""
    app_metadata: Optional[Dict[str, Any]] = None
    user_metadata: Optional[Dict[str, Any]] = None
    session_id: Optional[str] = None


class CurrentUser(BaseModel):
    """Current authenticated user information."""

    id: str = Field(..., description="Identity provider user ID")
    email: Optional[str] = Field(None, description="User email")
    role: str = Field(default="user", description="User role")
    first_name: Optional[str] = Field(None, description="Given name")
    last_name: Optional[str] = Field(None, description="Family name")

    @property
    def full_name(self) -> Optional[str]:
        """First and last name joined, or whichever one is present."""
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.first_name or self.last_name or None
