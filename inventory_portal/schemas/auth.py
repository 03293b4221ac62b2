from typing import Optional

from pydantic import BaseModel, Field

from .base import CamelModel


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, description="Account username.")
    password: str = Field(..., min_length=1, description="Account password.")


class SignupRequest(BaseModel):
    username: str = Field(..., min_length=1, description="Desired username.")
    email: str = Field(..., min_length=3, description="Contact email address.")
    password: str = Field(..., min_length=1, description="Desired password.")


class AuthResponse(CamelModel):
    """Body returned by /auth/login and /auth/register; a missing token means failure."""

    token: Optional[str] = None
    type: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None
    roles: list[str] = Field(default_factory=list)
    error_message: Optional[str] = None


class IdentitySnapshot(BaseModel):
    """Identity persisted next to the token for display without re-decoding claims."""

    type: Optional[str] = None
    username: str
    email: Optional[str] = None
    roles: list[str] = Field(default_factory=list)
