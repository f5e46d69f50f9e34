"""Pydantic v2 request/response schemas for authentication endpoints."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from safari_connector.auth.passwords import MAX_PASSWORD_BYTES, password_too_long

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Schema for traveller registration."""

    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    name: str = Field(..., min_length=1, max_length=255)
    phone: str | None = Field(None, max_length=50)

    @model_validator(mode="after")
    def check_password_bytes(self) -> "RegisterRequest":
        """Multi-byte characters count against bcrypt's byte limit."""
        if password_too_long(self.password):
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        return self


class OperatorRegisterRequest(RegisterRequest):
    """Operator sign-up: a user account plus a company profile pending approval."""

    company_name: str = Field(..., min_length=2, max_length=255)
    country: str | None = Field(None, max_length=100)
    location: str | None = Field(None, max_length=255)
    website: str | None = Field(None, max_length=512)
    description: str | None = None


class LoginRequest(BaseModel):
    """Schema for email/password login."""

    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    """Schema for token refresh."""

    refresh_token: str


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class TokenResponse(BaseModel):
    """JWT token pair returned on successful authentication."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    """Public user profile information."""

    id: uuid.UUID
    email: str
    name: str
    phone: str | None = None
    is_active: bool
    role: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuthResponse(BaseModel):
    """Combined user + tokens returned on register/login."""

    user: UserResponse
    tokens: TokenResponse


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str
