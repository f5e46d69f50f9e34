"""Pydantic v2 request/response schemas for operator endpoints."""

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class OperatorUpdate(BaseModel):
    """Operator self-service profile update. All fields optional."""

    company_name: str | None = Field(None, min_length=2, max_length=255)
    country: str | None = Field(None, max_length=100)
    location: str | None = Field(None, max_length=255)
    contact_email: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=50)
    website: str | None = Field(None, max_length=512)
    description: str | None = None


class OperatorStatusUpdate(BaseModel):
    """Admin decision on an operator account."""

    status: Literal["pending", "approved", "rejected", "suspended"]
    reason: str | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class OperatorPublicResponse(BaseModel):
    """Operator profile as shown to travellers."""

    id: uuid.UUID
    company_name: str
    country: str | None = None
    location: str | None = None
    website: str | None = None
    description: str | None = None

    model_config = ConfigDict(from_attributes=True)


class OperatorResponse(OperatorPublicResponse):
    """Full operator profile for the operator themselves and for admins."""

    user_id: uuid.UUID
    contact_email: str | None = None
    phone: str | None = None
    status: str
    status_reason: str | None = None
    created_at: datetime
    updated_at: datetime


class OperatorListResponse(BaseModel):
    items: list[OperatorResponse]
    total: int


class OperatorPublicListResponse(BaseModel):
    items: list[OperatorPublicResponse]
    total: int
