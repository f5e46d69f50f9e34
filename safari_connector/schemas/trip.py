"""Pydantic v2 request/response schemas for trip endpoints."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from safari_connector.schemas.operator import OperatorPublicResponse

TripStatus = Literal["draft", "published"]

# ---------------------------------------------------------------------------
# Nested rows
# ---------------------------------------------------------------------------


class TripDay(BaseModel):
    day: int = Field(..., ge=1)
    title: str
    description: str | None = None
    accommodation: str | None = None


class TripRate(BaseModel):
    season: str
    price_per_person: Decimal = Field(..., ge=0)
    min_pax: int = Field(1, ge=1)


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class TripCreate(BaseModel):
    """Schema for creating a trip."""

    title: str = Field(..., min_length=3, max_length=255)
    duration_days: int = Field(..., ge=1, le=60)
    style: str | None = Field(None, max_length=100)
    overview: str | None = None
    destinations: list[str] = Field(default_factory=list)
    days: list[TripDay] = Field(default_factory=list)
    rates: list[TripRate] = Field(default_factory=list)
    base_price: Decimal | None = Field(None, ge=0)
    currency: str = Field("USD", min_length=3, max_length=3)
    status: TripStatus = "draft"


class TripUpdate(BaseModel):
    """Schema for partially updating a trip. All fields optional."""

    title: str | None = Field(None, min_length=3, max_length=255)
    duration_days: int | None = Field(None, ge=1, le=60)
    style: str | None = Field(None, max_length=100)
    overview: str | None = None
    destinations: list[str] | None = None
    days: list[TripDay] | None = None
    rates: list[TripRate] | None = None
    base_price: Decimal | None = Field(None, ge=0)
    currency: str | None = Field(None, min_length=3, max_length=3)
    status: TripStatus | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class TripResponse(BaseModel):
    id: uuid.UUID
    operator_id: uuid.UUID
    title: str
    duration_days: int
    style: str | None = None
    overview: str | None = None
    destinations: list[str] | None = None
    days: list[TripDay] | None = None
    rates: list[TripRate] | None = None
    base_price: Decimal | None = None
    currency: str
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TripDetailResponse(TripResponse):
    """Trip with the operator's public profile embedded."""

    operator: OperatorPublicResponse


class TripListResponse(BaseModel):
    items: list[TripResponse]
    total: int
