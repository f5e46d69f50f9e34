"""Pydantic v2 request/response schemas for enquiries and their chat."""

import uuid
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class EnquiryCreate(BaseModel):
    """Public enquiry from a trip page. A signed-in traveller is linked automatically."""

    trip_id: uuid.UUID
    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    phone: str | None = Field(None, max_length=50)
    travel_date: date | None = None
    pax: int = Field(1, ge=1, le=50)
    note: str | None = Field(None, max_length=5000)


class MessageCreate(BaseModel):
    body: str = Field(..., min_length=1, max_length=5000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class MessageResponse(BaseModel):
    id: uuid.UUID
    quote_request_id: uuid.UUID
    sender_role: str
    sender_id: uuid.UUID | None = None
    body: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EnquiryResponse(BaseModel):
    id: uuid.UUID
    trip_id: uuid.UUID | None = None
    operator_id: uuid.UUID | None = None
    traveller_id: uuid.UUID | None = None
    trip_title: str | None = None
    name: str
    email: str
    phone: str | None = None
    travel_date: date | None = None
    pax: int
    note: str | None = None
    source: str
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EnquiryDetailResponse(EnquiryResponse):
    """Enquiry with its itinerary payload and chat history."""

    itinerary: dict[str, Any] | None = None
    messages: list[MessageResponse] = Field(default_factory=list)


class EnquiryListResponse(BaseModel):
    items: list[EnquiryResponse]
    total: int
