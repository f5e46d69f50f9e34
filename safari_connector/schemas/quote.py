"""Pydantic v2 request/response schemas for quote endpoints."""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class QuoteUpsert(BaseModel):
    """Create a quote for an enquiry, or update an unanswered one when ``id`` is given."""

    id: uuid.UUID | None = None
    quote_request_id: uuid.UUID
    total_price: Decimal | None = Field(None, ge=0)
    currency: str = Field("USD", min_length=3, max_length=3)
    notes: str | None = None
    inclusions: list[str] | None = None
    exclusions: list[str] | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class QuoteResponse(BaseModel):
    id: uuid.UUID
    quote_request_id: uuid.UUID
    operator_id: uuid.UUID
    total_price: Decimal | None = None
    currency: str
    notes: str | None = None
    inclusions: list[str] | None = None
    exclusions: list[str] | None = None
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class QuoteListResponse(BaseModel):
    items: list[QuoteResponse]
    latest_id: uuid.UUID | None = None
