"""Pydantic v2 schemas for operator disbursements."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from safari_connector.schemas.booking import BookingResponse


class DisbursementCreate(BaseModel):
    method: Literal["mpesa", "bank"]
    notes: str | None = Field(None, max_length=2000)


class DisbursementResponse(BaseModel):
    id: uuid.UUID
    operator_id: uuid.UUID
    booking_id: uuid.UUID
    amount: Decimal
    currency: str
    method: str
    status: str
    notes: str | None = None
    created_by: uuid.UUID | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DisbursementCreatedResponse(BaseModel):
    """The new payout and the booking it moved to ``processing``."""

    disbursement: DisbursementResponse
    booking: BookingResponse


class DisbursementListResponse(BaseModel):
    items: list[DisbursementResponse]
    total: int
