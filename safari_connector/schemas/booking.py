"""Pydantic v2 request/response schemas for booking endpoints."""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field

from safari_connector.lifecycle.status import describe

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class PaymentProofRequest(BaseModel):
    """Traveller's proof of payment."""

    method: Literal["mpesa", "card", "bank_transfer"] = "bank_transfer"
    reference: str | None = Field(None, max_length=255)
    proof_url: str | None = Field(None, max_length=1024)
    amount: Decimal | None = Field(None, ge=0)
    note: str | None = Field(None, max_length=2000)


class TransitionRequest(BaseModel):
    """Generic status change request, checked against the lifecycle table."""

    status: str
    payment_status: str | None = None
    note: str | None = Field(None, max_length=2000)


class CancelRequest(BaseModel):
    reason: str | None = Field(None, max_length=2000)


class PaymentInstructionsRequest(BaseModel):
    body: str = Field(..., min_length=1, max_length=5000)


class VerifyPaymentRequest(BaseModel):
    """Finance verification; ``paid_status`` records how much was received."""

    paid_status: Literal["deposit_paid", "paid_in_full"] | None = None
    note: str | None = Field(None, max_length=2000)


class PaymentOverrideRequest(BaseModel):
    payment_status: str
    reason: str = Field(..., min_length=3, max_length=2000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class StatusViewResponse(BaseModel):
    status: str
    payment_status: str
    label: str
    payment_label: str
    tone: str
    is_terminal: bool
    actions: dict[str, list[str]]


class BookingResponse(BaseModel):
    """Booking with its display interpretation."""

    id: uuid.UUID
    trip_id: uuid.UUID
    operator_id: uuid.UUID
    traveller_id: uuid.UUID
    quote_id: uuid.UUID | None = None
    quote_request_id: uuid.UUID | None = None
    date_from: date
    date_to: date
    pax: int
    total_amount: Decimal
    currency: str
    commission_percentage: Decimal
    commission_amount: Decimal
    operator_receivable: Decimal
    payment_reference: str | None = None
    meta: dict[str, Any] | None = None
    status: str
    payment_status: str
    disbursement_status: str = "pending"
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def view(self) -> StatusViewResponse:
        return StatusViewResponse(**describe(self.status, self.payment_status).as_dict())


class BookingListResponse(BaseModel):
    items: list[BookingResponse]
    total: int


class BookingEventResponse(BaseModel):
    id: uuid.UUID
    booking_id: uuid.UUID
    actor_id: uuid.UUID | None = None
    actor_role: str
    field: str
    from_value: str
    to_value: str
    is_override: bool
    note: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentResponse(BaseModel):
    id: uuid.UUID
    booking_id: uuid.UUID
    method: str
    amount: Decimal | None = None
    currency: str
    reference: str | None = None
    proof_url: str | None = None
    note: str | None = None
    status: str
    verified_by: uuid.UUID | None = None
    verified_at: datetime | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentListResponse(BaseModel):
    items: list[PaymentResponse]
    total: int


class OverviewResponse(BaseModel):
    """Back-office counts."""

    bookings_by_status: dict[str, int]
    operators_by_status: dict[str, int]
    pending_verification: int
    open_enquiries: int
