"""Quotes API router: operator quoting and traveller accept-and-book."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from safari_connector.api.deps import (
    get_approved_operator,
    get_current_active_user,
    get_db,
    get_user_operator,
    require_roles,
)
from safari_connector.models.booking import Booking
from safari_connector.models.operator import Operator
from safari_connector.models.quote import Quote
from safari_connector.models.user import User
from safari_connector.schemas.booking import BookingResponse
from safari_connector.schemas.quote import QuoteResponse, QuoteUpsert
from safari_connector.services import enquiry_service, quote_service

router = APIRouter(prefix="/api/v1/quotes", tags=["quotes"])


@router.post("", response_model=QuoteResponse, summary="Create or update a quote")
async def upsert_quote(
    body: QuoteUpsert,
    db: AsyncSession = Depends(get_db),
    operator: Operator = Depends(get_approved_operator),
) -> Quote:
    """Send a new quote for an enquiry, or revise an unaccepted one by ``id``."""
    return await quote_service.upsert_quote(
        db,
        operator,
        body.quote_request_id,
        total_price=body.total_price,
        currency=body.currency.upper(),
        notes=body.notes,
        inclusions=body.inclusions,
        exclusions=body.exclusions,
        quote_id=body.id,
    )


@router.get("/{quote_id}", response_model=QuoteResponse, summary="Get a quote")
async def get_quote(
    quote_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    operator: Operator | None = Depends(get_user_operator),
) -> Quote:
    quote = await quote_service.get_quote(db, quote_id)
    # Visible only to the parties of the enquiry it answers.
    await enquiry_service.get_enquiry_for_user(db, quote.quote_request_id, current_user, operator)
    return quote


@router.post(
    "/{quote_id}/accept",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Accept a quote and create the booking",
)
async def accept_quote(
    quote_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    traveller: User = Depends(require_roles("traveller")),
) -> Booking:
    """Accept the active quote of an enquiry; repeating returns the same booking."""
    return await quote_service.accept_quote(db, quote_id, traveller)
