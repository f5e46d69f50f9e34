"""Bookings API router.

Reads are scoped to the caller: travellers see their own bookings, operators
the bookings of their company, finance and admin everything. Every status
change goes through the transition authority.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from safari_connector.api.deps import get_actor, get_db
from safari_connector.lifecycle.status import parse_status
from safari_connector.models.booking import Booking, BookingEvent
from safari_connector.schemas.booking import (
    BookingEventResponse,
    BookingListResponse,
    BookingResponse,
    CancelRequest,
    PaymentInstructionsRequest,
    PaymentProofRequest,
    TransitionRequest,
)
from safari_connector.services import booking_service, transition_authority
from safari_connector.services.transition_authority import ActorContext

router = APIRouter(prefix="/api/v1/bookings", tags=["bookings"])


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


@router.get("", response_model=BookingListResponse, summary="List my bookings")
async def list_bookings(
    status_filter: str | None = Query(None, alias="status", description="Filter by booking status"),
    skip: int = Query(0, ge=0, description="Pagination offset"),
    limit: int = Query(20, ge=1, le=100, description="Pagination limit"),
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
) -> dict:
    """Return a paginated, role-scoped list of bookings, newest first."""
    if status_filter is not None:
        try:
            parse_status(status_filter)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown booking status: {status_filter}",
            ) from None

    items, total = await booking_service.list_bookings(db, actor, status_filter, skip=skip, limit=limit)
    return {"items": items, "total": total}


@router.get("/{booking_id}", response_model=BookingResponse, summary="Get a booking")
async def get_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
) -> Booking:
    return await booking_service.get_booking_for_actor(db, booking_id, actor)


@router.get("/{booking_id}/events", response_model=list[BookingEventResponse], summary="Booking audit trail")
async def list_booking_events(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
) -> list[BookingEvent]:
    await booking_service.get_booking_for_actor(db, booking_id, actor)
    return await transition_authority.list_events(db, booking_id)


# ---------------------------------------------------------------------------
# Lifecycle actions
# ---------------------------------------------------------------------------


@router.post("/{booking_id}/payment-proof", response_model=BookingResponse, summary="Submit payment proof")
async def submit_payment_proof(
    booking_id: uuid.UUID,
    body: PaymentProofRequest,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
) -> Booking:
    """Traveller reports a payment; the booking waits for finance verification."""
    return await transition_authority.submit_payment_proof(
        db,
        booking_id,
        actor,
        reference=body.reference,
        proof_url=body.proof_url,
        note=body.note,
        method=body.method,
        amount=body.amount,
    )


@router.post("/{booking_id}/confirm", response_model=BookingResponse, summary="Confirm a booking")
async def confirm_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
) -> Booking:
    """Operator confirms a booking once finance has verified the payment."""
    return await transition_authority.confirm_booking(db, booking_id, actor)


@router.post("/{booking_id}/complete", response_model=BookingResponse, summary="Complete a booking")
async def complete_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
) -> Booking:
    return await transition_authority.complete_booking(db, booking_id, actor)


@router.post("/{booking_id}/cancel", response_model=BookingResponse, summary="Cancel a booking")
async def cancel_booking(
    booking_id: uuid.UUID,
    body: CancelRequest | None = None,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
) -> Booking:
    return await transition_authority.cancel_booking(db, booking_id, actor, reason=body.reason if body else None)


@router.post("/{booking_id}/transition", response_model=BookingResponse, summary="Request a status change")
async def transition_booking(
    booking_id: uuid.UUID,
    body: TransitionRequest,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
) -> Booking:
    """Generic transition checked against the lifecycle table and the caller's role."""
    return await transition_authority.attempt_transition(
        db,
        booking_id,
        actor,
        body.status,
        payment_status=body.payment_status,
        note=body.note,
    )


@router.post(
    "/{booking_id}/payment-instructions",
    response_model=BookingResponse,
    summary="Send payment instructions to the traveller",
)
async def send_payment_instructions(
    booking_id: uuid.UUID,
    body: PaymentInstructionsRequest,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
) -> Booking:
    return await transition_authority.send_payment_instructions(db, booking_id, actor, body.body)
