"""Operator payouts for bookings the traveller has paid in full."""

import logging
import uuid

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from safari_connector.errors import Conflict, PreconditionFailed
from safari_connector.lifecycle.status import BookingStatus, PaymentStatus
from safari_connector.models.booking import Booking, BookingEvent
from safari_connector.models.disbursement import Disbursement
from safari_connector.services.transition_authority import ActorContext, get_booking

logger = logging.getLogger(__name__)

DISBURSEMENT_METHODS = ("mpesa", "bank")


async def create_disbursement(
    db: AsyncSession,
    booking_id: uuid.UUID,
    actor: ActorContext,
    *,
    method: str,
    notes: str | None = None,
) -> tuple[Disbursement, Booking]:
    """Record a payout of the operator receivable and move the booking to ``processing``.

    Raises:
        NotFound: Unknown booking.
        PreconditionFailed: Booking is cancelled or not paid in full, or the method is unknown.
        Conflict: A payout was already created for this booking.
    """
    if method not in DISBURSEMENT_METHODS:
        raise PreconditionFailed(f"Unknown disbursement method: {method}")

    booking = await get_booking(db, booking_id)
    if booking.status == BookingStatus.CANCELLED.value:
        raise PreconditionFailed("Cannot disburse a cancelled booking")
    if booking.payment_status != PaymentStatus.PAID_IN_FULL.value:
        raise PreconditionFailed("Cannot disburse a booking that is not fully paid")

    previous = booking.disbursement_status
    result = await db.execute(
        update(Booking)
        .where(
            Booking.id == booking.id,
            Booking.disbursement_status == "pending",
            Booking.payment_status == PaymentStatus.PAID_IN_FULL.value,
        )
        .values(disbursement_status="processing")
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise Conflict("A disbursement already exists for this booking")

    disbursement = Disbursement(
        operator_id=booking.operator_id,
        booking_id=booking.id,
        amount=booking.operator_receivable,
        currency=booking.currency,
        method=method,
        status="pending",
        notes=notes,
        created_by=actor.user_id,
    )
    db.add(disbursement)
    db.add(
        BookingEvent(
            booking_id=booking.id,
            actor_id=actor.user_id,
            actor_role=actor.actor.value,
            field="disbursement_status",
            from_value=previous,
            to_value="processing",
            note=notes,
        )
    )
    await db.flush()
    await db.refresh(disbursement)
    await db.refresh(booking)

    logger.info(
        "Disbursement %s created for booking %s: %s %s via %s by %s",
        disbursement.id,
        booking.id,
        disbursement.currency,
        disbursement.amount,
        method,
        actor.user_id,
    )
    return disbursement, booking


async def list_disbursements(
    db: AsyncSession,
    *,
    booking_id: uuid.UUID | None = None,
    operator_id: uuid.UUID | None = None,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[Disbursement], int]:
    """Disbursements newest first, optionally for one booking or operator."""
    query = select(Disbursement)
    if booking_id is not None:
        query = query.where(Disbursement.booking_id == booking_id)
    if operator_id is not None:
        query = query.where(Disbursement.operator_id == operator_id)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()
    result = await db.execute(query.order_by(Disbursement.created_at.desc()).offset(skip).limit(limit))
    return list(result.scalars().all()), total
