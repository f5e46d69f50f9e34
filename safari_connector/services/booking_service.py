"""Booking creation from accepted quotes, commission math, and scoped queries."""

import logging
import uuid
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import Select, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from safari_connector.config import settings
from safari_connector.lifecycle.status import Actor, parse_status
from safari_connector.models.booking import Booking
from safari_connector.models.enquiry import QuoteRequest
from safari_connector.models.operator import Operator
from safari_connector.models.quote import Quote
from safari_connector.models.trip import Trip
from safari_connector.models.user import User
from safari_connector.services.transition_authority import ActorContext, ensure_party, get_booking

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")


def compute_commission(total: Decimal, percentage: Decimal | None = None) -> tuple[Decimal, Decimal]:
    """Split a booking total into (platform commission, operator receivable)."""
    pct = settings.commission_percentage if percentage is None else percentage
    commission = (Decimal(total) * Decimal(pct) / Decimal(100)).quantize(_CENT, rounding=ROUND_HALF_UP)
    return commission, (Decimal(total) - commission).quantize(_CENT, rounding=ROUND_HALF_UP)


def booking_dates(travel_date: date | None, duration_days: int | None) -> tuple[date, date]:
    """Start and end dates for a booking; defaults the start to today."""
    date_from = travel_date or date.today()
    return date_from, date_from + timedelta(days=max(duration_days or 1, 1))


def _trip_day(index: int, day: object) -> dict:
    """Convert a generated itinerary day (dict or plain text) into a trip day row."""
    if not isinstance(day, dict):
        return {"day": index, "title": str(day)}
    activities = ", ".join(a.get("name", "") for a in day.get("activities") or [] if isinstance(a, dict))
    return {
        "day": int(day.get("day_index") or day.get("day") or index),
        "title": day.get("park_name") or day.get("title") or f"Day {index}",
        "description": activities or day.get("description"),
        "accommodation": day.get("lodge_name") or day.get("accommodation"),
    }


async def get_booking_for_quote(db: AsyncSession, quote_id: uuid.UUID) -> Booking | None:
    result = await db.execute(select(Booking).where(Booking.quote_id == quote_id))
    return result.scalar_one_or_none()


async def ensure_trip_for_enquiry(db: AsyncSession, enquiry: QuoteRequest, operator: Operator) -> Trip:
    """Return the enquiry's trip, creating a draft one for AI-studio enquiries."""
    if enquiry.trip_id is not None:
        trip = await db.get(Trip, enquiry.trip_id)
        if trip is not None:
            return trip

    itinerary = enquiry.itinerary or {}
    days = [_trip_day(i, day) for i, day in enumerate(itinerary.get("days") or [], start=1)]
    trip = Trip(
        operator_id=operator.id,
        title=enquiry.trip_title or itinerary.get("title") or "Custom safari",
        duration_days=len(days) or int(itinerary.get("duration_days") or 1),
        style=itinerary.get("style"),
        overview=itinerary.get("summary"),
        destinations=list(itinerary.get("destinations") or []),
        days=days,
        currency=settings.default_currency,
        status="draft",
    )
    db.add(trip)
    await db.flush()
    enquiry.trip_id = trip.id
    logger.info("Created draft trip %s for enquiry %s", trip.id, enquiry.id)
    return trip


async def create_booking_from_quote(
    db: AsyncSession,
    quote: Quote,
    enquiry: QuoteRequest,
    traveller: User,
) -> Booking:
    """Create the booking for an accepted quote, or return the one that exists.

    New bookings start in ``pending_payment`` / ``unpaid`` with the commission
    split computed from the configured percentage.
    """
    existing = await get_booking_for_quote(db, quote.id)
    if existing is not None:
        return existing

    operator = await db.get(Operator, quote.operator_id)
    trip = await ensure_trip_for_enquiry(db, enquiry, operator)
    total = Decimal(quote.total_price or 0)
    commission, receivable = compute_commission(total)
    date_from, date_to = booking_dates(enquiry.travel_date, trip.duration_days)

    booking = Booking(
        trip_id=trip.id,
        operator_id=quote.operator_id,
        traveller_id=traveller.id,
        quote_id=quote.id,
        quote_request_id=enquiry.id,
        date_from=date_from,
        date_to=date_to,
        pax=max(enquiry.pax or 1, 1),
        total_amount=total,
        currency=quote.currency,
        commission_percentage=settings.commission_percentage,
        commission_amount=commission,
        operator_receivable=receivable,
        meta={
            "trip_title": trip.title,
            "operator_name": operator.company_name if operator else None,
            "traveller_name": traveller.name,
        },
    )
    try:
        async with db.begin_nested():
            db.add(booking)
            await db.flush()
    except IntegrityError:
        # Lost the race on the unique quote_id; the other request's booking wins.
        logger.info("Booking for quote %s already created concurrently", quote.id)
        existing = await get_booking_for_quote(db, quote.id)
        if existing is None:
            raise
        return existing

    await db.refresh(booking)
    logger.info("Booking %s created from quote %s (total %s %s)", booking.id, quote.id, total, quote.currency)
    return booking


# ---------------------------------------------------------------------------
# Scoped reads
# ---------------------------------------------------------------------------


def scoped_bookings(actor: ActorContext) -> Select:
    """Select statement limited to the bookings the actor may see."""
    stmt = select(Booking)
    if actor.actor is Actor.TRAVELLER:
        stmt = stmt.where(Booking.traveller_id == actor.user_id)
    elif actor.actor is Actor.OPERATOR:
        stmt = stmt.where(Booking.operator_id == actor.operator_id)
    return stmt


async def list_bookings(
    db: AsyncSession,
    actor: ActorContext,
    status_filter: str | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[Booking], int]:
    """Role-scoped page of bookings, newest first, plus the total count."""
    stmt = scoped_bookings(actor)
    if status_filter:
        stmt = stmt.where(Booking.status == parse_status(status_filter).value)

    total_result = await db.execute(select(func.count()).select_from(stmt.subquery()))
    total = total_result.scalar_one()

    result = await db.execute(stmt.order_by(Booking.created_at.desc()).offset(skip).limit(limit))
    return list(result.scalars().all()), total


async def get_booking_for_actor(db: AsyncSession, booking_id: uuid.UUID, actor: ActorContext) -> Booking:
    """Load a booking the actor is a party to (or any booking for back-office)."""
    booking = await get_booking(db, booking_id)
    ensure_party(booking, actor)
    return booking


async def count_by_status(db: AsyncSession) -> dict[str, int]:
    """Booking counts per status, for the back-office overview."""
    result = await db.execute(select(Booking.status, func.count()).group_by(Booking.status))
    counts: dict[str, int] = {}
    for raw_status, count in result.all():
        key = parse_status(raw_status).value
        counts[key] = counts.get(key, 0) + count
    return counts
