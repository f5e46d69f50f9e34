"""Quote service: operator replies to enquiries and traveller acceptance."""

import logging
import uuid
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from safari_connector.errors import NotFound, PreconditionFailed
from safari_connector.models.booking import Booking
from safari_connector.models.enquiry import QuoteRequest
from safari_connector.models.operator import Operator
from safari_connector.models.quote import Quote
from safari_connector.models.user import User
from safari_connector.services.booking_service import create_booking_from_quote, get_booking_for_quote
from safari_connector.services.messaging import append_message

logger = logging.getLogger(__name__)


async def get_quote(db: AsyncSession, quote_id: uuid.UUID) -> Quote:
    quote = await db.get(Quote, quote_id)
    if quote is None:
        raise NotFound("Quote not found")
    return quote


async def latest_quote(
    db: AsyncSession,
    quote_request_id: uuid.UUID,
    operator_id: uuid.UUID | None = None,
) -> Quote | None:
    """The active quote of an enquiry: the newest one by creation time."""
    stmt = select(Quote).where(Quote.quote_request_id == quote_request_id)
    if operator_id is not None:
        stmt = stmt.where(Quote.operator_id == operator_id)
    result = await db.execute(stmt.order_by(Quote.created_at.desc(), Quote.id.desc()).limit(1))
    return result.scalar_one_or_none()


async def list_quotes(db: AsyncSession, quote_request_id: uuid.UUID) -> list[Quote]:
    result = await db.execute(
        select(Quote).where(Quote.quote_request_id == quote_request_id).order_by(Quote.created_at.desc())
    )
    return list(result.scalars().all())


async def upsert_quote(
    db: AsyncSession,
    operator: Operator,
    quote_request_id: uuid.UUID,
    *,
    total_price: Decimal | None,
    currency: str,
    notes: str | None = None,
    inclusions: list[str] | None = None,
    exclusions: list[str] | None = None,
    quote_id: uuid.UUID | None = None,
) -> Quote:
    """Create a quote for an enquiry the operator owns, or update one by id."""
    enquiry = await db.get(QuoteRequest, quote_request_id)
    if enquiry is None:
        raise NotFound("Enquiry not found")
    if enquiry.operator_id != operator.id:
        raise PreconditionFailed("This enquiry belongs to another operator", forbidden=True)
    if enquiry.status in ("booked", "closed"):
        raise PreconditionFailed(f"Enquiry is {enquiry.status}; it can no longer be quoted")

    if quote_id is not None:
        quote = await get_quote(db, quote_id)
        if quote.operator_id != operator.id or quote.quote_request_id != enquiry.id:
            raise NotFound("Quote not found")
        if quote.status != "answered":
            raise PreconditionFailed(f"Quote is already {quote.status}")
        quote.total_price = total_price
        quote.currency = currency
        quote.notes = notes
        quote.inclusions = inclusions
        quote.exclusions = exclusions
        await db.flush()
        await db.refresh(quote)
        logger.info("Operator %s updated quote %s", operator.id, quote.id)
        return quote

    quote = Quote(
        quote_request_id=enquiry.id,
        operator_id=operator.id,
        total_price=total_price,
        currency=currency,
        notes=notes,
        inclusions=inclusions,
        exclusions=exclusions,
    )
    db.add(quote)
    enquiry.status = "answered"
    await db.flush()
    await db.refresh(quote)

    price = f"{currency} {total_price}" if total_price is not None else "price on request"
    await append_message(db, enquiry.id, "system", f"{operator.company_name} sent a quote: {price}.")
    logger.info("Operator %s sent quote %s for enquiry %s", operator.id, quote.id, enquiry.id)
    return quote


def _claim_enquiry(enquiry: QuoteRequest, traveller: User) -> None:
    """Link an anonymous enquiry to the signed-in traveller with the same email."""
    if enquiry.traveller_id == traveller.id:
        return
    if enquiry.traveller_id is None and enquiry.email.strip().lower() == traveller.email.strip().lower():
        enquiry.traveller_id = traveller.id
        logger.info("Traveller %s claimed enquiry %s", traveller.id, enquiry.id)
        return
    raise PreconditionFailed("This quote was not sent to you", forbidden=True)


async def accept_quote(db: AsyncSession, quote_id: uuid.UUID, traveller: User) -> Booking:
    """Accept the active quote of an enquiry and book it.

    Repeating the call returns the booking already created for the quote.
    """
    quote = await get_quote(db, quote_id)
    enquiry = await db.get(QuoteRequest, quote.quote_request_id)
    if enquiry is None:
        raise NotFound("Enquiry not found")
    _claim_enquiry(enquiry, traveller)

    existing = await get_booking_for_quote(db, quote.id)
    if existing is not None:
        return existing

    active = await latest_quote(db, enquiry.id, quote.operator_id)
    if active is None or active.id != quote.id:
        raise PreconditionFailed("A newer quote has replaced this one")
    if quote.status == "declined":
        raise PreconditionFailed("This quote has been declined")
    if quote.total_price is None:
        raise PreconditionFailed("This quote has no price yet")

    booking = await create_booking_from_quote(db, quote, enquiry, traveller)

    quote.status = "accepted"
    await db.execute(
        update(Quote)
        .where(Quote.quote_request_id == enquiry.id, Quote.id != quote.id)
        .values(status="declined")
        .execution_options(synchronize_session=False)
    )
    enquiry.status = "booked"
    await db.flush()

    await append_message(
        db,
        enquiry.id,
        "system",
        f"Quote accepted. Booking created and awaiting payment of {booking.currency} {booking.total_amount}.",
    )
    logger.info("Traveller %s accepted quote %s -> booking %s", traveller.id, quote.id, booking.id)
    return booking
