"""Enquiry service: creating quote requests and resolving who may read them."""

import logging
import uuid
from datetime import date
from typing import Any

from sqlalchemy import Select, false, select
from sqlalchemy.ext.asyncio import AsyncSession

from safari_connector.errors import NotFound, PreconditionFailed
from safari_connector.models.enquiry import QuoteRequest
from safari_connector.models.operator import Operator
from safari_connector.models.trip import Trip
from safari_connector.models.user import User
from safari_connector.services.messaging import append_message

logger = logging.getLogger(__name__)


async def get_public_trip(db: AsyncSession, trip_id: uuid.UUID) -> Trip:
    """A published trip of an approved operator, or NotFound."""
    result = await db.execute(
        select(Trip)
        .join(Operator, Trip.operator_id == Operator.id)
        .where(Trip.id == trip_id, Trip.status == "published", Operator.status == "approved")
    )
    trip = result.scalar_one_or_none()
    if trip is None:
        raise NotFound("Trip not found")
    return trip


async def create_enquiry(
    db: AsyncSession,
    *,
    name: str,
    email: str,
    phone: str | None = None,
    travel_date: date | None = None,
    pax: int = 1,
    note: str | None = None,
    trip_id: uuid.UUID | None = None,
    operator_id: uuid.UUID | None = None,
    itinerary: dict[str, Any] | None = None,
    trip_title: str | None = None,
    source: str = "trip_page",
    traveller: User | None = None,
) -> QuoteRequest:
    """Open an enquiry with an operator, from a trip page or from the AI studio."""
    if trip_id is not None:
        trip = await get_public_trip(db, trip_id)
        operator_id = trip.operator_id
        trip_title = trip_title or trip.title
    elif operator_id is not None:
        operator = await db.get(Operator, operator_id)
        if operator is None or not operator.is_approved:
            raise NotFound("Operator not found")
    else:
        raise PreconditionFailed("An enquiry needs a trip or an operator")

    enquiry = QuoteRequest(
        trip_id=trip_id,
        operator_id=operator_id,
        traveller_id=traveller.id if traveller is not None else None,
        trip_title=trip_title,
        name=name.strip(),
        email=email.strip().lower(),
        phone=phone,
        travel_date=travel_date,
        pax=pax,
        note=note,
        itinerary=itinerary,
        source=source,
    )
    db.add(enquiry)
    await db.flush()

    if note:
        await append_message(
            db,
            enquiry.id,
            "traveller",
            note,
            sender_id=traveller.id if traveller is not None else None,
        )

    await db.refresh(enquiry)
    logger.info("Enquiry %s opened with operator %s (source=%s)", enquiry.id, operator_id, source)
    return enquiry


def scoped_enquiries(user: User, operator: Operator | None) -> Select:
    """Select statement limited to the enquiries the user may see."""
    stmt = select(QuoteRequest)
    if user.is_back_office:
        return stmt
    if user.role == "operator":
        if operator is None:
            return stmt.where(false())
        return stmt.where(QuoteRequest.operator_id == operator.id)
    return stmt.where(QuoteRequest.traveller_id == user.id)


async def get_enquiry_for_user(
    db: AsyncSession,
    enquiry_id: uuid.UUID,
    user: User,
    operator: Operator | None,
) -> QuoteRequest:
    """Load an enquiry the user is a party to. Others get NotFound."""
    result = await db.execute(
        scoped_enquiries(user, operator)
        .where(QuoteRequest.id == enquiry_id)
        .execution_options(populate_existing=True)
    )
    enquiry = result.scalar_one_or_none()
    if enquiry is None:
        raise NotFound("Enquiry not found")
    return enquiry


def sender_role_for(user: User) -> str:
    """Chat role of a message posted by ``user``."""
    if user.role == "operator":
        return "operator"
    if user.is_back_office:
        return "system"
    return "traveller"
