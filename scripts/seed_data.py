"""Seed the database with Tanzanian safari sample data.

Creates back-office users, a demo traveller, three operators (two approved,
one waiting for review) with published trips, and one enquiry taken all the
way to a booking with a submitted payment proof, so every dashboard has
something to show.

Run inside Docker:
    docker compose exec backend python -m scripts.seed_data
"""

import asyncio
import sys
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path

# Add project root to path so imports work when run as a script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import delete, select

from safari_connector.auth.passwords import hash_password
from safari_connector.database import async_session_factory
from safari_connector.models.booking import Booking, BookingEvent
from safari_connector.models.disbursement import Disbursement
from safari_connector.models.enquiry import Message, QuoteRequest
from safari_connector.models.operator import Operator
from safari_connector.models.payment import Payment
from safari_connector.models.quote import Quote
from safari_connector.models.trip import Trip
from safari_connector.models.user import User
from safari_connector.services import enquiry_service, quote_service
from safari_connector.services.transition_authority import ActorContext, submit_payment_proof

# ---------------------------------------------------------------------------
# Seed data definitions
# ---------------------------------------------------------------------------

DEMO_PASSWORD = "demo1234"

DEMO_USERS = [
    {"email": "admin@safariconnector.test", "name": "Neema Admin", "role": "admin"},
    {"email": "finance@safariconnector.test", "name": "Baraka Finance", "role": "finance"},
    {"email": "traveller@safariconnector.test", "name": "Lena Fischer", "role": "traveller"},
]

OPERATORS = [
    {
        "email": "ops@serengetitrails.test",
        "name": "Joseph Mollel",
        "company_name": "Serengeti Trails",
        "country": "Tanzania",
        "location": "Arusha",
        "website": "https://serengetitrails.test",
        "description": "Family-run operator guiding the northern circuit since 2009.",
        "status": "approved",
        "trips": [
            {
                "title": "Northern Circuit Classic",
                "duration_days": 6,
                "style": "mid-range",
                "overview": "Tarangire elephants, the central Serengeti and a full day in Ngorongoro Crater.",
                "destinations": ["Tarangire", "Serengeti", "Ngorongoro"],
                "days": [
                    {"day": 1, "title": "Arusha to Tarangire", "accommodation": "Maramboi Tented Lodge"},
                    {"day": 2, "title": "Tarangire to Central Serengeti", "accommodation": "Kubu Kubu Tented Camp"},
                    {"day": 3, "title": "Central Serengeti", "accommodation": "Kubu Kubu Tented Camp"},
                    {"day": 4, "title": "Serengeti to Ngorongoro", "accommodation": "Rhino Lodge"},
                    {"day": 5, "title": "Ngorongoro Crater floor", "accommodation": "Rhino Lodge"},
                    {"day": 6, "title": "Return to Arusha"},
                ],
                "rates": [
                    {"season": "low", "price_per_person": 1950},
                    {"season": "high", "price_per_person": 2400},
                ],
                "base_price": Decimal("2400.00"),
            },
            {
                "title": "Great Migration River Crossings",
                "duration_days": 8,
                "style": "luxury",
                "overview": "Mara River crossings in the northern Serengeti between July and October.",
                "destinations": ["Serengeti", "Kogatende"],
                "days": [],
                "rates": [{"season": "migration", "price_per_person": 5200}],
                "base_price": Decimal("5200.00"),
            },
        ],
    },
    {
        "email": "hello@kiliventures.test",
        "name": "Grace Lyimo",
        "company_name": "Kilimanjaro Ventures",
        "country": "Tanzania",
        "location": "Moshi",
        "description": "Kilimanjaro treks and short wildlife add-ons.",
        "status": "approved",
        "trips": [
            {
                "title": "Lemosho Route Trek",
                "duration_days": 8,
                "style": "budget",
                "overview": "The quieter western approach to Uhuru Peak.",
                "destinations": ["Kilimanjaro"],
                "days": [],
                "rates": [],
                "base_price": Decimal("2150.00"),
            },
        ],
    },
    {
        "email": "info@ruahawild.test",
        "name": "Peter Mushi",
        "company_name": "Ruaha Wild",
        "country": "Tanzania",
        "location": "Iringa",
        "description": "Southern parks specialists.",
        "status": "pending",
        "trips": [],
    },
]

SEED_EMAILS = [u["email"] for u in DEMO_USERS] + [o["email"] for o in OPERATORS]


# ---------------------------------------------------------------------------
# Main seed function
# ---------------------------------------------------------------------------


async def _clear(session) -> None:
    """Remove everything owned by previously seeded accounts."""
    result = await session.execute(select(User).where(User.email.in_(SEED_EMAILS)))
    users = result.scalars().all()
    if not users:
        return

    print("⚠️  Seed accounts already exist. Deleting and re-seeding...")
    user_ids = [u.id for u in users]
    operator_ids = [u.operator.id for u in users if u.operator is not None]

    booking_ids = (
        await session.execute(
            select(Booking.id).where(
                Booking.traveller_id.in_(user_ids) | Booking.operator_id.in_(operator_ids)
            )
        )
    ).scalars().all()
    if booking_ids:
        await session.execute(delete(Disbursement).where(Disbursement.booking_id.in_(booking_ids)))
        await session.execute(delete(Payment).where(Payment.booking_id.in_(booking_ids)))
        await session.execute(delete(BookingEvent).where(BookingEvent.booking_id.in_(booking_ids)))
        await session.execute(delete(Booking).where(Booking.id.in_(booking_ids)))

    enquiry_ids = (
        await session.execute(
            select(QuoteRequest.id).where(
                QuoteRequest.traveller_id.in_(user_ids) | QuoteRequest.operator_id.in_(operator_ids)
            )
        )
    ).scalars().all()
    if enquiry_ids:
        await session.execute(delete(Quote).where(Quote.quote_request_id.in_(enquiry_ids)))
        await session.execute(delete(Message).where(Message.quote_request_id.in_(enquiry_ids)))
        await session.execute(delete(QuoteRequest).where(QuoteRequest.id.in_(enquiry_ids)))

    if operator_ids:
        await session.execute(delete(Trip).where(Trip.operator_id.in_(operator_ids)))
        await session.execute(delete(Operator).where(Operator.id.in_(operator_ids)))
    await session.execute(delete(User).where(User.id.in_(user_ids)))
    await session.flush()


async def seed() -> None:
    """Populate the database with safari marketplace sample data.

    Idempotent: removes anything created by a previous run before seeding.
    """
    async with async_session_factory() as session:
        await _clear(session)

        # ------------------------------------------------------------------
        # 1. Back-office users and the demo traveller
        # ------------------------------------------------------------------
        users: dict[str, User] = {}
        for data in DEMO_USERS:
            user = User(
                email=data["email"],
                hashed_password=hash_password(DEMO_PASSWORD),
                name=data["name"],
                role=data["role"],
                is_active=True,
            )
            session.add(user)
            users[data["role"]] = user
        await session.flush()
        print(f"✅ Created {len(users)} users (admin, finance, traveller)")

        # ------------------------------------------------------------------
        # 2. Operators and their trips
        # ------------------------------------------------------------------
        operators: list[Operator] = []
        trips: list[Trip] = []
        for data in OPERATORS:
            owner = User(
                email=data["email"],
                hashed_password=hash_password(DEMO_PASSWORD),
                name=data["name"],
                role="operator",
                is_active=True,
            )
            session.add(owner)
            await session.flush()

            operator = Operator(
                user_id=owner.id,
                company_name=data["company_name"],
                country=data["country"],
                location=data["location"],
                contact_email=data["email"],
                website=data.get("website"),
                description=data["description"],
                status=data["status"],
            )
            session.add(operator)
            await session.flush()
            operators.append(operator)
            print(f"   🦁 {operator.company_name} ({operator.status})")

            for trip_data in data["trips"]:
                trip = Trip(operator_id=operator.id, status="published", currency="USD", **trip_data)
                session.add(trip)
                await session.flush()
                trips.append(trip)
                print(f"      🚙 {trip.title} ({trip.duration_days} days, from ${trip.base_price})")

        # ------------------------------------------------------------------
        # 3. One enquiry through quote, booking and payment proof
        # ------------------------------------------------------------------
        traveller = users["traveller"]
        classic = trips[0]
        enquiry = await enquiry_service.create_enquiry(
            session,
            name=traveller.name,
            email=traveller.email,
            travel_date=date.today() + timedelta(days=75),
            pax=2,
            note="Two adults, keen photographers. Could we add a balloon safari?",
            trip_id=classic.id,
            traveller=traveller,
        )
        quote = await quote_service.upsert_quote(
            session,
            operators[0],
            enquiry.id,
            total_price=Decimal("5150.00"),
            currency="USD",
            notes="Includes the Serengeti balloon flight on day 3.",
            inclusions=["Park fees", "Full board lodges", "Balloon safari"],
            exclusions=["International flights", "Visa"],
        )
        booking = await quote_service.accept_quote(session, quote.id, traveller)
        await submit_payment_proof(
            session,
            booking.id,
            ActorContext.for_user(traveller),
            reference="TT-884120",
            method="bank_transfer",
        )
        print(f"✅ Created booking {booking.id} awaiting payment verification")

        await session.commit()

        print()
        print("=" * 60)
        print("📊 Seed Summary")
        print("=" * 60)
        print(f"   Users:      {len(users) + len(operators)} (password: {DEMO_PASSWORD})")
        print(f"   Operators:  {len(operators)}")
        print(f"   Trips:      {len(trips)}")
        print("   Bookings:   1 (payment_submitted)")
        print("=" * 60)
        print("🎉 Done! You can now log in at /api/v1/auth/login")


if __name__ == "__main__":
    asyncio.run(seed())
