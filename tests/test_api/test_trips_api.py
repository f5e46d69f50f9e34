"""Tests for trip and operator directory endpoints."""

import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from safari_connector.models.operator import Operator
from safari_connector.models.trip import Trip
from safari_connector.models.user import User
from tests.factories import headers_for, make_booking, make_operator, make_trip

pytestmark = pytest.mark.asyncio

TRIP_PAYLOAD = {
    "title": "Great Migration Fly-in",
    "duration_days": 5,
    "style": "luxury",
    "destinations": ["Serengeti", "Masai Mara"],
    "days": [
        {"day": 1, "title": "Arrive Arusha", "accommodation": "Legendary Lodge"},
        {"day": 2, "title": "Fly to Serengeti", "description": "Afternoon game drive"},
    ],
    "rates": [{"season": "high", "price_per_person": "5200.00", "min_pax": 2}],
    "base_price": "4800.00",
}


# ---------------------------------------------------------------------------
# Operator trip management
# ---------------------------------------------------------------------------


class TestOperatorTrips:
    async def test_create_draft_trip(self, client: AsyncClient, operator_user: User, operator: Operator) -> None:
        response = await client.post("/api/v1/trips", json=TRIP_PAYLOAD, headers=headers_for(operator_user))
        assert response.status_code == 201, f"Create failed: {response.text}"
        data = response.json()
        assert data["status"] == "draft"
        assert data["operator_id"] == str(operator.id)
        assert data["days"][0]["accommodation"] == "Legendary Lodge"
        assert data["rates"][0]["season"] == "high"

    async def test_approved_operator_can_publish(self, client: AsyncClient, operator_user: User) -> None:
        payload = {**TRIP_PAYLOAD, "status": "published"}
        response = await client.post("/api/v1/trips", json=payload, headers=headers_for(operator_user))
        assert response.status_code == 201
        assert response.json()["status"] == "published"

    async def test_pending_operator_cannot_publish(self, client: AsyncClient, db_session: AsyncSession) -> None:
        pending = await make_operator(db_session, status="pending", company_name="Fresh Safaris")
        user = await db_session.get(User, pending.user_id)

        draft = await client.post("/api/v1/trips", json=TRIP_PAYLOAD, headers=headers_for(user))
        assert draft.status_code == 201

        published = await client.post(
            "/api/v1/trips", json={**TRIP_PAYLOAD, "status": "published"}, headers=headers_for(user)
        )
        assert published.status_code == 403

    async def test_traveller_cannot_create(self, client: AsyncClient, traveller: User) -> None:
        response = await client.post("/api/v1/trips", json=TRIP_PAYLOAD, headers=headers_for(traveller))
        assert response.status_code == 403

    async def test_list_mine_only_shows_own(
        self, client: AsyncClient, db_session: AsyncSession, operator_user: User, trip: Trip, other_operator: Operator
    ) -> None:
        await make_trip(db_session, other_operator, title="Someone Else's Trip")
        response = await client.get("/api/v1/trips/mine", headers=headers_for(operator_user))
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["id"] == str(trip.id)

    async def test_update_trip(self, client: AsyncClient, operator_user: User, trip: Trip) -> None:
        response = await client.patch(
            f"/api/v1/trips/{trip.id}",
            json={"title": "Northern Circuit Deluxe", "duration_days": 7},
            headers=headers_for(operator_user),
        )
        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Northern Circuit Deluxe"
        assert data["duration_days"] == 7
        assert data["style"] == "mid-range"

    async def test_cannot_update_other_operators_trip(
        self, client: AsyncClient, db_session: AsyncSession, trip: Trip, other_operator: Operator
    ) -> None:
        other_user = await db_session.get(User, other_operator.user_id)
        response = await client.patch(
            f"/api/v1/trips/{trip.id}", json={"title": "Hijacked"}, headers=headers_for(other_user)
        )
        assert response.status_code == 404

    async def test_delete_unbooked_trip(self, client: AsyncClient, operator_user: User, trip: Trip) -> None:
        response = await client.delete(f"/api/v1/trips/{trip.id}", headers=headers_for(operator_user))
        assert response.status_code == 200
        assert (await client.get(f"/api/v1/trips/{trip.id}")).status_code == 404

    async def test_delete_booked_trip_conflicts(
        self, client: AsyncClient, db_session: AsyncSession, operator_user: User, trip: Trip, traveller: User
    ) -> None:
        await make_booking(db_session, trip, traveller)
        response = await client.delete(f"/api/v1/trips/{trip.id}", headers=headers_for(operator_user))
        assert response.status_code == 409


# ---------------------------------------------------------------------------
# Public browsing
# ---------------------------------------------------------------------------


class TestPublicTrips:
    async def test_only_published_trips_of_approved_operators(
        self, client: AsyncClient, db_session: AsyncSession, operator: Operator, trip: Trip
    ) -> None:
        await make_trip(db_session, operator, status="draft", title="Unfinished Draft")
        suspended = await make_operator(db_session, status="suspended", company_name="Suspended Co")
        await make_trip(db_session, suspended, title="Hidden Trip")

        response = await client.get("/api/v1/trips")
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["title"] == "Northern Circuit Classic"

    async def test_filters(self, client: AsyncClient, db_session: AsyncSession, operator: Operator, trip: Trip) -> None:
        await make_trip(db_session, operator, title="Zanzibar Beach Extension", duration_days=3, style="budget")

        by_title = await client.get("/api/v1/trips", params={"q": "zanzibar"})
        assert [t["title"] for t in by_title.json()["items"]] == ["Zanzibar Beach Extension"]

        by_style = await client.get("/api/v1/trips", params={"style": "Mid-Range"})
        assert [t["id"] for t in by_style.json()["items"]] == [str(trip.id)]

        by_length = await client.get("/api/v1/trips", params={"min_days": 4, "max_days": 10})
        assert by_length.json()["total"] == 1

    async def test_trip_detail_embeds_operator(self, client: AsyncClient, trip: Trip, operator: Operator) -> None:
        response = await client.get(f"/api/v1/trips/{trip.id}")
        assert response.status_code == 200
        data = response.json()
        assert data["operator"]["company_name"] == operator.company_name
        assert "contact_email" not in data["operator"]

    async def test_unknown_trip(self, client: AsyncClient) -> None:
        response = await client.get(f"/api/v1/trips/{uuid.uuid4()}")
        assert response.status_code == 404


# ---------------------------------------------------------------------------
# Operator directory and profile
# ---------------------------------------------------------------------------


class TestOperators:
    async def test_directory_lists_approved_only(
        self, client: AsyncClient, db_session: AsyncSession, operator: Operator
    ) -> None:
        await make_operator(db_session, status="pending", company_name="Awaiting Review")
        response = await client.get("/api/v1/operators")
        assert response.status_code == 200
        names = [o["company_name"] for o in response.json()["items"]]
        assert names == ["Serengeti Trails"]

    async def test_directory_search(self, client: AsyncClient, operator: Operator, other_operator: Operator) -> None:
        response = await client.get("/api/v1/operators", params={"search": "kilimanjaro"})
        assert [o["id"] for o in response.json()["items"]] == [str(other_operator.id)]

    async def test_pending_operator_hidden(self, client: AsyncClient, db_session: AsyncSession) -> None:
        pending = await make_operator(db_session, status="pending", company_name="Not Yet")
        response = await client.get(f"/api/v1/operators/{pending.id}")
        assert response.status_code == 404

    async def test_update_own_profile(self, client: AsyncClient, operator_user: User) -> None:
        response = await client.patch(
            "/api/v1/operators/me",
            json={"location": "Moshi", "website": "https://serengeti-trails.example"},
            headers=headers_for(operator_user),
        )
        assert response.status_code == 200
        data = response.json()
        assert data["location"] == "Moshi"
        assert data["status"] == "approved"

    async def test_profile_update_cannot_change_status(self, client: AsyncClient, db_session: AsyncSession) -> None:
        pending = await make_operator(db_session, status="pending", company_name="Eager Tours")
        user = await db_session.get(User, pending.user_id)
        response = await client.patch("/api/v1/operators/me", json={"status": "approved"}, headers=headers_for(user))
        assert response.status_code == 200
        assert response.json()["status"] == "pending"
