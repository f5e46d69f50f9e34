"""Tests for the back-office endpoints: operator approval, payments, overview."""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from safari_connector.models.booking import Booking
from safari_connector.models.operator import Operator
from safari_connector.models.trip import Trip
from safari_connector.models.user import User
from safari_connector.services.transition_authority import ActorContext, submit_payment_proof
from tests.factories import headers_for, make_booking, make_enquiry, make_operator

pytestmark = pytest.mark.asyncio


# ---------------------------------------------------------------------------
# Operator approval
# ---------------------------------------------------------------------------


class TestOperatorApproval:
    async def test_list_by_status(self, client: AsyncClient, db_session: AsyncSession, operator: Operator,
                                  admin_user: User) -> None:
        await make_operator(db_session, status="pending", company_name="Queue Safaris")
        response = await client.get(
            "/api/v1/admin/operators", params={"status": "pending"}, headers=headers_for(admin_user)
        )
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["company_name"] == "Queue Safaris"

    async def test_admin_approves_operator(self, client: AsyncClient, db_session: AsyncSession,
                                           admin_user: User) -> None:
        pending = await make_operator(db_session, status="pending", company_name="Rift Valley Tours")
        response = await client.patch(
            f"/api/v1/admin/operators/{pending.id}/status",
            json={"status": "approved"},
            headers=headers_for(admin_user),
        )
        assert response.status_code == 200, response.text
        assert response.json()["status"] == "approved"

        public = await client.get(f"/api/v1/operators/{pending.id}")
        assert public.status_code == 200

    async def test_suspension_records_reason(self, client: AsyncClient, operator: Operator, admin_user: User) -> None:
        response = await client.patch(
            f"/api/v1/admin/operators/{operator.id}/status",
            json={"status": "suspended", "reason": "Licence expired"},
            headers=headers_for(admin_user),
        )
        assert response.json()["status_reason"] == "Licence expired"

    async def test_finance_cannot_decide_operator_status(
        self, client: AsyncClient, operator: Operator, finance_user: User
    ) -> None:
        response = await client.patch(
            f"/api/v1/admin/operators/{operator.id}/status",
            json={"status": "rejected"},
            headers=headers_for(finance_user),
        )
        assert response.status_code == 403

    async def test_invalid_status_value(self, client: AsyncClient, operator: Operator, admin_user: User) -> None:
        response = await client.patch(
            f"/api/v1/admin/operators/{operator.id}/status",
            json={"status": "vip"},
            headers=headers_for(admin_user),
        )
        assert response.status_code == 422


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------


class TestPayments:
    async def test_pending_verification_queue(
        self, client: AsyncClient, db_session: AsyncSession, booking: Booking, trip: Trip, traveller: User,
        finance_user: User,
    ) -> None:
        submitted = await make_booking(db_session, trip, traveller, "payment_submitted", "proof_submitted")
        response = await client.get("/api/v1/admin/bookings/pending-verification", headers=headers_for(finance_user))
        assert response.status_code == 200
        assert [b["id"] for b in response.json()["items"]] == [str(submitted.id)]

    async def test_payments_views(
        self, client: AsyncClient, db_session: AsyncSession, booking: Booking, trip: Trip, traveller: User,
        finance_user: User,
    ) -> None:
        submitted = await make_booking(db_session, trip, traveller, "payment_submitted", "proof_submitted")
        confirmed = await make_booking(db_session, trip, traveller, "confirmed", "paid_in_full")
        deposit_cancelled = await make_booking(db_session, trip, traveller, "cancelled", "deposit_paid")

        needs = await client.get("/api/v1/admin/payments", params={"view": "needs"}, headers=headers_for(finance_user))
        assert {b["id"] for b in needs.json()["items"]} == {str(submitted.id)}

        verified = await client.get(
            "/api/v1/admin/payments", params={"view": "verified"}, headers=headers_for(finance_user)
        )
        assert {b["id"] for b in verified.json()["items"]} == {str(confirmed.id), str(deposit_cancelled.id)}

    async def test_booking_payment_proofs(
        self, client: AsyncClient, db_session: AsyncSession, booking: Booking, traveller: User, finance_user: User
    ) -> None:
        await submit_payment_proof(
            db_session, booking.id, ActorContext.for_user(traveller), reference="MP-77", method="mpesa"
        )
        response = await client.get(f"/api/v1/admin/bookings/{booking.id}/payments", headers=headers_for(finance_user))
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["reference"] == "MP-77"
        assert data["items"][0]["status"] == "submitted"

    async def test_verify_requires_submitted_proof(
        self, client: AsyncClient, booking: Booking, finance_user: User
    ) -> None:
        response = await client.post(
            f"/api/v1/admin/bookings/{booking.id}/verify-payment", headers=headers_for(finance_user)
        )
        assert response.status_code == 422
        assert response.json()["code"] == "invalid_transition"
        assert "pending_payment -> payment_verified" in response.json()["detail"]

    async def test_verify_refuses_unpaid_status(
        self, client: AsyncClient, db_session: AsyncSession, trip: Trip, traveller: User, finance_user: User
    ) -> None:
        submitted = await make_booking(db_session, trip, traveller, "payment_submitted", "proof_submitted")
        response = await client.post(
            f"/api/v1/admin/bookings/{submitted.id}/verify-payment",
            json={"paid_status": "unpaid"},
            headers=headers_for(finance_user),
        )
        assert response.status_code == 422

        detail = await client.get(f"/api/v1/bookings/{submitted.id}", headers=headers_for(finance_user))
        assert detail.json()["status"] == "payment_submitted"

    async def test_admin_verifies_as_finance(
        self, client: AsyncClient, db_session: AsyncSession, trip: Trip, traveller: User, admin_user: User
    ) -> None:
        submitted = await make_booking(db_session, trip, traveller, "payment_submitted", "proof_submitted")
        response = await client.post(
            f"/api/v1/admin/bookings/{submitted.id}/verify-payment",
            json={"paid_status": "paid_in_full"},
            headers=headers_for(admin_user),
        )
        assert response.status_code == 200
        assert response.json()["status"] == "payment_verified"

    async def test_override_payment_status(
        self, client: AsyncClient, db_session: AsyncSession, trip: Trip, traveller: User, finance_user: User
    ) -> None:
        confirmed = await make_booking(db_session, trip, traveller, "confirmed", "paid_in_full")
        response = await client.post(
            f"/api/v1/admin/bookings/{confirmed.id}/payment-status",
            json={"payment_status": "deposit_paid", "reason": "Card chargeback on balance"},
            headers=headers_for(finance_user),
        )
        assert response.status_code == 200, response.text
        assert response.json()["payment_status"] == "deposit_paid"

        events = await client.get(f"/api/v1/bookings/{confirmed.id}/events", headers=headers_for(finance_user))
        assert events.json()[-1]["is_override"] is True

    async def test_override_needs_reason(self, client: AsyncClient, booking: Booking, finance_user: User) -> None:
        response = await client.post(
            f"/api/v1/admin/bookings/{booking.id}/payment-status",
            json={"payment_status": "paid_in_full"},
            headers=headers_for(finance_user),
        )
        assert response.status_code == 422

    async def test_operator_has_no_back_office(self, client: AsyncClient, booking: Booking,
                                               operator_user: User) -> None:
        response = await client.get("/api/v1/admin/payments", headers=headers_for(operator_user))
        assert response.status_code == 403


# ---------------------------------------------------------------------------
# Overview
# ---------------------------------------------------------------------------


class TestOverview:
    async def test_counts(
        self, client: AsyncClient, db_session: AsyncSession, booking: Booking, trip: Trip, traveller: User,
        admin_user: User,
    ) -> None:
        await make_booking(db_session, trip, traveller, "payment_submitted", "proof_submitted")
        await make_operator(db_session, status="pending", company_name="Waiting Room Safaris")
        await make_enquiry(db_session, trip, traveller, status="closed")

        response = await client.get("/api/v1/admin/overview", headers=headers_for(admin_user))
        assert response.status_code == 200
        data = response.json()
        assert data["bookings_by_status"] == {"pending_payment": 1, "payment_submitted": 1}
        assert data["pending_verification"] == 1
        assert data["operators_by_status"] == {"approved": 1, "pending": 1}
        # one enquiry per booking (both "new"), the closed one is not open
        assert data["open_enquiries"] == 2
