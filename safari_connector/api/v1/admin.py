"""Back-office API router: operator approval, payments, disbursements, overview.

Admin and finance users share these endpoints; operator status decisions and
payouts to operators are admin-only.
"""

from __future__ import annotations

import logging
import uuid
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from safari_connector.api.deps import get_actor, get_db, require_back_office, require_roles
from safari_connector.lifecycle.status import BookingStatus, PaymentStatus
from safari_connector.models.booking import Booking
from safari_connector.models.enquiry import QuoteRequest
from safari_connector.models.operator import Operator
from safari_connector.models.payment import Payment
from safari_connector.models.user import User
from safari_connector.schemas.booking import (
    BookingListResponse,
    BookingResponse,
    OverviewResponse,
    PaymentListResponse,
    PaymentOverrideRequest,
    VerifyPaymentRequest,
)
from safari_connector.schemas.disbursement import (
    DisbursementCreate,
    DisbursementCreatedResponse,
    DisbursementListResponse,
)
from safari_connector.schemas.operator import OperatorListResponse, OperatorResponse, OperatorStatusUpdate
from safari_connector.services import booking_service, disbursement_service, transition_authority
from safari_connector.services.transition_authority import ActorContext

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/admin",
    tags=["admin"],
    dependencies=[Depends(require_back_office)],
)


# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------


@router.get("/operators", response_model=OperatorListResponse, summary="List operators by status")
async def list_operators(
    status_filter: str | None = Query(None, alias="status", description="pending, approved, rejected, suspended"),
    skip: int = Query(0, ge=0, description="Pagination offset"),
    limit: int = Query(50, ge=1, le=200, description="Pagination limit"),
    db: AsyncSession = Depends(get_db),
) -> dict:
    base_query = select(Operator)
    if status_filter is not None:
        base_query = base_query.where(Operator.status == status_filter)

    total_result = await db.execute(select(func.count()).select_from(base_query.subquery()))
    total = total_result.scalar_one()

    result = await db.execute(base_query.order_by(Operator.created_at.desc()).offset(skip).limit(limit))
    return {"items": list(result.scalars().all()), "total": total}


@router.patch(
    "/operators/{operator_id}/status",
    response_model=OperatorResponse,
    summary="Approve, reject or suspend an operator",
)
async def update_operator_status(
    operator_id: uuid.UUID,
    body: OperatorStatusUpdate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_roles("admin")),
) -> Operator:
    operator = await db.get(Operator, operator_id)
    if operator is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Operator not found",
        )

    previous = operator.status
    operator.status = body.status
    operator.status_reason = body.reason
    await db.flush()
    await db.refresh(operator)

    logger.info("Admin %s changed operator %s status: %s -> %s", admin.id, operator.id, previous, body.status)
    return operator


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------


@router.get(
    "/bookings/pending-verification",
    response_model=BookingListResponse,
    summary="Bookings waiting for payment verification",
)
async def pending_verification(
    skip: int = Query(0, ge=0, description="Pagination offset"),
    limit: int = Query(50, ge=1, le=200, description="Pagination limit"),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Oldest first, so the queue is worked in submission order."""
    base_query = select(Booking).where(Booking.status == BookingStatus.PAYMENT_SUBMITTED.value)

    total_result = await db.execute(select(func.count()).select_from(base_query.subquery()))
    total = total_result.scalar_one()

    result = await db.execute(base_query.order_by(Booking.updated_at.asc()).offset(skip).limit(limit))
    return {"items": list(result.scalars().all()), "total": total}


@router.get("/payments", response_model=BookingListResponse, summary="Payments view")
async def payments_view(
    view: Literal["needs", "verified"] = Query("needs", description="needs verification, or verified"),
    skip: int = Query(0, ge=0, description="Pagination offset"),
    limit: int = Query(50, ge=1, le=200, description="Pagination limit"),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Bookings needing verification, or bookings whose payment is verified."""
    if view == "verified":
        condition = or_(
            Booking.status.in_(
                [BookingStatus.PAYMENT_VERIFIED.value, BookingStatus.CONFIRMED.value, BookingStatus.COMPLETED.value]
            ),
            Booking.payment_status.in_([PaymentStatus.DEPOSIT_PAID.value, PaymentStatus.PAID_IN_FULL.value]),
        )
    else:
        condition = Booking.status == BookingStatus.PAYMENT_SUBMITTED.value

    base_query = select(Booking).where(condition)
    total_result = await db.execute(select(func.count()).select_from(base_query.subquery()))
    total = total_result.scalar_one()

    result = await db.execute(base_query.order_by(Booking.created_at.desc()).offset(skip).limit(limit))
    return {"items": list(result.scalars().all()), "total": total}


@router.get(
    "/bookings/{booking_id}/payments",
    response_model=PaymentListResponse,
    summary="Payment proofs of a booking",
)
async def list_booking_payments(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> dict:
    await transition_authority.get_booking(db, booking_id)
    result = await db.execute(
        select(Payment).where(Payment.booking_id == booking_id).order_by(Payment.created_at.desc())
    )
    items = list(result.scalars().all())
    return {"items": items, "total": len(items)}


@router.post(
    "/bookings/{booking_id}/verify-payment",
    response_model=BookingResponse,
    summary="Verify a submitted payment",
)
async def verify_payment(
    booking_id: uuid.UUID,
    body: VerifyPaymentRequest | None = None,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
) -> Booking:
    return await transition_authority.verify_payment(
        db,
        booking_id,
        actor,
        paid_status=body.paid_status if body else None,
        note=body.note if body else None,
    )


@router.post(
    "/bookings/{booking_id}/payment-status",
    response_model=BookingResponse,
    summary="Override a booking's payment status",
)
async def override_payment_status(
    booking_id: uuid.UUID,
    body: PaymentOverrideRequest,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
) -> Booking:
    """Explicit correction, including regressions; always recorded as an override event."""
    return await transition_authority.override_payment_status(
        db, booking_id, actor, body.payment_status, body.reason
    )


# ---------------------------------------------------------------------------
# Disbursements
# ---------------------------------------------------------------------------


@router.post(
    "/bookings/{booking_id}/disbursements",
    response_model=DisbursementCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Pay out the operator's share of a fully paid booking",
)
async def create_disbursement(
    booking_id: uuid.UUID,
    body: DisbursementCreate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_roles("admin")),
) -> dict:
    disbursement, booking = await disbursement_service.create_disbursement(
        db,
        booking_id,
        ActorContext.for_user(admin),
        method=body.method,
        notes=body.notes,
    )
    return {"disbursement": disbursement, "booking": booking}


@router.get("/disbursements", response_model=DisbursementListResponse, summary="List disbursements")
async def list_disbursements(
    booking_id: uuid.UUID | None = Query(None, description="Only payouts for this booking"),
    operator_id: uuid.UUID | None = Query(None, description="Only payouts to this operator"),
    skip: int = Query(0, ge=0, description="Pagination offset"),
    limit: int = Query(50, ge=1, le=200, description="Pagination limit"),
    db: AsyncSession = Depends(get_db),
) -> dict:
    items, total = await disbursement_service.list_disbursements(
        db, booking_id=booking_id, operator_id=operator_id, skip=skip, limit=limit
    )
    return {"items": items, "total": total}


# ---------------------------------------------------------------------------
# Overview
# ---------------------------------------------------------------------------


@router.get("/overview", response_model=OverviewResponse, summary="Back-office counts")
async def overview(db: AsyncSession = Depends(get_db)) -> OverviewResponse:
    bookings_by_status = await booking_service.count_by_status(db)

    operator_rows = await db.execute(select(Operator.status, func.count()).group_by(Operator.status))
    operators_by_status = {row[0]: row[1] for row in operator_rows.all()}

    open_result = await db.execute(
        select(func.count()).select_from(QuoteRequest).where(QuoteRequest.status.in_(["new", "answered"]))
    )

    return OverviewResponse(
        bookings_by_status=bookings_by_status,
        operators_by_status=operators_by_status,
        pending_verification=bookings_by_status.get(BookingStatus.PAYMENT_SUBMITTED.value, 0),
        open_enquiries=open_result.scalar_one(),
    )
