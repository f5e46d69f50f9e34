"""Trips API router.

Public reads only see published trips of approved operators. Writes are
scoped to the signed-in operator's own trips; publishing needs approval.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from safari_connector.api.deps import get_current_operator, get_db
from safari_connector.models.booking import Booking
from safari_connector.models.operator import Operator
from safari_connector.models.trip import Trip
from safari_connector.schemas.auth import MessageResponse
from safari_connector.schemas.trip import (
    TripCreate,
    TripDetailResponse,
    TripListResponse,
    TripResponse,
    TripUpdate,
)

router = APIRouter(prefix="/api/v1/trips", tags=["trips"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _trip_values(body: TripCreate | TripUpdate, exclude_unset: bool = False) -> dict:
    """Column values from a request body; nested rows stored as JSON-safe dicts."""
    data = body.model_dump(exclude_unset=exclude_unset)
    for key in ("days", "rates"):
        rows = getattr(body, key)
        if key in data and rows is not None:
            data[key] = [row.model_dump(mode="json") for row in rows]
    return data


def _ensure_can_publish(operator: Operator, requested_status: str | None) -> None:
    if requested_status == "published" and not operator.is_approved:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only approved operators can publish trips",
        )


async def _get_own_trip(trip_id: uuid.UUID, operator: Operator, db: AsyncSession) -> Trip:
    """Fetch a trip owned by the operator, or 404."""
    result = await db.execute(select(Trip).where(Trip.id == trip_id, Trip.operator_id == operator.id))
    trip = result.scalar_one_or_none()
    if trip is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Trip not found",
        )
    return trip


# ---------------------------------------------------------------------------
# Operator endpoints
# ---------------------------------------------------------------------------


@router.post(
    "",
    response_model=TripResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a trip",
)
async def create_trip(
    body: TripCreate,
    db: AsyncSession = Depends(get_db),
    operator: Operator = Depends(get_current_operator),
) -> Trip:
    """Create a trip for the current operator (draft unless approved and asked to publish)."""
    _ensure_can_publish(operator, body.status)

    trip = Trip(operator_id=operator.id, **_trip_values(body))
    db.add(trip)
    await db.flush()
    await db.refresh(trip)
    return trip


@router.get("/mine", response_model=TripListResponse, summary="List the current operator's trips")
async def list_my_trips(
    status_filter: str | None = Query(None, alias="status", description="draft or published"),
    skip: int = Query(0, ge=0, description="Pagination offset"),
    limit: int = Query(50, ge=1, le=100, description="Pagination limit"),
    db: AsyncSession = Depends(get_db),
    operator: Operator = Depends(get_current_operator),
) -> dict:
    base_query = select(Trip).where(Trip.operator_id == operator.id)
    if status_filter is not None:
        base_query = base_query.where(Trip.status == status_filter)

    total_result = await db.execute(select(func.count()).select_from(base_query.subquery()))
    total = total_result.scalar_one()

    result = await db.execute(base_query.order_by(Trip.created_at.desc()).offset(skip).limit(limit))
    return {"items": list(result.scalars().all()), "total": total}


@router.patch("/{trip_id}", response_model=TripResponse, summary="Update a trip")
async def update_trip(
    trip_id: uuid.UUID,
    body: TripUpdate,
    db: AsyncSession = Depends(get_db),
    operator: Operator = Depends(get_current_operator),
) -> Trip:
    """Partially update one of the operator's trips."""
    trip = await _get_own_trip(trip_id, operator, db)
    _ensure_can_publish(operator, body.status)

    for field, value in _trip_values(body, exclude_unset=True).items():
        setattr(trip, field, value)

    await db.flush()
    await db.refresh(trip)
    return trip


@router.delete("/{trip_id}", response_model=MessageResponse, summary="Delete a trip")
async def delete_trip(
    trip_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    operator: Operator = Depends(get_current_operator),
) -> MessageResponse:
    """Delete a trip that has never been booked."""
    trip = await _get_own_trip(trip_id, operator, db)

    booked = await db.execute(select(func.count()).select_from(Booking).where(Booking.trip_id == trip.id))
    if booked.scalar_one() > 0:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Trip has bookings; unpublish it instead",
        )

    await db.delete(trip)
    await db.flush()
    return MessageResponse(message="Trip deleted")


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.get("", response_model=TripListResponse, summary="Browse published trips")
async def list_trips(
    operator_id: uuid.UUID | None = Query(None, description="Filter by operator"),
    q: str | None = Query(None, description="Search trip titles"),
    style: str | None = Query(None, description="Filter by style"),
    min_days: int | None = Query(None, ge=1, description="Shortest acceptable duration"),
    max_days: int | None = Query(None, ge=1, description="Longest acceptable duration"),
    skip: int = Query(0, ge=0, description="Pagination offset"),
    limit: int = Query(20, ge=1, le=100, description="Pagination limit"),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Published trips of approved operators, newest first."""
    base_query = (
        select(Trip)
        .join(Operator, Trip.operator_id == Operator.id)
        .where(Trip.status == "published", Operator.status == "approved")
    )
    if operator_id is not None:
        base_query = base_query.where(Trip.operator_id == operator_id)
    if q:
        base_query = base_query.where(Trip.title.ilike(f"%{q.strip()}%"))
    if style is not None:
        base_query = base_query.where(func.lower(Trip.style) == style.lower())
    if min_days is not None:
        base_query = base_query.where(Trip.duration_days >= min_days)
    if max_days is not None:
        base_query = base_query.where(Trip.duration_days <= max_days)

    total_result = await db.execute(select(func.count()).select_from(base_query.subquery()))
    total = total_result.scalar_one()

    result = await db.execute(base_query.order_by(Trip.created_at.desc()).offset(skip).limit(limit))
    return {"items": list(result.scalars().all()), "total": total}


@router.get("/{trip_id}", response_model=TripDetailResponse, summary="Get a published trip")
async def get_trip(
    trip_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> Trip:
    result = await db.execute(
        select(Trip)
        .join(Operator, Trip.operator_id == Operator.id)
        .where(Trip.id == trip_id, Trip.status == "published", Operator.status == "approved")
        .execution_options(populate_existing=True)
    )
    trip = result.scalar_one_or_none()
    if trip is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Trip not found",
        )
    return trip
