"""Operators API router: public directory and operator self-service profile.

Admin approval lives in ``admin.py``.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from safari_connector.api.deps import get_current_operator, get_db
from safari_connector.models.operator import Operator
from safari_connector.schemas.operator import (
    OperatorPublicListResponse,
    OperatorPublicResponse,
    OperatorResponse,
    OperatorUpdate,
)

router = APIRouter(prefix="/api/v1/operators", tags=["operators"])


# ---------------------------------------------------------------------------
# Operator self-service
# ---------------------------------------------------------------------------


@router.get("/me", response_model=OperatorResponse, summary="Current operator profile")
async def get_my_profile(operator: Operator = Depends(get_current_operator)) -> Operator:
    """Return the signed-in operator's own profile, whatever its approval status."""
    return operator


@router.patch("/me", response_model=OperatorResponse, summary="Update current operator profile")
async def update_my_profile(
    body: OperatorUpdate,
    db: AsyncSession = Depends(get_db),
    operator: Operator = Depends(get_current_operator),
) -> Operator:
    """Partially update the operator's profile. Approval status is admin-only."""
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(operator, field, value)

    await db.flush()
    await db.refresh(operator)
    return operator


# ---------------------------------------------------------------------------
# Public directory
# ---------------------------------------------------------------------------


@router.get("", response_model=OperatorPublicListResponse, summary="List approved operators")
async def list_operators(
    country: str | None = Query(None, description="Filter by country"),
    search: str | None = Query(None, description="Search company name"),
    skip: int = Query(0, ge=0, description="Pagination offset"),
    limit: int = Query(20, ge=1, le=100, description="Pagination limit"),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Return a paginated list of approved operators."""
    base_query = select(Operator).where(Operator.status == "approved")
    if country:
        base_query = base_query.where(func.lower(Operator.country) == country.lower())
    if search:
        base_query = base_query.where(Operator.company_name.ilike(f"%{search}%"))

    total_result = await db.execute(select(func.count()).select_from(base_query.subquery()))
    total = total_result.scalar_one()

    result = await db.execute(base_query.order_by(Operator.company_name.asc()).offset(skip).limit(limit))
    return {"items": list(result.scalars().all()), "total": total}


@router.get("/{operator_id}", response_model=OperatorPublicResponse, summary="Get an approved operator")
async def get_operator(
    operator_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> Operator:
    result = await db.execute(select(Operator).where(Operator.id == operator_id, Operator.status == "approved"))
    operator = result.scalar_one_or_none()
    if operator is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Operator not found",
        )
    return operator
