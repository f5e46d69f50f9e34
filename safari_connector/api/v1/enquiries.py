"""Enquiries API router: quote requests and their chat threads.

Anyone may open an enquiry from a trip page. Reading and chatting is limited
to the enquiry's traveller, its operator, and back-office users.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from safari_connector.api.deps import get_current_active_user, get_db, get_optional_user, get_user_operator
from safari_connector.models.enquiry import Message, QuoteRequest
from safari_connector.models.operator import Operator
from safari_connector.models.user import User
from safari_connector.schemas.enquiry import (
    EnquiryCreate,
    EnquiryDetailResponse,
    EnquiryListResponse,
    EnquiryResponse,
    MessageCreate,
    MessageResponse,
)
from safari_connector.schemas.quote import QuoteListResponse
from safari_connector.services import enquiry_service, messaging, quote_service

router = APIRouter(prefix="/api/v1/enquiries", tags=["enquiries"])


@router.post(
    "",
    response_model=EnquiryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send an enquiry about a trip",
)
async def create_enquiry(
    body: EnquiryCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
) -> QuoteRequest:
    """Open an enquiry with the trip's operator. Signed-in travellers are linked to it."""
    traveller = current_user if current_user is not None and current_user.role == "traveller" else None
    return await enquiry_service.create_enquiry(
        db,
        name=body.name,
        email=body.email,
        phone=body.phone,
        travel_date=body.travel_date,
        pax=body.pax,
        note=body.note,
        trip_id=body.trip_id,
        traveller=traveller,
    )


@router.get("", response_model=EnquiryListResponse, summary="List my enquiries")
async def list_enquiries(
    status_filter: str | None = Query(None, alias="status", description="new, answered, booked or closed"),
    skip: int = Query(0, ge=0, description="Pagination offset"),
    limit: int = Query(20, ge=1, le=100, description="Pagination limit"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    operator: Operator | None = Depends(get_user_operator),
) -> dict:
    """Travellers see their own enquiries, operators the ones sent to them."""
    base_query = enquiry_service.scoped_enquiries(current_user, operator)
    if status_filter is not None:
        base_query = base_query.where(QuoteRequest.status == status_filter)

    total_result = await db.execute(select(func.count()).select_from(base_query.subquery()))
    total = total_result.scalar_one()

    result = await db.execute(base_query.order_by(QuoteRequest.created_at.desc()).offset(skip).limit(limit))
    return {"items": list(result.scalars().all()), "total": total}


@router.get("/{enquiry_id}", response_model=EnquiryDetailResponse, summary="Get an enquiry with its chat")
async def get_enquiry(
    enquiry_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    operator: Operator | None = Depends(get_user_operator),
) -> QuoteRequest:
    return await enquiry_service.get_enquiry_for_user(db, enquiry_id, current_user, operator)


@router.get("/{enquiry_id}/messages", response_model=list[MessageResponse], summary="List chat messages")
async def list_messages(
    enquiry_id: uuid.UUID,
    skip: int = Query(0, ge=0, description="Pagination offset"),
    limit: int = Query(200, ge=1, le=500, description="Pagination limit"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    operator: Operator | None = Depends(get_user_operator),
) -> list[Message]:
    enquiry = await enquiry_service.get_enquiry_for_user(db, enquiry_id, current_user, operator)
    return await messaging.list_messages(db, enquiry.id, limit=limit, offset=skip)


@router.post(
    "/{enquiry_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Post a chat message",
)
async def post_message(
    enquiry_id: uuid.UUID,
    body: MessageCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    operator: Operator | None = Depends(get_user_operator),
) -> Message:
    enquiry = await enquiry_service.get_enquiry_for_user(db, enquiry_id, current_user, operator)
    return await messaging.append_message(
        db,
        enquiry.id,
        enquiry_service.sender_role_for(current_user),
        body.body,
        sender_id=current_user.id,
    )


@router.get("/{enquiry_id}/quotes", response_model=QuoteListResponse, summary="List quotes for an enquiry")
async def list_enquiry_quotes(
    enquiry_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    operator: Operator | None = Depends(get_user_operator),
) -> dict:
    """All quotes, newest first; ``latest_id`` marks the active one."""
    enquiry = await enquiry_service.get_enquiry_for_user(db, enquiry_id, current_user, operator)
    quotes = await quote_service.list_quotes(db, enquiry.id)
    latest = await quote_service.latest_quote(db, enquiry.id)
    return {"items": quotes, "latest_id": latest.id if latest else None}
