"""Itinerary studio API router: AI generation, send to operator, PDF export."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from safari_connector.api.deps import get_db, get_optional_user
from safari_connector.itinerary.generator import generate_itineraries
from safari_connector.itinerary.pdf import pdf_filename, render_itinerary_pdf
from safari_connector.models.user import User
from safari_connector.schemas.itinerary import (
    ItineraryGenerateRequest,
    ItineraryGenerateResponse,
    ItineraryPdfRequest,
    SendToOperatorRequest,
    SendToOperatorResponse,
)
from safari_connector.services import enquiry_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/itinerary", tags=["itinerary"])


@router.post("/generate", response_model=ItineraryGenerateResponse, summary="Generate itinerary options")
async def generate(body: ItineraryGenerateRequest) -> ItineraryGenerateResponse:
    """Day-by-day options from the configured model, or the rule-based planner."""
    return await generate_itineraries(body)


@router.post(
    "/send-to-operator",
    response_model=SendToOperatorResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send an itinerary to an operator for quoting",
)
async def send_to_operator(
    body: SendToOperatorRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
) -> SendToOperatorResponse:
    """Create an ``ai_studio`` enquiry carrying the itinerary."""
    traveller = current_user if current_user is not None and current_user.role == "traveller" else None
    enquiry = await enquiry_service.create_enquiry(
        db,
        name=body.full_name,
        email=body.email,
        phone=body.phone,
        travel_date=body.travel_date,
        pax=body.travellers,
        note=body.note,
        operator_id=body.operator_id,
        itinerary=body.itinerary,
        trip_title=body.itinerary.get("title"),
        source="ai_studio",
        traveller=traveller,
    )
    return SendToOperatorResponse(id=enquiry.id)


@router.post("/pdf", summary="Export an itinerary as PDF", response_class=Response)
async def export_pdf(body: ItineraryPdfRequest) -> Response:
    content = render_itinerary_pdf(body)
    filename = pdf_filename(body.itinerary.title)
    logger.info("Rendered itinerary PDF %s (%d bytes)", filename, len(content))
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )
