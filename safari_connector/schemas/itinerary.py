"""Pydantic v2 schemas for the AI itinerary studio."""

import uuid
from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, EmailStr, Field

BudgetLevel = Literal["value", "balanced", "premium"]

# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


class ItineraryGenerateRequest(BaseModel):
    """Trip parameters for itinerary generation."""

    days: int = Field(..., ge=3, le=21)
    pax: int = Field(..., ge=1, le=10)
    budget_level: BudgetLevel = "balanced"
    month: int = Field(..., ge=1, le=12)
    interests: list[str] = Field(default_factory=list)


class ItineraryActivity(BaseModel):
    name: str


class ItineraryDay(BaseModel):
    day_index: int = Field(..., ge=1)
    park_name: str
    lodge_name: str | None = None
    activities: list[ItineraryActivity] = Field(default_factory=list)


class PriceBand(BaseModel):
    currency: str = "USD"
    min: int = Field(..., ge=0)
    likely: int = Field(..., ge=0)
    max: int = Field(..., ge=0)


class ItineraryOption(BaseModel):
    """One suggested itinerary with its day-by-day plan."""

    title: str
    summary: str | None = None
    days: list[ItineraryDay] = Field(..., min_length=1)
    price_band: PriceBand
    notes: str | None = None


class ItineraryGenerateResponse(BaseModel):
    """Generated options and which path produced them (llm, fallback, disabled)."""

    itineraries: list[ItineraryOption]
    ai: Literal["llm", "fallback", "disabled"]
    ai_error: str | None = None


# ---------------------------------------------------------------------------
# Send to operator
# ---------------------------------------------------------------------------


class SendToOperatorRequest(BaseModel):
    """Turn a generated itinerary into an enquiry with one operator."""

    operator_id: uuid.UUID
    full_name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    phone: str | None = Field(None, max_length=50)
    travel_date: date | None = None
    travellers: int = Field(1, ge=1, le=50)
    note: str | None = None
    itinerary: dict[str, Any]


class SendToOperatorResponse(BaseModel):
    ok: bool = True
    id: uuid.UUID


# ---------------------------------------------------------------------------
# PDF export
# ---------------------------------------------------------------------------


class ItineraryDocument(BaseModel):
    """Itinerary content rendered into the PDF. Every field is optional."""

    title: str | None = None
    summary: str | None = None
    destination: str | None = None
    days_count: int | None = Field(None, ge=1, le=21)
    travel_date: date | None = None
    budget_range: str | None = None
    style: str | None = None
    group_type: str | None = None
    experiences: list[str] = Field(default_factory=list)
    days: list[str | dict[str, Any]] = Field(default_factory=list)
    includes: list[str] = Field(default_factory=list)
    excludes: list[str] = Field(default_factory=list)


class ItineraryPdfRequest(BaseModel):
    itinerary: ItineraryDocument
    traveller_name: str | None = None
    email: str | None = None
    subtitle: str = "AI Generated Itinerary"
