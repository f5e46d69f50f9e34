"""Itinerary generation through LiteLLM with a rule-based fallback."""

import json
import logging
import re

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_litellm import ChatLiteLLM
from pydantic import ValidationError

from safari_connector.config import settings
from safari_connector.itinerary.prompts import ITINERARY_SYSTEM_PROMPT
from safari_connector.schemas.itinerary import (
    ItineraryDay,
    ItineraryGenerateRequest,
    ItineraryGenerateResponse,
    ItineraryOption,
    PriceBand,
)

logger = logging.getLogger(__name__)

BASE_PRICE_PER_PERSON_DAY = {"value": 250, "balanced": 350, "premium": 550}

# (park, lodge) per third of the trip
CIRCUIT = [
    ("Tarangire National Park", "Maramboi Tented Lodge"),
    ("Serengeti National Park", "Embalakai Authentic Camps"),
    ("Ngorongoro Crater", "Rhino Lodge"),
]

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
_JSON_RE = re.compile(r"(\{.*\}|\[.*\])", re.DOTALL)

# Shown to callers when the provider call itself fails; the cause is only logged.
MODEL_UNAVAILABLE = "itinerary model unavailable"


class UnusableReply(ValueError):
    """The model answered, but not with itineraries that can be served."""


def season_summary(month: int) -> str:
    if 6 <= month <= 10:
        return "Peak wildlife season; expect excellent sightings."
    return "Shoulder season; fewer crowds, good value."


def _stop_for_day(index: int, days: int) -> tuple[str, str]:
    if index < days // 3:
        return CIRCUIT[0]
    if index < (2 * days) // 3:
        return CIRCUIT[1]
    return CIRCUIT[2]


def rule_based_itineraries(request: ItineraryGenerateRequest) -> list[ItineraryOption]:
    """Three deterministic options (value, balanced, premium) on the northern circuit."""
    likely = BASE_PRICE_PER_PERSON_DAY[request.budget_level] * request.days * request.pax
    options = []
    for i, tier in enumerate(("Value", "Balanced", "Premium")):
        days = []
        for idx in range(request.days):
            park, lodge = _stop_for_day(idx, request.days)
            activities = [{"name": "Hot Air Balloon Safari"}] if idx == request.days // 2 else []
            days.append(ItineraryDay(day_index=idx + 1, park_name=park, lodge_name=lodge, activities=activities))
        options.append(
            ItineraryOption(
                title=f"{tier} Safari: {request.days}D Tanzania",
                summary=season_summary(request.month),
                days=days,
                price_band=PriceBand(
                    currency=settings.default_currency,
                    min=round(likely * (0.85 + i * 0.05)),
                    likely=round(likely * (1 + i * 0.1)),
                    max=round(likely * (1.2 + i * 0.15)),
                ),
                notes=f"Tailored for: {', '.join(request.interests)}" if request.interests else None,
            )
        )
    return options


def extract_json(text: str) -> object | None:
    """Parse JSON from a model reply, tolerating code fences and surrounding prose."""
    cleaned = _FENCE_RE.sub("", text.strip()).strip()
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        match = _JSON_RE.search(cleaned)
        if match:
            try:
                return json.loads(match.group(1))
            except json.JSONDecodeError:
                return None
    return None


def parse_llm_itineraries(payload: object) -> list[ItineraryOption]:
    """Validate model output. Raises UnusableReply when it is unusable."""
    items = payload.get("itineraries", payload) if isinstance(payload, dict) else payload
    if not isinstance(items, list) or not items:
        raise UnusableReply("model returned no itineraries")
    try:
        return [ItineraryOption.model_validate(item) for item in items]
    except ValidationError as exc:
        raise UnusableReply(f"model returned malformed itineraries: {exc.error_count()} errors") from exc


def get_itinerary_llm() -> ChatLiteLLM:
    """Create the chat model used for itineraries (provider keys come from the environment)."""
    return ChatLiteLLM(
        model=settings.itinerary_llm_model,
        temperature=settings.itinerary_llm_temperature,
        max_tokens=4096,
    )


def _fallback(request: ItineraryGenerateRequest, reason: str) -> ItineraryGenerateResponse:
    return ItineraryGenerateResponse(itineraries=rule_based_itineraries(request), ai="fallback", ai_error=reason)


async def generate_itineraries(
    request: ItineraryGenerateRequest,
    llm: ChatLiteLLM | None = None,
) -> ItineraryGenerateResponse:
    """Generate itinerary options, falling back to the rule-based plan on any model failure."""
    if llm is None:
        if not settings.llm_enabled:
            logger.info("No LLM key configured; serving rule-based itineraries")
            return ItineraryGenerateResponse(itineraries=rule_based_itineraries(request), ai="disabled")
        llm = get_itinerary_llm()

    messages = [
        SystemMessage(content=ITINERARY_SYSTEM_PROMPT),
        HumanMessage(content=request.model_dump_json()),
    ]
    try:
        response = await llm.ainvoke(messages)
        content = response.content if isinstance(response.content, str) else str(response.content)
        payload = extract_json(content)
        if payload is None:
            raise UnusableReply("model returned non-JSON output")
        itineraries = parse_llm_itineraries(payload)
    except UnusableReply as exc:
        logger.warning("Itinerary reply unusable, using fallback: %s", exc)
        return _fallback(request, str(exc))
    except Exception as exc:
        logger.warning(
            "Itinerary model %s failed, using fallback: %s: %s",
            settings.itinerary_llm_model,
            type(exc).__name__,
            exc,
        )
        return _fallback(request, MODEL_UNAVAILABLE)

    logger.info("Generated %d itineraries via %s", len(itineraries), settings.itinerary_llm_model)
    return ItineraryGenerateResponse(itineraries=itineraries, ai="llm")
