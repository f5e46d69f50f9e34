"""Unit tests for itinerary generation: rule-based plan, JSON parsing, LLM fallback."""

import json
import logging
from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from safari_connector.config import settings
from safari_connector.itinerary.generator import (
    MODEL_UNAVAILABLE,
    UnusableReply,
    extract_json,
    generate_itineraries,
    parse_llm_itineraries,
    rule_based_itineraries,
    season_summary,
)
from safari_connector.schemas.itinerary import ItineraryGenerateRequest

LLM_OPTION = {
    "title": "Migration Chaser",
    "summary": "Follow the herds north.",
    "days": [
        {"day_index": 1, "park_name": "Serengeti National Park", "lodge_name": "Kubu Kubu", "activities": []},
        {"day_index": 2, "park_name": "Serengeti National Park", "activities": [{"name": "Balloon safari"}]},
    ],
    "price_band": {"currency": "USD", "min": 4000, "likely": 4800, "max": 5600},
}


def _request(**overrides) -> ItineraryGenerateRequest:
    data = {"days": 6, "pax": 2, "budget_level": "balanced", "month": 8, "interests": ["big cats"]}
    data.update(overrides)
    return ItineraryGenerateRequest(**data)


def _llm_returning(content: str) -> MagicMock:
    llm = MagicMock()
    llm.ainvoke = AsyncMock(return_value=AIMessage(content=content))
    return llm


@pytest.fixture
def no_llm_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ("openai_api_key", "anthropic_api_key", "gemini_api_key"):
        monkeypatch.setattr(settings, key, "")


class TestRuleBased:
    def test_three_tiers_covering_every_day(self):
        options = rule_based_itineraries(_request())
        assert [o.title for o in options] == [
            "Value Safari: 6D Tanzania",
            "Balanced Safari: 6D Tanzania",
            "Premium Safari: 6D Tanzania",
        ]
        for option in options:
            assert [d.day_index for d in option.days] == [1, 2, 3, 4, 5, 6]

    def test_circuit_runs_tarangire_serengeti_ngorongoro(self):
        days = rule_based_itineraries(_request())[0].days
        assert days[0].park_name == "Tarangire National Park"
        assert days[2].park_name == "Serengeti National Park"
        assert days[-1].park_name == "Ngorongoro Crater"

    def test_price_band_scales_with_budget_and_pax(self):
        value = rule_based_itineraries(_request(budget_level="value", pax=1))[0].price_band
        premium = rule_based_itineraries(_request(budget_level="premium", pax=1))[0].price_band
        assert value.likely == 250 * 6
        assert premium.likely == 550 * 6
        assert value.min <= value.likely <= value.max

    def test_season_summary(self):
        assert "Peak" in season_summary(7)
        assert "Shoulder" in season_summary(3)

    def test_interests_in_notes(self):
        assert rule_based_itineraries(_request())[0].notes == "Tailored for: big cats"
        assert rule_based_itineraries(_request(interests=[]))[0].notes is None


class TestParsing:
    def test_extract_plain_json(self):
        assert extract_json('{"a": 1}') == {"a": 1}

    def test_extract_fenced_json(self):
        assert extract_json('```json\n[{"a": 1}]\n```') == [{"a": 1}]

    def test_extract_json_surrounded_by_prose(self):
        assert extract_json('Here you go: {"itineraries": []} Enjoy!') == {"itineraries": []}

    def test_extract_garbage(self):
        assert extract_json("no json here") is None

    def test_parse_wrapped_and_bare_lists(self):
        assert parse_llm_itineraries({"itineraries": [LLM_OPTION]})[0].title == "Migration Chaser"
        assert parse_llm_itineraries([LLM_OPTION])[0].days[1].activities[0].name == "Balloon safari"

    def test_parse_rejects_empty_and_malformed(self):
        with pytest.raises(UnusableReply):
            parse_llm_itineraries({"itineraries": []})
        with pytest.raises(UnusableReply):
            parse_llm_itineraries([{"title": "No days"}])


class TestGenerate:
    async def test_disabled_without_keys(self, no_llm_keys):
        result = await generate_itineraries(_request())
        assert result.ai == "disabled"
        assert len(result.itineraries) == 3
        assert result.ai_error is None

    async def test_llm_success(self):
        llm = _llm_returning(json.dumps({"itineraries": [LLM_OPTION]}))
        result = await generate_itineraries(_request(), llm=llm)

        assert result.ai == "llm"
        assert [o.title for o in result.itineraries] == ["Migration Chaser"]

        messages = llm.ainvoke.await_args.args[0]
        assert isinstance(messages[0], SystemMessage)
        assert isinstance(messages[1], HumanMessage)
        assert json.loads(messages[1].content)["days"] == 6

    async def test_non_json_reply_falls_back(self):
        result = await generate_itineraries(_request(), llm=_llm_returning("Sorry, I cannot help with that."))
        assert result.ai == "fallback"
        assert result.ai_error == "model returned non-JSON output"
        assert len(result.itineraries) == 3

    async def test_provider_error_falls_back(self):
        llm = MagicMock()
        llm.ainvoke = AsyncMock(side_effect=RuntimeError("rate limited"))
        result = await generate_itineraries(_request(), llm=llm)
        assert result.ai == "fallback"
        assert result.ai_error == MODEL_UNAVAILABLE

    async def test_provider_detail_is_logged_not_returned(self, caplog: pytest.LogCaptureFixture):
        secret = "AuthenticationError: invalid api key sk-live-9f3a for account ops@safariconnector.test"
        llm = MagicMock()
        llm.ainvoke = AsyncMock(side_effect=RuntimeError(secret))

        with caplog.at_level(logging.WARNING, logger="safari_connector.itinerary.generator"):
            result = await generate_itineraries(_request(), llm=llm)

        assert secret not in result.model_dump_json()
        assert "sk-live" not in (result.ai_error or "")
        assert any(secret in record.getMessage() for record in caplog.records)

    async def test_malformed_reply_reason_is_returned(self):
        result = await generate_itineraries(_request(), llm=_llm_returning(json.dumps([{"title": "No days"}])))
        assert result.ai == "fallback"
        assert result.ai_error.startswith("model returned malformed itineraries")
