"""Tests for the equipment search module."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from src.mcp_servers.equipment_search_mcp.gemini import (
    build_request,
    grounding_chunks,
    response_text,
)
from src.mcp_servers.equipment_search_mcp.search import (
    build_search_prompt,
    clean_json_string,
    parse_citations,
    parse_products,
    search_equipment,
)
from src.shared.models import SearchQuery

_CLIENT = "src.mcp_servers.equipment_search_mcp.gemini.httpx.AsyncClient"


def _payload(text: str, chunks: list | None = None) -> dict:
    candidate = {"content": {"parts": [{"text": text}]}}
    if chunks is not None:
        candidate["groundingMetadata"] = {"groundingChunks": chunks}
    return {"candidates": [candidate]}


def _mock_client(status_code: int = 200, payload: dict | None = None) -> AsyncMock:
    mock_response = MagicMock(spec=httpx.Response)
    mock_response.status_code = status_code
    mock_response.json.return_value = payload or {}

    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_client.post.return_value = mock_response
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    return mock_client


class TestBuildSearchPrompt:
    def test_includes_query_fields(self):
        prompt = build_search_prompt(SearchQuery(keyword="Dishwasher", brand="Miele", items_per_page=50))
        assert "- Keyword: Dishwasher" in prompt
        assert "- Brand: Miele" in prompt
        assert "- Countries/Regions: Saudi Arabia, UAE" in prompt
        assert "50" in prompt

    def test_any_category_and_condition_omitted(self):
        prompt = build_search_prompt(SearchQuery(category="Any", condition="Any"))
        assert "- Category:" not in prompt
        assert "- Condition:" not in prompt

    def test_price_range(self):
        prompt = build_search_prompt(SearchQuery(price_min=1000, currency="EUR"))
        assert "- Price Range: 1000 to any EUR" in prompt

    def test_supplier_websites(self):
        prompt = build_search_prompt(SearchQuery(supplier_websites="a.example\nb.example"))
        assert "a.example\nb.example" in prompt


class TestCleanJsonString:
    def test_strips_fences(self):
        assert clean_json_string('```json\n[{"id": "1"}]\n```') == '[{"id": "1"}]'

    def test_cuts_surrounding_prose(self):
        text = 'Here you go: {"products": []} Hope that helps!'
        assert clean_json_string(text) == '{"products": []}'

    def test_no_json(self):
        assert clean_json_string("Sorry, nothing found.") == ""


class TestParseProducts:
    def test_array(self):
        text = json.dumps([
            {"id": "1", "brand": "Rational", "model": "iCombi", "price": "12,000", "imageUrl": "x"},
            {"id": "2", "brand": "Unox", "model": "Cheftop", "price": 8000},
        ])
        products = parse_products(text)
        assert [p.id for p in products] == ["1", "2"]
        assert products[0].price == 12000
        assert products[0].image_url == "x"

    def test_products_wrapper(self):
        assert len(parse_products('{"products": [{"id": "1"}]}')) == 1

    def test_single_object(self):
        assert [p.brand for p in parse_products('{"brand": "Unox"}')] == ["Unox"]

    def test_skips_non_objects_and_duplicates(self):
        text = '[{"id": "1"}, "junk", 5, {"id": "1", "brand": "Dup"}, {"id": "2"}]'
        products = parse_products(text)
        assert [p.id for p in products] == ["1", "2"]
        assert products[0].brand == ""

    def test_skips_invalid_record(self):
        text = '[{"id": "1", "description": {"nested": true}}, {"id": "2"}]'
        assert [p.id for p in parse_products(text)] == ["2"]

    def test_invalid_json(self):
        assert parse_products("[{not json}]") == []

    def test_empty_text(self):
        assert parse_products("") == []


class TestParseCitations:
    def test_keeps_web_chunks(self):
        raw = [
            {"web": {"uri": "https://a.example", "title": "A"}},
            {"retrievedContext": {}},
            {"web": {"title": "no uri"}},
            "junk",
        ]
        citations = parse_citations(raw)
        assert [c.web.uri for c in citations] == ["https://a.example"]

    def test_not_a_list(self):
        assert parse_citations(None) == []


class TestGeminiPayload:
    def test_build_request_with_search(self):
        body = build_request([], use_search=True, system_instruction="be brief", temperature=0.2)
        assert body["tools"] == [{"google_search": {}}]
        assert body["systemInstruction"]["parts"][0]["text"] == "be brief"
        assert body["generationConfig"] == {"temperature": 0.2}

    def test_response_text_joins_parts(self):
        payload = {"candidates": [{"content": {"parts": [{"text": "a"}, {"x": 1}, {"text": "b"}]}}]}
        assert response_text(payload) == "ab"

    def test_malformed_payloads(self):
        assert response_text(None) == ""
        assert response_text({"candidates": []}) == ""
        assert grounding_chunks({"candidates": [{"content": {}}]}) == []


class TestSearchEquipment:
    @pytest.mark.asyncio
    async def test_returns_products_and_citations(self):
        payload = _payload(
            '```json\n[{"id": "1", "brand": "Rational", "price": 12000}]\n```',
            [{"web": {"uri": "https://shop.example", "title": "Shop"}}],
        )
        mock_client = _mock_client(payload=payload)

        with patch(_CLIENT, return_value=mock_client):
            outcome = await search_equipment(SearchQuery())

        assert [p.brand for p in outcome.products] == ["Rational"]
        assert outcome.citations[0].web.title == "Shop"
        body = mock_client.post.call_args.kwargs["json"]
        assert body["tools"] == [{"google_search": {}}]
        assert mock_client.post.call_args.kwargs["headers"]["x-goog-api-key"] == "test-key"

    @pytest.mark.asyncio
    async def test_returns_empty_on_http_error(self):
        with patch(_CLIENT, return_value=_mock_client(status_code=429)):
            outcome = await search_equipment(SearchQuery())
        assert outcome.products == []
        assert outcome.citations == []

    @pytest.mark.asyncio
    async def test_retries_on_network_error(self):
        mock_client_fail = AsyncMock(spec=httpx.AsyncClient)
        mock_client_fail.post.side_effect = httpx.ConnectError("connection failed")
        mock_client_fail.__aenter__ = AsyncMock(return_value=mock_client_fail)
        mock_client_fail.__aexit__ = AsyncMock(return_value=False)
        mock_client_ok = _mock_client(payload=_payload('[{"id": "r1", "brand": "Unox"}]'))

        with patch(_CLIENT, side_effect=[mock_client_fail, mock_client_ok]):
            outcome = await search_equipment(SearchQuery())

        assert [p.id for p in outcome.products] == ["r1"]

    @pytest.mark.asyncio
    async def test_returns_empty_after_all_retries_fail(self):
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.side_effect = httpx.ConnectError("connection failed")
        mock_client.__aenter__ = AsyncMock(return_value=mock_client)
        mock_client.__aexit__ = AsyncMock(return_value=False)

        with patch(_CLIENT, return_value=mock_client):
            outcome = await search_equipment(SearchQuery())

        assert outcome.products == []
        assert mock_client.post.await_count == 2

    @pytest.mark.asyncio
    async def test_non_json_text_gives_no_products(self):
        with patch(_CLIENT, return_value=_mock_client(payload=_payload("I could not find anything."))):
            outcome = await search_equipment(SearchQuery())
        assert outcome.products == []
