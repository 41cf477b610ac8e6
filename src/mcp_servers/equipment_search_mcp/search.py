"""Equipment search through Gemini with Google Search grounding."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from src.agents.prompts import SEARCH_PROMPT_FORMAT, SEARCH_PROMPT_INTRO
from src.mcp_servers.equipment_search_mcp.gemini import (
    generate_content,
    grounding_chunks,
    response_text,
    user_turn,
)
from src.shared.config import settings
from src.shared.logging import get_logger, get_tracer
from src.shared.models import Citation, CitationWeb, Product, SearchQuery

logger = get_logger(__name__)
_tracer = get_tracer(__name__)


@dataclass
class SearchOutcome:
    products: list[Product] = field(default_factory=list)
    citations: list[Citation] = field(default_factory=list)


def build_search_prompt(query: SearchQuery) -> str:
    """Render the structured query as the provider prompt."""
    prompt = SEARCH_PROMPT_INTRO
    if query.keyword:
        prompt += f"- Keyword: {query.keyword}\n"
    if query.brand:
        prompt += f"- Brand: {query.brand}\n"
    if query.model:
        prompt += f"- Model: {query.model}\n"
    if query.category and query.category != "Any":
        prompt += f"- Category: {query.category}\n"
    if query.countries:
        prompt += f"- Countries/Regions: {', '.join(query.countries)}\n"
    if query.price_min or query.price_max:
        low = _format_bound(query.price_min)
        high = _format_bound(query.price_max)
        prompt += f"- Price Range: {low} to {high} {query.currency}\n"
    if query.condition and query.condition != "Any":
        prompt += f"- Condition: {query.condition}\n"
    hosts = query.supplier_hosts()
    if hosts:
        prompt += "\nPrioritize or exclusively search within these supplier websites:\n"
        prompt += "\n".join(hosts) + "\n"
    prompt += SEARCH_PROMPT_FORMAT.format(limit=query.items_per_page, currency=query.currency)
    return prompt


def _format_bound(value: float | None) -> str:
    if not value:
        return "any"
    return str(int(value)) if float(value).is_integer() else str(value)


def clean_json_string(text: str) -> str:
    """Strip markdown fences and cut out the outermost JSON array or object.

    Returns an empty string when no JSON-looking span exists.
    """
    cleaned = text.replace("```json", "").replace("```", "")
    starts = [i for i in (cleaned.find("["), cleaned.find("{")) if i != -1]
    if not starts:
        return ""
    end = max(cleaned.rfind("]"), cleaned.rfind("}"))
    start = min(starts)
    if end < start:
        return ""
    return cleaned[start:end + 1].strip()


def parse_products(text: str) -> list[Product]:
    """Parse provider text into products; anything unusable becomes no products."""
    json_string = clean_json_string(text)
    if not json_string:
        logger.warning("Provider returned non-JSON response: %s", text[:200])
        return []

    try:
        data: Any = json.loads(json_string)
    except json.JSONDecodeError:
        logger.warning("Provider response is not valid JSON: %s", json_string[:200])
        return []

    if isinstance(data, dict):
        data = data["products"] if "products" in data else [data]
    if not isinstance(data, list):
        return []

    products: list[Product] = []
    seen_ids: set[str] = set()
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            logger.warning("Skipping non-object record at index %d", index)
            continue
        try:
            product = Product.model_validate(item)
        except ValidationError:
            logger.warning("Skipping malformed record at index %d", index, exc_info=True)
            continue
        if product.id in seen_ids:
            logger.warning("Skipping duplicate product id %s", product.id)
            continue
        seen_ids.add(product.id)
        products.append(product)
    return products


def parse_citations(raw: Any) -> list[Citation]:
    """Keep well-formed ``{web: {uri, title}}`` chunks; drop everything else."""
    if not isinstance(raw, list):
        return []
    citations: list[Citation] = []
    for chunk in raw:
        if not isinstance(chunk, dict):
            continue
        web = chunk.get("web")
        if not isinstance(web, dict) or not web.get("uri"):
            continue
        citations.append(Citation(web=CitationWeb(
            uri=str(web["uri"]),
            title=str(web.get("title") or ""),
        )))
    return citations


async def search_equipment(query: SearchQuery) -> SearchOutcome:
    """Run one search. Never raises; failures come back as an empty outcome."""
    with _tracer.start_as_current_span(
        "search_equipment",
        attributes={"keyword": query.keyword, "limit": query.items_per_page},
    ) as span:
        logger.info("Searching for '%s' (limit=%d)", query.keyword, query.items_per_page)
        payload = await generate_content(
            [user_turn(build_search_prompt(query))],
            use_search=True,
            temperature=settings.search_temperature,
        )
        if payload is None:
            span.set_attribute("exit_reason", "request_failed")
            return SearchOutcome()

        outcome = SearchOutcome(
            products=parse_products(response_text(payload)),
            citations=parse_citations(grounding_chunks(payload)),
        )
        span.set_attribute("product_count", len(outcome.products))
        span.set_attribute("citation_count", len(outcome.citations))
        span.add_event("search_equipment.end", {"product_count": len(outcome.products)})
        logger.info(
            "Search returned %d products and %d citations",
            len(outcome.products), len(outcome.citations),
        )
        return outcome
