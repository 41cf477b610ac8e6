"""Results Refinement MCP Server implementation.

Stateless tools over a product list: each call carries the products it
works on, so no session state lives in the server.
"""

from __future__ import annotations

import json

from mcp.server import Server
from mcp.types import TextContent, Tool

from src.refinement.currency import CurrencyConverter, format_price
from src.refinement.exporter import export
from src.refinement.facets import discover
from src.refinement.filters import apply_filters, neutral_filters
from src.refinement.sorting import sort_products
from src.shared.models import FilterState, Product, SortKey

server = Server("results-refinement")

_converter = CurrencyConverter()


def _deserialize_products(raw: list[dict]) -> list[Product]:
    return [Product.model_validate(item) for item in raw]


def _text(payload: dict) -> list[TextContent]:
    return [TextContent(type="text", text=json.dumps(payload, ensure_ascii=False))]


@server.list_tools()
async def list_tools() -> list[Tool]:
    return [
        Tool(
            name="discover_facets",
            description="Derive filter options and price bounds from a list of products",
            inputSchema={
                "type": "object",
                "properties": {
                    "products": {"type": "array", "description": "Raw product records"},
                    "known_spec_keys": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Spec attributes that become filters",
                    },
                },
                "required": ["products"],
            },
        ),
        Tool(
            name="refine_results",
            description="Filter and sort a list of products",
            inputSchema={
                "type": "object",
                "properties": {
                    "products": {"type": "array"},
                    "filters": {
                        "type": "object",
                        "description": "Filter state; omitted fields match everything",
                    },
                    "sort_key": {
                        "type": "string",
                        "enum": [k.value for k in SortKey],
                        "default": SortKey.PRICE_LOW_TO_HIGH.value,
                    },
                },
                "required": ["products"],
            },
        ),
        Tool(
            name="export_results",
            description="Export products as CSV, spreadsheet-compatible text or printable HTML",
            inputSchema={
                "type": "object",
                "properties": {
                    "products": {"type": "array"},
                    "format": {"type": "string", "enum": ["csv", "xls", "pdf"]},
                },
                "required": ["products", "format"],
            },
        ),
        Tool(
            name="convert_price",
            description="Convert an amount between currencies using the static rate table",
            inputSchema={
                "type": "object",
                "properties": {
                    "amount": {"type": "number"},
                    "from_currency": {"type": "string"},
                    "to_currency": {"type": "string"},
                },
                "required": ["amount", "from_currency", "to_currency"],
            },
        ),
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    if name == "discover_facets":
        products = _deserialize_products(arguments["products"])
        vocabulary = discover(products, arguments.get("known_spec_keys"))
        return _text(vocabulary.model_dump())

    elif name == "refine_results":
        products = _deserialize_products(arguments["products"])
        if arguments.get("filters"):
            filters = FilterState(**arguments["filters"])
        else:
            filters = neutral_filters(discover(products))
        sort_key = SortKey(arguments.get("sort_key", SortKey.PRICE_LOW_TO_HIGH))
        visible = sort_products(apply_filters(products, filters), sort_key)
        return _text({
            "products": [p.model_dump(by_alias=True) for p in visible],
            "total_count": len(products),
            "visible_count": len(visible),
        })

    elif name == "export_results":
        products = _deserialize_products(arguments["products"])
        artifact = export(products, arguments["format"])
        if artifact is None:
            return _text({"status": "empty"})
        return _text({
            "status": "ok",
            "filename": artifact.filename,
            "media_type": artifact.media_type,
            "content": artifact.content,
        })

    elif name == "convert_price":
        to_currency = arguments["to_currency"]
        converted = _converter.convert(
            float(arguments["amount"]), arguments["from_currency"], to_currency,
        )
        return _text({
            "amount": converted,
            "formatted": format_price(converted, to_currency) if converted is not None else None,
        })

    raise ValueError(f"Unknown tool: {name}")
