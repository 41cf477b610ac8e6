"""Equipment Search MCP Server implementation."""

from __future__ import annotations

import json

from mcp.server import Server
from mcp.types import TextContent, Tool

from src.mcp_servers.equipment_search_mcp.assistant import summarize_differences
from src.mcp_servers.equipment_search_mcp.search import search_equipment
from src.shared.models import Product, SearchQuery

server = Server("equipment-search")


@server.list_tools()
async def list_tools() -> list[Tool]:
    return [
        Tool(
            name="search_equipment",
            description="Search the web for commercial kitchen and laundry equipment",
            inputSchema={
                "type": "object",
                "properties": {
                    "keyword": {"type": "string"},
                    "brand": {"type": "string"},
                    "model": {"type": "string"},
                    "category": {"type": "string"},
                    "countries": {"type": "array", "items": {"type": "string"}},
                    "price_min": {"type": "number"},
                    "price_max": {"type": "number"},
                    "condition": {"type": "string"},
                    "currency": {"type": "string", "default": "USD"},
                    "supplier_websites": {
                        "type": "string",
                        "description": "Newline-separated supplier hostnames",
                    },
                    "items_per_page": {"type": "integer", "enum": [10, 20, 50, 100]},
                },
            },
        ),
        Tool(
            name="summarize_differences",
            description="Summarize the key differences between two or more products",
            inputSchema={
                "type": "object",
                "properties": {
                    "products": {"type": "array", "items": {"type": "object"}},
                },
                "required": ["products"],
            },
        ),
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    if name == "search_equipment":
        query = SearchQuery(**arguments)
        outcome = await search_equipment(query)
        return [TextContent(type="text", text=json.dumps({
            "products": [p.model_dump(by_alias=True) for p in outcome.products],
            "citations": [c.model_dump() for c in outcome.citations],
            "status": "ok",
        }, ensure_ascii=False))]

    elif name == "summarize_differences":
        products = [Product.model_validate(item) for item in arguments["products"]]
        summary = await summarize_differences(products)
        return [TextContent(type="text", text=json.dumps({"summary": summary}, ensure_ascii=False))]

    raise ValueError(f"Unknown tool: {name}")
