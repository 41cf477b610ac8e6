"""Comparison summaries and the equipment chat assistant."""

from __future__ import annotations

import json
from collections.abc import Sequence

from src.agents.prompts import CHAT_SYSTEM_INSTRUCTION, SUMMARY_PROMPT
from src.mcp_servers.equipment_search_mcp.gemini import (
    generate_content,
    response_text,
    user_turn,
)
from src.shared.logging import get_logger
from src.shared.models import ChatMessage, Product

logger = get_logger(__name__)

SUMMARY_FALLBACK = "Could not generate comparison summary."
CHAT_FALLBACK = "Sorry, I encountered an error. Please try again."
_MIN_PRODUCTS_TO_SUMMARIZE = 2


async def summarize_differences(products: Sequence[Product]) -> str:
    """Ask the provider for a bullet-point summary of how ``products`` differ."""
    if len(products) < _MIN_PRODUCTS_TO_SUMMARIZE:
        return ""
    serialized = json.dumps(
        [p.model_dump(by_alias=True) for p in products], indent=2, ensure_ascii=False,
    )
    payload = await generate_content([user_turn(SUMMARY_PROMPT.format(products=serialized))])
    text = response_text(payload)
    if not text:
        logger.warning("Comparison summary failed for %d products", len(products))
        return SUMMARY_FALLBACK
    return text


async def send_chat_message(message: str, history: Sequence[ChatMessage] = ()) -> str:
    """Answer ``message`` with the earlier turns replayed as context."""
    contents = [
        {"role": turn.role, "parts": [{"text": turn.text}]} for turn in history
    ]
    contents.append(user_turn(message))
    payload = await generate_content(
        contents,
        use_search=True,
        system_instruction=CHAT_SYSTEM_INSTRUCTION,
    )
    text = response_text(payload)
    if not text:
        logger.warning("Chat reply failed")
        return CHAT_FALLBACK
    return text
