"""Minimal Gemini ``generateContent`` client over httpx."""

from __future__ import annotations

from typing import Any

import httpx
from opentelemetry import trace

from src.shared.config import settings
from src.shared.logging import get_logger

logger = get_logger(__name__)


def build_request(
    contents: list[dict[str, Any]],
    *,
    use_search: bool = False,
    system_instruction: str | None = None,
    temperature: float | None = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {"contents": contents}
    if use_search:
        body["tools"] = [{"google_search": {}}]
    if system_instruction:
        body["systemInstruction"] = {"parts": [{"text": system_instruction}]}
    if temperature is not None:
        body["generationConfig"] = {"temperature": temperature}
    return body


def user_turn(text: str) -> dict[str, Any]:
    return {"role": "user", "parts": [{"text": text}]}


async def generate_content(
    contents: list[dict[str, Any]],
    *,
    use_search: bool = False,
    system_instruction: str | None = None,
    temperature: float | None = None,
    _max_attempts: int = 2,
) -> dict[str, Any] | None:
    """POST a generateContent request and return the decoded JSON payload.

    Retries once on transport failures and non-200 responses. Returns None
    when every attempt fails or the body is not JSON.
    """
    url = f"{settings.gemini_base_url}/models/{settings.gemini_model}:generateContent"
    body = build_request(
        contents,
        use_search=use_search,
        system_instruction=system_instruction,
        temperature=temperature,
    )
    headers = {"x-goog-api-key": settings.gemini_api_key}
    span = trace.get_current_span()

    for attempt in range(1, _max_attempts + 1):
        try:
            async with httpx.AsyncClient(timeout=settings.request_timeout) as client:
                response = await client.post(url, json=body, headers=headers)
        except Exception:
            logger.warning(
                "Gemini request failed (attempt %d/%d)", attempt, _max_attempts, exc_info=True,
            )
            continue

        span.set_attribute("http_status", response.status_code)
        if response.status_code != 200:
            logger.warning(
                "Gemini returned HTTP %d (attempt %d/%d)",
                response.status_code, attempt, _max_attempts,
            )
            continue

        try:
            payload = response.json()
        except ValueError:
            logger.warning("Gemini returned a non-JSON body")
            return None
        return payload if isinstance(payload, dict) else None

    return None


def _first_candidate(payload: dict[str, Any] | None) -> dict[str, Any]:
    if not payload:
        return {}
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        return {}
    return candidates[0]


def response_text(payload: dict[str, Any] | None) -> str:
    """Concatenate the text parts of the first candidate."""
    content = _first_candidate(payload).get("content")
    if not isinstance(content, dict):
        return ""
    parts = content.get("parts")
    if not isinstance(parts, list):
        return ""
    return "".join(
        part["text"] for part in parts
        if isinstance(part, dict) and isinstance(part.get("text"), str)
    )


def grounding_chunks(payload: dict[str, Any] | None) -> Any:
    """Raw grounding chunks of the first candidate; shape is not guaranteed."""
    metadata = _first_candidate(payload).get("groundingMetadata")
    if not isinstance(metadata, dict):
        return []
    return metadata.get("groundingChunks", [])
