"""API route definitions."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, HTTPException, Response

from src.agents.search_session import SearchSession, get_or_create_session, get_session
from src.backend.websocket.handler import send_status
from src.mcp_servers.equipment_search_mcp.assistant import (
    send_chat_message,
    summarize_differences,
)
from src.refinement.currency import CurrencyConverter, format_price
from src.shared.logging import set_session_id
from src.shared.models import (
    ChatRequest,
    ConversionReply,
    ExportFormat,
    FilterUpdate,
    Product,
    ResultsView,
    SavedSearch,
    SaveSearchRequest,
    SearchOptions,
    SearchRequest,
    SelectionToggle,
    TextReply,
)

router = APIRouter()

_converter = CurrencyConverter()


def _require_session(session_id: str) -> SearchSession:
    session = get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")
    set_session_id(session_id)
    return session


async def _stored_session(session_id: str) -> SearchSession:
    """Session whose durable data is loaded; created on first use."""
    set_session_id(session_id)
    session = get_or_create_session(session_id, status_callback=send_status)
    await session.load_store()
    return session


@router.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/options", response_model=SearchOptions)
async def search_options() -> SearchOptions:
    return SearchOptions()


# ---------------------------------------------------------------------------
# Search and refinement
# ---------------------------------------------------------------------------

@router.post("/search", response_model=ResultsView)
async def search(request: SearchRequest) -> ResultsView:
    session = await _stored_session(request.session_id or uuid.uuid4().hex)
    await session.run_search(request.query)
    return session.view()


@router.get("/results/{session_id}", response_model=ResultsView)
async def get_results(session_id: str, currency: str | None = None) -> ResultsView:
    session = _require_session(session_id)
    if currency is not None and not _converter.knows(currency):
        raise HTTPException(status_code=400, detail=f"Unknown currency: {currency}")
    return session.view(currency)


@router.patch("/results/{session_id}/filters", response_model=ResultsView)
async def update_filters(session_id: str, update: FilterUpdate) -> ResultsView:
    session = _require_session(session_id)
    results = session.results
    try:
        if update.keyword is not None:
            results.set_keyword(update.keyword)
        for name in ("brand", "model", "supplier"):
            value = getattr(update, name)
            if value is not None:
                results.set_field(name, value)
        for key, value in (update.spec_filters or {}).items():
            results.set_spec_filter(key, value)
        if update.toggle_country is not None:
            results.toggle_country(update.toggle_country)
        if update.toggle_condition is not None:
            results.toggle_condition(update.toggle_condition)
        if update.price_min is not None:
            results.set_price_min(update.price_min)
        if update.price_max is not None:
            results.set_price_max(update.price_max)
        if update.sort_key is not None:
            results.set_sort_key(update.sort_key)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return session.view()


@router.post("/results/{session_id}/filters/reset", response_model=ResultsView)
async def reset_filters(session_id: str) -> ResultsView:
    session = _require_session(session_id)
    session.results.reset_filters()
    return session.view()


@router.get("/results/{session_id}/export")
async def export_results(session_id: str, format: ExportFormat = ExportFormat.CSV) -> Response:
    artifact = _require_session(session_id).results.export(format)
    if artifact is None:
        return Response(status_code=204)
    disposition = "inline" if format is ExportFormat.PDF else "attachment"
    return Response(
        content=artifact.content,
        media_type=f"{artifact.media_type}; charset=utf-8",
        headers={"Content-Disposition": f'{disposition}; filename="{artifact.filename}"'},
    )


# ---------------------------------------------------------------------------
# Compare list
# ---------------------------------------------------------------------------

@router.get("/compare/{session_id}", response_model=list[Product])
async def get_compare_list(session_id: str) -> list[Product]:
    return _require_session(session_id).compare.items()


@router.post("/compare/{session_id}/summary", response_model=TextReply)
async def summarize_compare_list(session_id: str) -> TextReply:
    session = _require_session(session_id)
    return TextReply(text=await summarize_differences(session.compare.items()))


@router.post("/compare/{session_id}/items/{product_id}", response_model=SelectionToggle)
async def toggle_compare(session_id: str, product_id: str) -> SelectionToggle:
    session = _require_session(session_id)
    product = (
        session.results.find(product_id)
        or session.compare.get(product_id)
        or session.favorites.get(product_id)
    )
    if product is None:
        raise HTTPException(status_code=404, detail=f"Unknown product: {product_id}")
    added = session.toggle_compare(product)
    return SelectionToggle(added=added, count=len(session.compare))


@router.delete("/compare/{session_id}/items/{product_id}", response_model=SelectionToggle)
async def remove_from_compare(session_id: str, product_id: str) -> SelectionToggle:
    session = _require_session(session_id)
    if not session.remove_compare(product_id):
        raise HTTPException(status_code=404, detail=f"Product not in compare list: {product_id}")
    return SelectionToggle(added=False, count=len(session.compare))


# ---------------------------------------------------------------------------
# Favorites
# ---------------------------------------------------------------------------

@router.get("/favorites/{session_id}", response_model=list[Product])
async def get_favorites(session_id: str) -> list[Product]:
    return (await _stored_session(session_id)).favorites.items()


@router.post("/favorites/{session_id}", response_model=SelectionToggle)
async def toggle_favorite(session_id: str, product: Product) -> SelectionToggle:
    session = await _stored_session(session_id)
    added = await session.toggle_favorite(product)
    return SelectionToggle(added=added, count=len(session.favorites))


# ---------------------------------------------------------------------------
# Saved searches
# ---------------------------------------------------------------------------

@router.get("/saved-searches/{session_id}", response_model=list[SavedSearch])
async def list_saved_searches(session_id: str) -> list[SavedSearch]:
    return (await _stored_session(session_id)).saved_searches


@router.post("/saved-searches/{session_id}", response_model=SavedSearch, status_code=201)
async def save_search(session_id: str, request: SaveSearchRequest) -> SavedSearch:
    if not request.name.strip():
        raise HTTPException(status_code=422, detail="Search name must not be blank")
    session = await _stored_session(session_id)
    return await session.save_search(request.name)


@router.delete("/saved-searches/{session_id}/{search_id}", status_code=204)
async def delete_saved_search(session_id: str, search_id: str) -> Response:
    session = await _stored_session(session_id)
    if not await session.delete_search(search_id):
        raise HTTPException(status_code=404, detail=f"Unknown saved search: {search_id}")
    return Response(status_code=204)


@router.post("/saved-searches/{session_id}/{search_id}/load", response_model=ResultsView)
async def load_saved_search(session_id: str, search_id: str) -> ResultsView:
    session = await _stored_session(session_id)
    saved = session.find_saved_search(search_id)
    if saved is None:
        raise HTTPException(status_code=404, detail=f"Unknown saved search: {search_id}")
    await session.run_search(saved.filters)
    return session.view()


# ---------------------------------------------------------------------------
# Assistant and currency
# ---------------------------------------------------------------------------

@router.post("/chat", response_model=TextReply)
async def chat(request: ChatRequest) -> TextReply:
    return TextReply(text=await send_chat_message(request.message, request.history))


@router.get("/convert", response_model=ConversionReply)
async def convert(amount: float, from_currency: str, to_currency: str) -> ConversionReply:
    converted = _converter.convert(amount, from_currency, to_currency)
    if converted is None:
        return ConversionReply()
    return ConversionReply(amount=converted, formatted=format_price(converted, to_currency))
