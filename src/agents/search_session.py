"""Browsing-session orchestrator.

Runs searches against the provider, feeds the results controller,
and owns the compare list, favorites and saved searches of one
browsing session.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from opentelemetry.trace import StatusCode

from src.backend.db import store
from src.mcp_servers.equipment_search_mcp.search import search_equipment
from src.refinement.controller import ResultsController
from src.refinement.currency import CurrencyConverter
from src.refinement.selection import SelectionSet
from src.shared.logging import get_logger, get_tracer, set_search_id, set_session_id
from src.shared.models import (
    Citation,
    Product,
    ResultsView,
    SavedSearch,
    SearchQuery,
    SearchStatus,
)

logger = get_logger(__name__)
_tracer = get_tracer(__name__)
_converter = CurrencyConverter()

StatusCallback = Callable[[str, str], Awaitable[None]]

NO_RESULTS_MESSAGE = "No products found matching your criteria. Try broadening your search."
SEARCH_ERROR_MESSAGE = "An error occurred during the search. Please try again."


@dataclass
class SessionState:
    """Tracks the current state of a browsing session."""

    session_id: str
    status: SearchStatus = SearchStatus.PENDING
    query: SearchQuery = field(default_factory=SearchQuery)
    citations: list[Citation] = field(default_factory=list)
    error: str | None = None
    status_messages: list[str] = field(default_factory=list)
    search_count: int = 0


class SearchSession:
    """One user's searches, refinement state and selections."""

    def __init__(
        self,
        session_id: str,
        status_callback: StatusCallback | None = None,
    ) -> None:
        self.state = SessionState(session_id=session_id)
        self.results = ResultsController()
        self.compare = SelectionSet()
        self.favorites = SelectionSet()
        self.saved_searches: list[SavedSearch] = []
        self._status_callback = status_callback
        self._store_loaded = False
        # Serializes store reads and read-modify-write of favorites and saved searches
        self._store_lock = asyncio.Lock()

    @property
    def session_id(self) -> str:
        return self.state.session_id

    async def load_store(self) -> None:
        """Read favorites and saved searches once per session."""
        async with self._store_lock:
            await self._ensure_store()

    async def _ensure_store(self) -> None:
        # Caller holds _store_lock
        if self._store_loaded:
            return
        self.favorites = SelectionSet(await store.load_favorites(self.session_id))
        self.saved_searches = await store.load_saved_searches(self.session_id)
        self._store_loaded = True

    # -- searching ---------------------------------------------------------

    async def run_search(self, query: SearchQuery) -> bool:
        """Search and adopt the outcome unless a newer search started meanwhile.

        Returns True when this search's outcome became the current results.
        The previous results stay in place until the outcome is adopted.
        """
        set_session_id(self.session_id)
        self.state.search_count += 1
        search_id = self.state.search_count
        set_search_id(search_id)

        self.state.query = query
        self.state.status = SearchStatus.IN_PROGRESS
        self.state.error = None
        await self._add_status("Searching the web...")

        with _tracer.start_as_current_span(
            "run_search",
            attributes={"keyword": query.keyword, "search_id": search_id},
        ) as span:
            try:
                outcome = await search_equipment(query)
            except Exception as exc:
                logger.error("Search pipeline error for '%s'", query.keyword, exc_info=True)
                span.set_status(StatusCode.ERROR, str(exc))
                span.record_exception(exc)
                if self._superseded(search_id):
                    return False
                self.results.load_products([])
                self.state.citations = []
                self.state.status = SearchStatus.FAILED
                self.state.error = SEARCH_ERROR_MESSAGE
                await self._add_status("Search failed due to an error")
                return False

            if self._superseded(search_id):
                span.set_attribute("exit_reason", "superseded")
                logger.info("Discarding results of superseded search #%d", search_id)
                return False

            self.results.load_products(outcome.products)
            self.state.citations = outcome.citations
            self.state.status = SearchStatus.COMPLETED
            if not outcome.products:
                self.state.error = NO_RESULTS_MESSAGE
            span.set_attribute("product_count", len(outcome.products))

        await self._add_status(f"Found {len(outcome.products)} products")
        return True

    def _superseded(self, search_id: int) -> bool:
        return search_id != self.state.search_count

    # -- selections --------------------------------------------------------

    def toggle_compare(self, product: Product) -> bool:
        return self.compare.toggle(product)

    def remove_compare(self, product_id: str) -> bool:
        return self.compare.remove(product_id)

    async def toggle_favorite(self, product: Product) -> bool:
        async with self._store_lock:
            await self._ensure_store()
            added = self.favorites.toggle(product)
            await store.save_favorites(self.session_id, self.favorites.items())
        return added

    # -- saved searches ----------------------------------------------------

    async def save_search(self, name: str) -> SavedSearch:
        async with self._store_lock:
            await self._ensure_store()
            timestamp = int(time.time() * 1000)
            taken = {s.id for s in self.saved_searches}
            while f"search_{timestamp}" in taken:
                timestamp += 1
            saved = SavedSearch(
                id=f"search_{timestamp}",
                name=name.strip(),
                filters=self.state.query.model_copy(deep=True),
                timestamp=timestamp,
            )
            self.saved_searches = [saved, *self.saved_searches]
            await store.save_saved_searches(self.session_id, self.saved_searches)
        return saved

    async def delete_search(self, search_id: str) -> bool:
        async with self._store_lock:
            await self._ensure_store()
            remaining = [s for s in self.saved_searches if s.id != search_id]
            if len(remaining) == len(self.saved_searches):
                return False
            self.saved_searches = remaining
            await store.save_saved_searches(self.session_id, self.saved_searches)
        return True

    def find_saved_search(self, search_id: str) -> SavedSearch | None:
        return next((s for s in self.saved_searches if s.id == search_id), None)

    # -- output ------------------------------------------------------------

    def view(self, local_currency: str | None = None) -> ResultsView:
        """Current results; ``local_currency`` defaults to the currency searched in."""
        currency = (local_currency or self.state.query.currency).upper()
        visible = self.results.visible
        converted: dict[str, float] = {}
        for product in visible:
            amount = _converter.display_conversion(product, currency)
            if amount is not None:
                converted[product.id] = amount
        counts = self.results.summary()
        return ResultsView(
            session_id=self.session_id,
            status=self.state.status,
            products=list(visible),
            total_count=counts["total_count"],
            visible_count=counts["visible_count"],
            vocabulary=self.results.vocabulary,
            filters=self.results.filters,
            sort_key=self.results.sort_key,
            citations=self.state.citations,
            error=self.state.error,
            status_message=self.state.status_messages[-1] if self.state.status_messages else "",
            local_currency=currency,
            converted_prices=converted,
        )

    async def _add_status(self, message: str) -> None:
        self.state.status_messages.append(message)
        if self._status_callback:
            await self._status_callback(self.session_id, message)


# ---------------------------------------------------------------------------
# Session registry
# ---------------------------------------------------------------------------

_sessions: dict[str, SearchSession] = {}


def get_session(session_id: str) -> SearchSession | None:
    return _sessions.get(session_id)


def get_or_create_session(
    session_id: str,
    status_callback: StatusCallback | None = None,
) -> SearchSession:
    session = _sessions.get(session_id)
    if session is None:
        session = SearchSession(session_id, status_callback=status_callback)
        _sessions[session_id] = session
    return session
