"""Shared test configuration.

Points DATABASE_URL at in-memory SQLite and disables trace export before
any application module is imported, so tests never touch real services.
"""

from __future__ import annotations

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["PHOENIX_ENABLED"] = "false"
os.environ["GEMINI_API_KEY"] = "test-key"

import pytest  # noqa: E402

from src.backend.db.engine import init_db  # noqa: E402


@pytest.fixture(autouse=True, scope="session")
async def _create_tables():
    """Create database tables once for the entire test session."""
    await init_db()


@pytest.fixture(autouse=True)
def _clear_sessions():
    """Each test starts with no browsing sessions in memory."""
    import src.agents.search_session as sessions

    sessions._sessions.clear()
    yield
    sessions._sessions.clear()
