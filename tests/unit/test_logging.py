"""Tests for the shared logging and tracing infrastructure."""

from __future__ import annotations

import json
import logging
import sys
from unittest.mock import MagicMock, patch

import pytest


@pytest.fixture(autouse=True)
def _reset_logging_state():
    """Reset the shared logging module's initialisation flags."""
    import src.shared.logging as log_mod

    log_mod._initialized = False
    log_mod._tracer_initialized = False
    session_token = log_mod._session_id_var.set("")
    search_token = log_mod._search_id_var.set(0)
    yield
    log_mod._session_id_var.reset(session_token)
    log_mod._search_id_var.reset(search_token)
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.WARNING)


def _record(msg: str = "hello", level: int = logging.INFO, exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(
        name="mylogger", level=level, pathname="", lineno=0,
        msg=msg, args=(), exc_info=exc_info,
    )


# ---------------------------------------------------------------------------
# Logger factory
# ---------------------------------------------------------------------------


def test_get_logger_returns_logger():
    from src.shared.logging import get_logger

    logger = get_logger("test")
    assert isinstance(logger, logging.Logger)
    assert logger.name == "test"


def test_setup_logging_idempotent():
    from src.shared.logging import setup_logging

    setup_logging()
    handler_count = len(logging.getLogger().handlers)

    setup_logging()
    assert len(logging.getLogger().handlers) == handler_count


def test_noisy_loggers_quieted():
    from src.shared.logging import setup_logging

    setup_logging()
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_log_level_from_settings(monkeypatch):
    from src.shared import config
    from src.shared.logging import setup_logging

    monkeypatch.setattr(config.settings, "log_level", "WARNING")
    setup_logging()
    assert logging.getLogger().level == logging.WARNING


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------


def test_session_and_search_id_context():
    from src.shared.logging import get_search_id, get_session_id, set_search_id, set_session_id

    assert get_session_id() == ""
    assert get_search_id() == 0
    set_session_id("abc")
    set_search_id(3)
    assert get_session_id() == "abc"
    assert get_search_id() == 3


def test_session_filter_injects_ids():
    from src.shared.logging import SessionFilter, set_search_id, set_session_id

    set_session_id("sess-42")
    set_search_id(2)
    record = _record()
    assert SessionFilter().filter(record) is True
    assert record.session_id == "sess-42"  # type: ignore[attr-defined]
    assert record.search_id == 2  # type: ignore[attr-defined]


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


def test_json_formatter_output():
    from src.shared.logging import JsonFormatter, SessionFilter, set_session_id

    set_session_id("json-test")
    record = _record("test message")
    SessionFilter().filter(record)
    data = json.loads(JsonFormatter().format(record))
    assert data["level"] == "INFO"
    assert data["logger"] == "mylogger"
    assert data["message"] == "test message"
    assert data["session_id"] == "json-test"
    assert "timestamp" in data
    assert "search_id" not in data
    assert "exception" not in data


def test_json_formatter_includes_search_id():
    from src.shared.logging import JsonFormatter, SessionFilter, set_search_id

    set_search_id(5)
    record = _record()
    SessionFilter().filter(record)
    assert json.loads(JsonFormatter().format(record))["search_id"] == 5


def test_json_formatter_with_exception():
    from src.shared.logging import JsonFormatter, SessionFilter

    try:
        raise ValueError("boom")
    except ValueError:
        exc_info = sys.exc_info()

    record = _record("err", logging.ERROR, exc_info)
    SessionFilter().filter(record)
    data = json.loads(JsonFormatter().format(record))
    assert "boom" in data["exception"]


def test_console_formatter_output():
    from src.shared.logging import ConsoleFormatter, SessionFilter, set_search_id, set_session_id

    set_session_id("console-test")
    set_search_id(4)
    record = _record("hello world")
    SessionFilter().filter(record)
    output = ConsoleFormatter().format(record)
    assert "INFO" in output
    assert "[console-test#4]" in output
    assert "mylogger: hello world" in output


def test_console_formatter_no_session():
    from src.shared.logging import ConsoleFormatter, SessionFilter

    record = _record("no session", logging.DEBUG)
    SessionFilter().filter(record)
    output = ConsoleFormatter().format(record)
    assert "[" not in output.replace("\033[", "")
    assert "no session" in output


# ---------------------------------------------------------------------------
# Tracing
# ---------------------------------------------------------------------------


def test_get_tracer_returns_tracer():
    from opentelemetry import trace

    from src.shared.logging import get_tracer

    assert isinstance(get_tracer("test"), trace.Tracer)


def test_span_processor_sets_attributes():
    from src.shared.logging import SessionIdSpanProcessor, set_search_id, set_session_id

    set_session_id("test-session-42")
    set_search_id(7)
    span = MagicMock()
    SessionIdSpanProcessor().on_start(span)
    span.set_attribute.assert_any_call("session.id", "test-session-42")
    span.set_attribute.assert_any_call("search.id", 7)


def test_span_processor_no_context():
    from src.shared.logging import SessionIdSpanProcessor

    span = MagicMock()
    SessionIdSpanProcessor().on_start(span)
    span.set_attribute.assert_not_called()


def test_session_id_in_exported_spans():
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import (
        SimpleSpanProcessor,
        SpanExporter,
        SpanExportResult,
    )

    from src.shared.logging import SessionIdSpanProcessor, set_session_id

    class CollectingExporter(SpanExporter):
        def __init__(self):
            self.spans = []

        def export(self, spans):
            self.spans.extend(spans)
            return SpanExportResult.SUCCESS

    exporter = CollectingExporter()
    provider = TracerProvider()
    provider.add_span_processor(SessionIdSpanProcessor())
    provider.add_span_processor(SimpleSpanProcessor(exporter))

    set_session_id("e2e-session")
    with provider.get_tracer("test").start_as_current_span("test_span"):
        pass

    assert len(exporter.spans) == 1
    assert dict(exporter.spans[0].attributes or {})["session.id"] == "e2e-session"
    provider.shutdown()


def test_shutdown_tracing_calls_provider_shutdown():
    from src.shared.logging import shutdown_tracing

    mock_provider = MagicMock()
    with patch("src.shared.logging.trace.get_tracer_provider", return_value=mock_provider):
        shutdown_tracing()
    mock_provider.shutdown.assert_called_once()


def test_phoenix_export_off_by_default(monkeypatch):
    from src.shared.config import Settings

    monkeypatch.delenv("PHOENIX_ENABLED", raising=False)
    assert Settings(_env_file=None).phoenix_enabled is False
