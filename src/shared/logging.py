"""Shared logging and tracing infrastructure.

Provides the logger and tracer factories used across the service. Every
log record and span carries the browsing-session ID and, while a search
is running, the search number inside that session, so a superseded
search can be told apart from the one whose results were adopted.
"""

from __future__ import annotations

import contextvars
import json
import logging
import os
import sys
from datetime import datetime, timezone

from opentelemetry import trace
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider

from src.shared.config import settings

_SERVICE_NAME = "equipment-finder"
_NOISY_LOGGERS = ("sqlalchemy.engine", "httpx", "httpcore", "mcp")

# ---------------------------------------------------------------------------
# Request context
# ---------------------------------------------------------------------------

_session_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "session_id", default=""
)
_search_id_var: contextvars.ContextVar[int] = contextvars.ContextVar(
    "search_id", default=0
)


def set_session_id(session_id: str) -> None:
    """Set the browsing-session ID in the current async context."""
    _session_id_var.set(session_id)


def get_session_id() -> str:
    return _session_id_var.get()


def set_search_id(search_id: int) -> None:
    """Set the number of the search currently running for the session."""
    _search_id_var.set(search_id)


def get_search_id() -> int:
    return _search_id_var.get()


# ---------------------------------------------------------------------------
# Logging classes
# ---------------------------------------------------------------------------

class SessionFilter(logging.Filter):
    """Copy ``session_id`` and ``search_id`` from *contextvars* onto records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.session_id = _session_id_var.get()  # type: ignore[attr-defined]
        record.search_id = _search_id_var.get()  # type: ignore[attr-defined]
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line, for log shipping outside local runs."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, str | int] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "session_id": getattr(record, "session_id", ""),
        }
        search_id = getattr(record, "search_id", 0)
        if search_id:
            payload["search_id"] = search_id
        if record.exc_info and record.exc_info[1] is not None:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


_LEVEL_COLORS: dict[str, str] = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
_RESET = "\033[0m"


class ConsoleFormatter(logging.Formatter):
    """Colorized single-line output prefixed with ``[session#search]``."""

    def format(self, record: logging.LogRecord) -> str:
        color = _LEVEL_COLORS.get(record.levelname, "")
        session_id: str = getattr(record, "session_id", "")
        search_id: int = getattr(record, "search_id", 0)
        context = ""
        if session_id:
            context = f" [{session_id}#{search_id}]" if search_id else f" [{session_id}]"
        line = f"{color}{record.levelname}{_RESET}{context} {record.name}: {record.getMessage()}"
        if record.exc_info and record.exc_info[1] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

_initialized = False


def setup_logging() -> None:
    """Configure the root logger once; later calls are no-ops."""
    global _initialized  # noqa: PLW0603
    if _initialized:
        return
    _initialized = True

    root = logging.getLogger()
    root.setLevel(getattr(logging, settings.log_level.upper(), logging.DEBUG))
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.addFilter(SessionFilter())
    if settings.log_format == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(ConsoleFormatter())
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return a stdlib logger, ensuring the shared setup has run."""
    setup_logging()
    return logging.getLogger(name)


# ---------------------------------------------------------------------------
# OpenTelemetry tracer
# ---------------------------------------------------------------------------

_tracer_initialized = False


class SessionIdSpanProcessor(SpanProcessor):
    """Stamp ``session.id`` (and ``search.id`` when set) on every span."""

    def on_start(self, span: trace.Span, parent_context: object = None) -> None:  # type: ignore[override]
        session_id = _session_id_var.get()
        if session_id:
            span.set_attribute("session.id", session_id)
        search_id = _search_id_var.get()
        if search_id:
            span.set_attribute("search.id", search_id)

    def on_end(self, span: trace.Span) -> None:  # type: ignore[override]
        pass

    def shutdown(self) -> None:
        pass

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return True


def _init_tracer_provider() -> None:
    global _tracer_initialized  # noqa: PLW0603
    if _tracer_initialized:
        return
    _tracer_initialized = True

    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    provider = TracerProvider(resource=Resource.create({"service.name": _SERVICE_NAME}))
    provider.add_span_processor(SessionIdSpanProcessor())

    endpoint = os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT") or settings.otel_exporter_endpoint
    if not endpoint and settings.phoenix_enabled:
        endpoint = f"http://localhost:{settings.phoenix_port}/v1/traces"

    if endpoint:
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
            OTLPSpanExporter,
        )

        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))

    trace.set_tracer_provider(provider)


def shutdown_tracing() -> None:
    """Flush pending spans and shut down the tracer provider."""
    provider = trace.get_tracer_provider()
    if hasattr(provider, "shutdown"):
        provider.shutdown()


def get_tracer(name: str) -> trace.Tracer:
    """Return an OpenTelemetry tracer, ensuring the provider is initialised."""
    _init_tracer_provider()
    return trace.get_tracer(name)
