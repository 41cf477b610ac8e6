"""FastAPI application entry point."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from src.backend.api.routes import router
from src.backend.db.engine import dispose_db, init_db
from src.backend.websocket.handler import websocket_router
from src.shared.config import settings
from src.shared.logging import get_logger, setup_logging, shutdown_tracing

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    setup_logging()
    await init_db()
    logger.info("Equipment Finder started (env=%s, model=%s)", settings.env, settings.gemini_model)
    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY is not set; searches will return no products")
    yield
    await dispose_db()
    shutdown_tracing()


app = FastAPI(
    title="Equipment Finder",
    description="Commercial kitchen and laundry equipment search with result refinement",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api")
app.include_router(websocket_router)

_static_dir = Path(__file__).resolve().parents[1] / "frontend" / "dist"
if _static_dir.is_dir():
    app.mount("/", StaticFiles(directory=str(_static_dir), html=True), name="frontend")


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    uvicorn.run(
        "src.backend.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        reload=settings.env == "local",
    )
