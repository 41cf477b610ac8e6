"""WebSocket channel pushing search status messages to the browser."""

from __future__ import annotations

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from src.shared.logging import get_logger, get_search_id

logger = get_logger(__name__)

websocket_router = APIRouter()

# Open connections keyed by browsing-session ID
_connections: dict[str, WebSocket] = {}


@websocket_router.websocket("/ws/{session_id}")
async def websocket_endpoint(websocket: WebSocket, session_id: str) -> None:
    await websocket.accept()
    _connections[session_id] = websocket
    try:
        while True:
            # Client pings keep the socket open
            await websocket.receive_text()
    except WebSocketDisconnect:
        _connections.pop(session_id, None)


async def send_status(session_id: str, message: str) -> None:
    """Push a status line for the search currently running in ``session_id``."""
    ws = _connections.get(session_id)
    if ws is None:
        return
    try:
        await ws.send_json({"type": "status", "message": message, "search_id": get_search_id()})
    except Exception:
        logger.warning("Dropping status socket for session %s", session_id, exc_info=True)
        _connections.pop(session_id, None)
