# WebSocket transport for per-user notifications (/ws/notifications).
# Clients authenticate with ?token=... or an Authorization: Bearer header and
# may send {"type": "ping"} to receive {"type": "pong"}.

from __future__ import annotations

import json
import logging
import os
from typing import Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.exceptions import WebSocketException

from ..auth.identity import read_identity
from ..realtime.registry import ConnectionRegistry

logger = logging.getLogger(__name__)
router = APIRouter()

WS_4401_UNAUTHORIZED = 4401
MAX_BEARER_LEN = int(os.getenv("WS_MAX_BEARER_LEN", "4096") or 4096)


def _extract_bearer_token(ws: WebSocket) -> tuple[Optional[str], str]:
    """Return (token, source). Source is one of query/authorization/none."""
    qtok = ws.query_params.get("token")
    if qtok:
        if len(qtok) > MAX_BEARER_LEN:
            return None, "query_oversize"
        return qtok.strip(), "query"
    auth = ws.headers.get("authorization")
    if auth and auth.lower().startswith("bearer "):
        token = auth.split(" ", 1)[1].strip()
        if len(token) > MAX_BEARER_LEN:
            return None, "authorization_oversize"
        return token, "authorization"
    return None, "none"


def _is_ping(raw: str) -> bool:
    try:
        msg = json.loads(raw)
    except ValueError:
        return raw.strip().lower() == "ping"
    return isinstance(msg, dict) and msg.get("type") == "ping"


@router.websocket("/ws/notifications")
async def notifications_socket(websocket: WebSocket) -> None:
    token, token_src = _extract_bearer_token(websocket)
    identity = read_identity(token)
    if identity is None:
        logger.info("WS auth failed source=%s path=%s", token_src, websocket.url.path)
        raise WebSocketException(code=WS_4401_UNAUTHORIZED, reason="Invalid token")

    registry: ConnectionRegistry = websocket.app.state.realtime_registry
    await websocket.accept()
    await registry.connect(identity.subject_id, websocket)
    logger.info("WS connected user=%s source=%s", identity.subject_id, token_src)
    try:
        while True:
            raw = await websocket.receive_text()
            if _is_ping(raw):
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        pass
    finally:
        registry.disconnect(identity.subject_id, websocket)
        logger.info("WS disconnected user=%s", identity.subject_id)
