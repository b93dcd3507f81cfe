from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from flask import Flask, request
from flask_sock import Sock
from simple_websocket import ConnectionClosed

from ..container import Container

logger = logging.getLogger(__name__)


def handle_message(raw: Any) -> Optional[Dict[str, Any]]:
    """Reply to a client frame; only `ping` expects an answer."""
    try:
        message = json.loads(raw)
    except (TypeError, ValueError) as ex:
        logger.error(f"WebSocket message error: {ex}")
        return None

    message_type = message.get("type") if isinstance(message, dict) else None
    if message_type == "ping":
        return {"type": "pong"}
    logger.debug(f"Unknown message type: {message_type!r}")
    return None


def register(app: Flask, container: Container) -> Sock:
    sock = Sock(app)

    @sock.route("/ws")
    def realtime(ws):
        user_id = (request.args.get("userId") or "").strip() or None
        # Connections without a user id are kept for ping/pong only.
        if user_id:
            container.registry.register(user_id, ws)
        try:
            while True:
                reply = handle_message(ws.receive())
                if reply is not None:
                    ws.send(json.dumps(reply))
        except ConnectionClosed:
            pass
        finally:
            if user_id:
                container.registry.unregister(user_id, ws)

    return sock
