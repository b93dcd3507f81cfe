"""Live websocket connections keyed by user id.

A user may hold several connections at once (devices, tabs). Delivery is
best-effort and at-most-once: nothing is queued for offline users, and a
connection whose send fails is dropped from the registry.
"""
from __future__ import annotations

import json
import logging
import threading
from typing import Any, Dict, List, Mapping, Protocol, Set, Tuple

logger = logging.getLogger(__name__)


class Connection(Protocol):
    def send(self, data: str) -> None:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError


class ConnectionRegistry:
    def __init__(self):
        self._lock = threading.Lock()
        self._clients: Dict[str, Set[Connection]] = {}

    def register(self, user_id: str, connection: Connection) -> None:
        with self._lock:
            self._clients.setdefault(user_id, set()).add(connection)
            total = len(self._clients)
        logger.info(f"WebSocket connected: {user_id} (users online: {total})")

    def unregister(self, user_id: str, connection: Connection) -> None:
        with self._lock:
            connections = self._clients.get(user_id)
            if connections is None:
                return
            connections.discard(connection)
            if not connections:
                del self._clients[user_id]
        logger.info(f"WebSocket disconnected: {user_id}")

    def _snapshot(self, user_id: str | None = None) -> List[Tuple[str, Connection]]:
        with self._lock:
            if user_id is not None:
                return [(user_id, c) for c in self._clients.get(user_id, ())]
            return [(uid, c) for uid, conns in self._clients.items() for c in conns]

    def _deliver(self, targets: List[Tuple[str, Connection]], message: Mapping[str, Any]) -> int:
        if not targets:
            return 0
        data = json.dumps(message)
        delivered = 0
        for user_id, connection in targets:
            try:
                connection.send(data)
                delivered += 1
            except Exception as ex:
                logger.warning(f"Dropping connection of {user_id} after failed send: {ex!r}")
                self.unregister(user_id, connection)
        return delivered

    def send_to_user(self, user_id: str, message: Mapping[str, Any]) -> int:
        """Send to every live connection of `user_id`; returns the delivered count."""
        return self._deliver(self._snapshot(user_id), message)

    def send_to_all(self, message: Mapping[str, Any]) -> int:
        return self._deliver(self._snapshot(), message)

    def is_online(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._clients

    @property
    def user_count(self) -> int:
        with self._lock:
            return len(self._clients)

    @property
    def connection_count(self) -> int:
        with self._lock:
            return sum(len(c) for c in self._clients.values())

    def close(self) -> None:
        """Close and forget every connection (server shutdown)."""
        targets = self._snapshot()
        with self._lock:
            self._clients.clear()
        for user_id, connection in targets:
            try:
                connection.close()
            except Exception as ex:
                logger.warning(f"Exception closing connection of {user_id}: {ex!r}")
