from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Protocol

logger = logging.getLogger(__name__)


class PushSender(Protocol):
    """Device push delivery (e.g. a mobile push gateway)."""

    def send(self, user_id: str, title: str, body: str, data: Optional[Mapping[str, Any]] = None) -> None:
        raise NotImplementedError


class LoggingPushSender(PushSender):
    """Default sender when no push gateway is configured: log and drop."""

    def send(self, user_id: str, title: str, body: str, data: Optional[Mapping[str, Any]] = None) -> None:
        logger.info(f"Push to {user_id}: {title!r} - {body!r}")
