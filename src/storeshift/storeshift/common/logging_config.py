from __future__ import annotations

import logging

LOGGING_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once for all modules (console output)."""
    root = logging.getLogger()
    if any(getattr(h, "_storeshift", False) for h in root.handlers):
        root.setLevel(level.upper())
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOGGING_FORMAT))
    handler._storeshift = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level.upper())
