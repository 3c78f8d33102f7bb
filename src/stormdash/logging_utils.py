"""Shared logging helpers for StormDash services."""

from __future__ import annotations

import logging
from pythonjsonlogger import jsonlogger


def configure_logging(level: int = logging.INFO) -> None:
    """Configure JSON logging for the polling loops and CLI utilities."""
    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s"
    )
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    logging.basicConfig(level=level, handlers=[handler], force=True)
    # httpx logs every request at INFO; keep the poll loops readable
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
