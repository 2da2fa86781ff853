"""Logging configuration for the CLI and HTTP proxy."""
from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging; unknown level names fall back to INFO."""
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        numeric = logging.INFO

    root = logging.getLogger()
    root.setLevel(numeric)

    if not any(getattr(h, "_wallet_portfolio", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._wallet_portfolio = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    # aiohttp access logs are noisy at DEBUG
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
