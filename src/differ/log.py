"""Logging setup: one RichHandler on stderr for differ and the relay stack."""

from __future__ import annotations

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

# Loggers owned by the HTTP/MCP layers under the relay
_THIRD_PARTY = ("uvicorn", "uvicorn.error", "uvicorn.access", "mcp")


def configure_logging(level: str = "warning", console: Optional[Console] = None) -> None:
    """Attach a RichHandler to the ``differ`` logger and set levels.

    Safe to call more than once; the previous handler is replaced.
    """
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        numeric = logging.WARNING

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.set_name("differ")

    root = logging.getLogger("differ")
    for existing in list(root.handlers):
        if existing.get_name() == "differ":
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(numeric)
    root.propagate = False

    for name in _THIRD_PARTY:
        logger = logging.getLogger(name)
        logger.setLevel(max(numeric, logging.INFO) if name == "uvicorn.access" else numeric)
        logger.handlers = [handler]
        logger.propagate = False
