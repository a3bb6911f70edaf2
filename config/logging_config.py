"""
Logging setup for command-line runs.

Library modules only create ``logging.getLogger(__name__)`` loggers; the
entry point decides where the records go.
"""
import logging
import sys
from typing import Optional

from config import settings

_handler: Optional[logging.Handler] = None


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach a single stderr handler to the root logger (idempotent)."""
    global _handler

    root = logging.getLogger()
    resolved = (level or settings.LOG_LEVEL).upper()
    root.setLevel(getattr(logging, resolved, logging.INFO))

    if _handler is None:
        _handler = logging.StreamHandler(sys.stderr)
        _handler.setFormatter(logging.Formatter(settings.LOG_FORMAT))
        root.addHandler(_handler)

    return root


def reset_logging() -> None:
    """Remove the handler added by configure_logging. Used by tests."""
    global _handler
    if _handler is not None:
        logging.getLogger().removeHandler(_handler)
        _handler = None
