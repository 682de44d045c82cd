"""
log.py
------
Loguru setup. Modules import `logger` from loguru directly; this only swaps the
default sink for one at the configured level.
"""
from __future__ import annotations
import sys

from loguru import logger

_configured = False


def configure_logging(level: str = "INFO") -> None:
    global _configured
    if _configured:
        return
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function} - {message}",
    )
    _configured = True
