"""
Logging setup for the API process.

Modules get their logger with ``logging.getLogger("brevly.<area>")`` so one
call here controls the whole application.
"""

import logging
from typing import Optional

LOGGER_NAME = "brevly"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str = "INFO", stream=None) -> logging.Logger:
    """
    Configure the application logger.
    
    Safe to call more than once: previous handlers are dropped so repeated
    calls (tests, reloads) don't duplicate output.
    
    Args:
        level: Log level name (DEBUG, INFO, WARNING, ...)
        stream: Optional stream for the handler (defaults to stderr)
        
    Returns:
        The configured "brevly" logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.setLevel(_resolve_level(level))
    
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    
    return logger


def _resolve_level(level: Optional[str]) -> int:
    resolved = logging.getLevelName((level or "INFO").upper())
    # getLevelName returns "Level X" for unknown names
    return resolved if isinstance(resolved, int) else logging.INFO
