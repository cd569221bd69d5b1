"""
Logging configuration
"""
import logging
import sys
from typing import Optional

from menu_planner.config import get_settings

settings = get_settings()

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Get a logger writing to stdout, DEBUG level when settings.DEBUG is on"""
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False

    logger.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
    return logger


def log_auth_event(
    logger: logging.Logger,
    event: str,
    username: str,
    ip: Optional[str] = None,
    level: int = logging.INFO,
) -> None:
    """Log an authentication event. Passwords and tokens never go through here."""
    if ip:
        logger.log(level, f"auth.{event} username={username!r} ip={ip}")
    else:
        logger.log(level, f"auth.{event} username={username!r}")
