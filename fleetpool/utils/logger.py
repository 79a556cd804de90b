# fleetpool/utils/logger.py
"""
Logging setup shared by every module.
Console plus a size-rotated file; the movement history written here is the
operator's audit trail next to the trip_logs table.
"""

import logging
import os
from logging.handlers import RotatingFileHandler

from fleetpool.config import settings

LOG_LEVEL = settings.LOG_LEVEL.upper()
LOG_DIR = settings.LOG_DIR or os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "logs")

# Libraries that flood INFO with per-request/per-statement lines
QUIET_LOGGERS = ("sqlalchemy.engine", "uvicorn.access", "urllib3", "httpx")

_configured = False


def _handlers(formatter: logging.Formatter) -> list:
    console = logging.StreamHandler()
    handlers = [console]
    if settings.LOG_FILE:
        os.makedirs(LOG_DIR, exist_ok=True)
        handlers.append(RotatingFileHandler(
            filename=os.path.join(LOG_DIR, settings.LOG_FILE),
            maxBytes=settings.LOG_MAX_BYTES,
            backupCount=settings.LOG_BACKUP_COUNT,
            encoding="utf-8",
        ))
    for handler in handlers:
        handler.setLevel(LOG_LEVEL)
        handler.setFormatter(formatter)
    return handlers


def _configure_root_logger():
    global _configured
    if _configured:
        return
    _configured = True

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    root = logging.getLogger()
    root.setLevel(LOG_LEVEL)
    for handler in _handlers(formatter):
        root.addHandler(handler)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Named logger for a module: logger = get_logger(__name__)."""
    _configure_root_logger()
    return logging.getLogger(name)
