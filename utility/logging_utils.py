# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-07
# Updated: 2026-02-08
# Description: logging_utils.py
# -----------------------------------------------------------------------------
import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

import colorlog

BASE_LOGGER_NAME = "rfp_kb"

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s"
CONSOLE_FORMAT = (
    "%(log_color)s%(asctime)s [%(levelname)s] "
    "%(name)s:%(lineno)d:%(reset)s %(message_log_color)s%(message)s"
)
LEVEL_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}
MESSAGE_COLORS = {
    "INFO": "white",
    "WARNING": "yellow",
    "ERROR": "light_red",
    "CRITICAL": "red",
}


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "y", "on")


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setFormatter(colorlog.ColoredFormatter(
        fmt=CONSOLE_FORMAT,
        datefmt=DATE_FORMAT,
        log_colors=LEVEL_COLORS,
        secondary_log_colors={"message": MESSAGE_COLORS},
        style="%",
    ))
    return handler


def _file_handler(path: Path) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(path),
        maxBytes=int(os.getenv("KB_LOG_MAX_BYTES", str(5 * 1024 * 1024))),  # 5MB
        backupCount=int(os.getenv("KB_LOG_BACKUP_COUNT", "5")),
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _base_logger() -> logging.Logger:
    """
    The one logger that owns handlers. Every rfp_kb.* logger propagates here,
    so a record is written once however many services log it.
    """
    base = logging.getLogger(BASE_LOGGER_NAME)
    if base.handlers:
        return base

    base.addHandler(_console_handler())
    # off unless KB_LOG_TO_FILE is set
    if _env_flag("KB_LOG_TO_FILE", "0"):
        base.addHandler(_file_handler(Path(os.getenv("KB_LOG_FILE", "./logs/rfp_kb.log"))))

    level_name = os.getenv("KB_LOG_LEVEL", "INFO").upper()
    base.setLevel(getattr(logging, level_name, logging.INFO))
    # pytest's caplog listens on the root logger
    base.propagate = _env_flag("KB_LOG_PROPAGATE", "1")
    return base


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Install the rfp_kb handlers (idempotent) and optionally override the level.
    Called once at application start; loggers created earlier are unaffected
    because they carry no handlers of their own.
    """
    base = _base_logger()
    if level:
        base.setLevel(getattr(logging, level.upper(), logging.INFO))
    return base


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Generic logger that does not include a class name.
    """
    _base_logger()
    return logging.getLogger(f"{BASE_LOGGER_NAME}.{name}" if name else BASE_LOGGER_NAME)


def get_class_logger(cls: type) -> logging.Logger:
    """
    Returns a logger whose name includes module + class, e.g.:

      rfp_kb.chunking.KBChunker.KBChunker
      rfp_kb.services.KBIngestService.KBIngestService
    """
    module = getattr(cls, "__module__", "unknown_module")
    classname = getattr(cls, "__name__", "UnknownClass")
    return get_logger(f"{module}.{classname}")
