"""
Logging setup for PhotoSort-AI.

Everything goes to ``<LOG_DIR>/photosort.log`` (rotated at 10 MB, 5
backups) and to stdout. ``PHOTOSORT_LOG_LEVEL`` picks the level; chatty
third-party loggers are held at WARNING so classification decisions stay
readable.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional, Union

from photosort.config import APP_NAME, APP_VERSION, LOG_DIR

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5
DEFAULT_LOG_FILE = "photosort.log"

# Loaded lazily by the CLIP label source or by uvicorn; very verbose at INFO
NOISY_LOGGERS = ("PIL", "urllib3", "filelock", "huggingface_hub", "transformers", "multipart")

_configured = False


def _resolve_level(level: Optional[Union[int, str]]) -> int:
    if level is None:
        level = os.environ.get("PHOTOSORT_LOG_LEVEL", "INFO")
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _build_handlers(level: int, console: bool, log_path: Optional[Path]) -> List[logging.Handler]:
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    handlers: List[logging.Handler] = []

    if log_path is not None:
        handlers.append(
            RotatingFileHandler(log_path, maxBytes=MAX_LOG_SIZE, backupCount=BACKUP_COUNT, encoding="utf-8")
        )
    if console:
        handlers.append(logging.StreamHandler(sys.stdout))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


def configure_logging(
    level: Optional[Union[int, str]] = None,
    console: bool = True,
    file_logging: bool = True,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Install the PhotoSort-AI handlers on the root logger.

    Only the first call has an effect; later calls return the root logger
    unchanged. ``level`` defaults to ``PHOTOSORT_LOG_LEVEL`` (INFO).
    """
    global _configured

    root_logger = logging.getLogger()
    if _configured:
        return root_logger

    resolved = _resolve_level(level)
    log_path = None
    if file_logging:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        log_path = LOG_DIR / (log_file or DEFAULT_LOG_FILE)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in _build_handlers(resolved, console, log_path):
        root_logger.addHandler(handler)
    root_logger.setLevel(resolved)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))

    _configured = True
    root_logger.info(f"{APP_NAME} v{APP_VERSION} logging to {log_path or 'console only'}")
    return root_logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def set_log_level(level: Union[int, str]) -> None:
    """Change the level of the root logger and all of its handlers at runtime."""
    resolved = _resolve_level(level)
    root_logger = logging.getLogger()
    root_logger.setLevel(resolved)
    for handler in root_logger.handlers:
        handler.setLevel(resolved)


def get_log_file_path() -> Path:
    return LOG_DIR / DEFAULT_LOG_FILE
