"""Utilities shared across taggedpdf."""

from __future__ import annotations

import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(LOG_FORMAT)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.propagate = False
    return logger


def set_log_level(level: int) -> None:
    """Apply *level* to every ``taggedpdf`` logger."""

    logging.getLogger("taggedpdf").setLevel(level)
    for name, logger in logging.Logger.manager.loggerDict.items():
        if name.startswith("taggedpdf") and isinstance(logger, logging.Logger):
            logger.setLevel(level)


def resolve_path(path: str | Path | None) -> Path:
    if path is None:
        raise ValueError("Path must not be None")
    resolved = Path(path).expanduser().resolve()
    return resolved
