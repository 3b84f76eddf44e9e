"""
logger.py — Console/file handlers for the "deckmodel" logger.

Library modules only call `logging.getLogger("deckmodel")`; handlers are
installed here, by the CLI or by an embedding application.
"""
from __future__ import annotations

import logging
from pathlib import Path

LOGGER_NAME = "deckmodel"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def setup_logger(level: int = logging.INFO, log_file: Path | None = None) -> logging.Logger:
    """Configure console (and optional file) output.

    Safe to call more than once: an already configured logger only has its
    level updated.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    if logger.handlers:
        return logger

    logger.propagate = False
    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
