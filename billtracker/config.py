"""Configuration for the bill tracker.

Paths and tunables live here, each overridable through an environment
variable so the shell and tests can point at their own save directory.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

SAVES_DIR = Path(os.getenv("BILLTRACKER_SAVES_DIR", "saves"))
SAVE_NAME = os.getenv("BILLTRACKER_SAVE_NAME", "bills")
LOG_LEVEL = os.getenv("BILLTRACKER_LOG_LEVEL", "WARNING")
SEED_DEFAULTS = os.getenv("BILLTRACKER_SEED_DEFAULTS", "1").strip().lower() not in ("0", "false", "no", "off")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_save_path(save_name: str | None = None, saves_dir: Path | None = None) -> Path:
    """Path of the JSON snapshot for ``save_name`` (default from the environment)."""
    return (saves_dir or SAVES_DIR) / f"{save_name or SAVE_NAME}.json"


def configure_logging(level: str | None = None) -> logging.Logger:
    """Attach one stream handler to the package logger and set its level."""
    logger = logging.getLogger("billtracker")
    logger.setLevel(getattr(logging, (level or LOG_LEVEL).upper(), logging.WARNING))
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    logger.addHandler(handler)
    return logger
