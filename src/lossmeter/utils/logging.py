"""Logging helpers."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
LOG_FILENAME = "metrics.log"


def configure_logging(log_dir: Union[str, Path], level: Union[int, str] = logging.INFO) -> Path:
    """Send records to stderr and to ``<log_dir>/metrics.log``; return the log file path."""

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    log_file = log_path / LOG_FILENAME
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level '{level}'")
        level = resolved
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_file),
        ],
        force=True,
    )
    return log_file


__all__ = ["configure_logging", "LOG_FORMAT"]
