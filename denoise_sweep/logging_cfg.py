"""Console and optional file logging for sweep runs."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%H:%M:%S"


def resolve_level(level: str | int | None, verbose: int = 0, quiet: bool = False) -> int:
    """Map a level name plus -v/-q counts to a logging level."""
    if quiet:
        return logging.WARNING
    if verbose >= 1:
        return logging.DEBUG
    if isinstance(level, int):
        return level
    if level:
        return getattr(logging, str(level).upper(), logging.INFO)
    return logging.INFO


def setup_logging(level: str | int = "INFO", log_dir: str | Path | None = None) -> Path | None:
    """Configure the root logger for console output and an optional log file.

    Returns the path to the log file if one is written, else None.
    """
    level_num = resolve_level(level)

    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    logging.basicConfig(level=level_num, format=LOG_FORMAT, datefmt=DATE_FORMAT)

    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = Path(log_dir) / f"denoise_sweep_{ts}.log"
        fh = logging.FileHandler(log_path)
        fh.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        logging.getLogger().addHandler(fh)
        return log_path
    return None
