"""Logging setup for repoforge runs."""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

_installed_handlers: List[logging.Handler] = []


def log_file_path(log_dir: Path, now: Optional[datetime] = None) -> Path:
    """Per-run log file name, e.g. build_20250101_120000.log."""
    now = now or datetime.now()
    return Path(log_dir) / f"build_{now.strftime('%Y%m%d_%H%M%S')}.log"


def setup_logging(log_dir: Optional[Path] = None, verbose: bool = False) -> Optional[Path]:
    """Configure the root logger for a run.

    Handlers installed by a previous call are removed first.

    Args:
        log_dir: Directory for the per-run log file (None logs to the terminal only)
        verbose: Log at DEBUG instead of INFO

    Returns:
        Path of the log file, or None when no file is written
    """
    level = logging.DEBUG if verbose else logging.INFO

    logger = logging.getLogger()
    for handler in _installed_handlers:
        logger.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()

    logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)
    _installed_handlers.append(console_handler)

    if log_dir is None:
        return None

    log_file = log_file_path(log_dir)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)
    _installed_handlers.append(file_handler)

    return log_file
