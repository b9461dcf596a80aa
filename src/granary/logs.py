from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}"
DEFAULT_ROTATION = "1 day"
DEFAULT_RETENTION = "30 days"


def configure_logging(level: str = "INFO", *, log_file: str | Path | None = None) -> None:
    """Route loguru output to stderr and, optionally, a rotating file.

    Replaces any sinks installed earlier so adapters can call this once at startup.
    """
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT)
    if log_file is not None:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            sink=str(log_file),
            rotation=DEFAULT_ROTATION,
            retention=DEFAULT_RETENTION,
            level=level.upper(),
            format=LOG_FORMAT,
            enqueue=True,
        )
