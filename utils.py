# utils.py
"""
Utility functions for the CloudLink client.
Provides logging configuration and UTC timestamp helpers.
"""

import logging
import sys
from datetime import datetime, timedelta, timezone


def setup_logging(level: int = logging.INFO, log_file: str = "cloudlink.log") -> None:
    """
    Configure logging for console and file output.

    Args:
        level: Logging level (default: INFO).
        log_file: Path of the log file handler.
    """
    root = logging.getLogger()

    if root.handlers:
        return

    root.setLevel(level)

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)


def format_utc(moment: datetime) -> str:
    """
    Format a datetime as a UTC ISO-8601 string with offset, second precision.

    Naive datetimes are taken to be UTC already.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).replace(microsecond=0).isoformat()


def utc_seconds_ago(seconds: float) -> str:
    """Formatted UTC timestamp `seconds` before now."""
    return format_utc(datetime.now(timezone.utc) - timedelta(seconds=seconds))
