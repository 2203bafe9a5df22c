"""Utility functions and helpers."""

from .logging import session_log_path, setup_logger
from .time_utils import as_utc, ensure_utc, file_timestamp, iso_timestamp, utc_now

__all__ = [
    "session_log_path",
    "setup_logger",
    "as_utc",
    "ensure_utc",
    "file_timestamp",
    "iso_timestamp",
    "utc_now",
]
