"""Session-aware loguru setup.

Every record carries the session id in ``extra["session"]`` so interleaved
console output and the per-session log file can be told apart.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

LOG_PREFIX = "tensor_showcase"
NO_SESSION = "-"

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<magenta>{extra[session]}</magenta> | <cyan>{name}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[session]} | {name}:{function}:{line} - {message}"


def session_log_path(log_dir: Path, session_id: Optional[str] = None) -> Path:
    """Log file for a session: ``tensor_showcase_<session_id>.log``."""
    if session_id:
        return Path(log_dir) / f"{LOG_PREFIX}_{session_id}.log"
    return Path(log_dir) / f"{LOG_PREFIX}.log"


def setup_logger(
    log_level: str = "INFO",
    log_to_file: bool = True,
    log_dir: Path = Path("logs"),
    session_id: Optional[str] = None,
    serialize: bool = False,
) -> Optional[Path]:
    """Replace loguru sinks with the showcase console and file sinks.

    Args:
        log_level: Minimum level for both sinks.
        log_to_file: Whether to add the per-session file sink.
        log_dir: Directory for the log file; created if missing.
        session_id: Bound to every record and used in the log filename.
        serialize: Write the file sink as JSON lines.

    Returns:
        Path of the session log file, or None when file logging is off.
    """
    logger.remove()
    logger.configure(extra={"session": session_id or NO_SESSION})

    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=log_level, colorize=True)

    if not log_to_file:
        return None

    path = session_log_path(log_dir, session_id)
    path.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        path,
        format=FILE_FORMAT,
        level=log_level,
        rotation="5 MB",
        retention=10,
        serialize=serialize,
    )
    return path
