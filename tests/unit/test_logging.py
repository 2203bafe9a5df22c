"""Test session-aware logger setup."""

import json
import sys
from pathlib import Path

import pytest
from loguru import logger

from tensor_showcase.utils import session_log_path, setup_logger


@pytest.fixture(autouse=True)
def restore_logger():
    yield
    logger.remove()
    logger.configure(extra={})
    logger.add(sys.stderr)


def test_session_log_file(tmp_path: Path):
    """Test the log file is named after the session and records carry its id."""
    log_dir = tmp_path / "logs"
    path = setup_logger(log_level="DEBUG", log_dir=log_dir, session_id="ab12cd34")

    logger.info("demo finished")
    logger.remove()

    assert path == log_dir / "tensor_showcase_ab12cd34.log"
    contents = path.read_text()
    assert "demo finished" in contents
    assert "| ab12cd34 |" in contents


def test_serialized_log_file(tmp_path: Path):
    """Test JSON-lines output binds the session id."""
    path = setup_logger(log_dir=tmp_path, session_id="feed0001", serialize=True)

    logger.warning("memory high")
    logger.remove()

    record = json.loads(path.read_text().splitlines()[0])["record"]
    assert record["message"] == "memory high"
    assert record["extra"]["session"] == "feed0001"


def test_no_file_sink(tmp_path: Path):
    """Test file logging can be turned off."""
    assert setup_logger(log_to_file=False, log_dir=tmp_path, session_id="x") is None
    assert list(tmp_path.iterdir()) == []


def test_session_log_path_without_id(tmp_path: Path):
    """Test the fallback filename when no session id is given."""
    assert session_log_path(tmp_path) == tmp_path / "tensor_showcase.log"
