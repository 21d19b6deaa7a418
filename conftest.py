"""
Root conftest to ensure proper import paths and shared fixtures.

This file exists at the project root so the project directory is on
sys.path before pytest starts collecting tests.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

project_root = Path(__file__).parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


@pytest.fixture
def mock_logger():
    """Mock structlog-style logger: bind() returns itself."""
    logger = MagicMock()
    logger.bind.return_value = logger
    return logger


@pytest.fixture(autouse=True)
def _reset_log_state():
    """Logging state is process-wide; keep tests from leaking it."""
    from fchat import _logging

    yield
    _logging.set_log_level("info")
    _logging.resume_logging()
    _logging.set_record_size(_logging.DEFAULT_LOG_RECORD_SIZE)
