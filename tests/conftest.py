"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def setup_logging():
    """Route engine logs to stderr at DEBUG for the duration of a test."""
    from loguru import logger

    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG",
        format="<level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    )

    yield

    logger.remove()


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def now():
    """Fixed reference time: 2025-01-15 12:00 UTC."""
    return datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_payload():
    """Provide a valid dictation submission."""
    return {
        "patternId": "gonna-going-to",
        "exerciseType": "dictation",
        "isCorrect": True,
        "responseTimeMs": 1000,
        "userInput": "I'm gonna call you later",
        "sessionId": "session-001",
    }
