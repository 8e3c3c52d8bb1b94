"""Shared pytest configuration for the notification client tests."""

import sys
from pathlib import Path

import pytest

TESTS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = TESTS_DIR.parent
for path in (PROJECT_ROOT, TESTS_DIR):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))


@pytest.fixture
def anyio_backend():
    """Coroutine tests run on asyncio; the client schedules work on its loop."""

    return "asyncio"
