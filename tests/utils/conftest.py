# tests/utils/conftest.py
"""Pytest configuration for utils tests."""
from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest


def pytest_configure() -> None:
    # Ensure statwidgets package is importable when running tests from repo root.
    repo_root = Path(__file__).resolve().parents[2]
    src_dir = repo_root / "src"
    if src_dir.exists() and str(src_dir) not in sys.path:
        sys.path.insert(0, str(src_dir))


@pytest.fixture()
def clean_statwidgets_logger():
    """Restore handlers and level of the 'statwidgets' logger after the test."""
    logger = logging.getLogger("statwidgets")
    handlers = logger.handlers[:]
    level = logger.level
    yield logger
    for h in logger.handlers[:]:
        if h not in handlers:
            h.close()
            logger.removeHandler(h)
    for h in handlers:
        if h not in logger.handlers:
            logger.addHandler(h)
    logger.setLevel(level)
