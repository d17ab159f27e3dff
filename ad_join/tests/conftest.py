from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest


def pytest_configure() -> None:
    project_root = Path(__file__).resolve().parents[2]
    if str(project_root) not in sys.path:
        sys.path.insert(0, str(project_root))


@pytest.fixture
def fake_runner():
    """Return a runner for a headless host where every command succeeds."""

    from ad_join.tests._fakes import FakeRunner

    return FakeRunner()


@pytest.fixture(autouse=True)
def _reset_ad_join_logger():
    """Drop handlers installed by ``configure_logging`` after each test."""

    yield
    logger = logging.getLogger("ad_join")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
