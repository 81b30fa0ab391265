"""Shared fixtures."""

from __future__ import annotations

import pytest

from eventemitter import EventEmitter
from eventemitter.logging_config import reset_logging


@pytest.fixture
def bus() -> EventEmitter[str]:
    return EventEmitter()


@pytest.fixture
def restore_logging():
    """Put stdlib logging and structlog back to defaults after a test."""
    yield
    reset_logging()
