"""Shared fixtures for gfsprune tests."""

import os
from datetime import datetime
from pathlib import Path

import pytest
from loguru import logger

from gfsprune.config import reset_settings

# Monday of ISO week 10, 2024
NOW = datetime(2024, 3, 4, 12, 0)


@pytest.fixture
def now():
    """Fixed reference instant for classification."""
    return NOW


@pytest.fixture
def caplog(caplog):
    """Route loguru records into pytest's caplog."""
    handler_id = logger.add(caplog.handler, format="{message}", level=0)
    yield caplog
    try:
        logger.remove(handler_id)
    except ValueError:
        # Already removed by a test that reconfigured loguru
        pass


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Isolate tests from GFSPRUNE_* variables and cached settings."""
    for name in list(os.environ):
        if name.startswith("GFSPRUNE_"):
            monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def make_backup():
    """Factory creating a file with a given size and modification time."""

    def _make(directory: Path, name: str, modified: datetime, size: int = 16) -> Path:
        path = directory / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"x" * size)
        ts = modified.timestamp()
        os.utime(path, (ts, ts))
        return path

    return _make
