"""Pytest configuration and fixtures."""

import tempfile
from pathlib import Path

import pytest

from fixtures.fake_canvas import FakeCanvas


@pytest.fixture
def temp_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def canvas():
    return FakeCanvas()
