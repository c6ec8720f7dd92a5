"""Pytest configuration — ensures the project root is importable."""

import os
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent))

from scan_extractor.config import ENV_PREFIX  # noqa: E402


@pytest.fixture(autouse=True)
def _isolated_settings_env(monkeypatch):
    """Keep SCAN_EXTRACTOR_* variables from the developer's shell or .env out of tests."""
    for name in list(os.environ):
        if name.startswith(ENV_PREFIX):
            monkeypatch.delenv(name)
    yield
