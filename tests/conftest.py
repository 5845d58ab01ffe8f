"""Shared pytest fixtures for eventgate tests."""

import os
from collections.abc import Iterator
from pathlib import Path

import pytest

from eventgate.core.settings import get_cached_settings


@pytest.fixture
def isolated_settings(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> Iterator[Path]:
    """Run in an empty directory with no EVENTGATE_ variables or cached settings.

    Yields the working directory so tests can drop config files into it.
    """
    for name in [n for n in os.environ if n.startswith("EVENTGATE_")]:
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    get_cached_settings.cache_clear()
    yield tmp_path
    get_cached_settings.cache_clear()
