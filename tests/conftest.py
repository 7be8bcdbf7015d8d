from __future__ import annotations

from typing import Iterator

import pytest

from datastore.dashboard_state import build_default_state
from services.generator import build_default_generator
from services.monitor import build_default_monitor
from settings import get_settings
from storage.reading_file import build_default_store

_CACHES = (
    get_settings,
    build_default_store,
    build_default_generator,
    build_default_state,
    build_default_monitor,
)


def _clear_caches() -> None:
    for cache in _CACHES:
        cache.cache_clear()


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch) -> Iterator[None]:
    """Point every default factory at a temporary readings file."""
    monkeypatch.setenv("CATHEDRAL_READINGS_PATH", str(tmp_path / "data" / "readings.json"))
    monkeypatch.setenv("CATHEDRAL_BATCH_SIZE", "20")
    monkeypatch.setenv("CATHEDRAL_RANDOM_SEED", "7")
    _clear_caches()
    yield
    _clear_caches()
