from __future__ import annotations

from pathlib import Path

from services.generator import build_default_generator
from services.monitor import build_default_monitor
from settings import get_settings
from storage.reading_file import build_default_store


def _clear_caches() -> None:
    for cache in (get_settings, build_default_store, build_default_generator, build_default_monitor):
        cache.cache_clear()


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    output = tmp_path / "custom" / "batch.json"
    monkeypatch.setenv("CATHEDRAL_READINGS_PATH", str(output))
    monkeypatch.setenv("CATHEDRAL_BATCH_SIZE", "12")
    monkeypatch.setenv("CATHEDRAL_REFRESH_SECONDS", "2.5")
    monkeypatch.setenv("CATHEDRAL_DEFAULT_THRESHOLD", "1.1")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    _clear_caches()

    settings = get_settings()
    monitor = build_default_monitor()

    assert settings.default_threshold == 1.1
    assert settings.log_level == "DEBUG"
    assert monitor.batch_size == 12
    assert monitor.refresh_interval.total_seconds() == 2.5
    assert build_default_store().path == Path(output)


def test_malformed_values_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("CATHEDRAL_BATCH_SIZE", "many")
    monkeypatch.setenv("CATHEDRAL_REFRESH_SECONDS", "-3")
    monkeypatch.setenv("CATHEDRAL_RANDOM_SEED", "abc")
    monkeypatch.setenv("CATHEDRAL_DEFAULT_THRESHOLD", "9")
    monkeypatch.delenv("CATHEDRAL_READINGS_PATH")
    _clear_caches()

    settings = get_settings()

    assert settings.batch_size == 100
    assert settings.refresh_seconds == 5.0
    assert settings.random_seed is None
    assert settings.default_threshold == 0.5
    assert settings.readings_path == "./data/readings.json"
