from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_READINGS_PATH_ENV = "CATHEDRAL_READINGS_PATH"
_BATCH_SIZE_ENV = "CATHEDRAL_BATCH_SIZE"
_REFRESH_SECONDS_ENV = "CATHEDRAL_REFRESH_SECONDS"
_RANDOM_SEED_ENV = "CATHEDRAL_RANDOM_SEED"
_DEFAULT_THRESHOLD_ENV = "CATHEDRAL_DEFAULT_THRESHOLD"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    readings_path: str
    batch_size: int
    refresh_seconds: float
    random_seed: Optional[int]
    default_threshold: float
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_batch_size(default: int) -> int:
    value = os.getenv(_BATCH_SIZE_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed >= 0 else default


def _read_refresh_seconds(default: float) -> float:
    value = os.getenv(_REFRESH_SECONDS_ENV)
    if value is None:
        return default
    try:
        parsed = float(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_seed() -> Optional[int]:
    value = os.getenv(_RANDOM_SEED_ENV)
    if value is None or not value.strip():
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def _read_threshold(default: float) -> float:
    value = os.getenv(_DEFAULT_THRESHOLD_ENV)
    if value is None:
        return default
    try:
        parsed = float(value.strip())
    except ValueError:
        return default
    return parsed if 0.5 <= parsed <= 1.5 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        readings_path=_read_str_env(_READINGS_PATH_ENV, "./data/readings.json"),
        batch_size=_read_batch_size(100),
        refresh_seconds=_read_refresh_seconds(5.0),
        random_seed=_read_seed(),
        default_threshold=_read_threshold(0.5),
        log_level=_read_log_level("INFO"),
    )
