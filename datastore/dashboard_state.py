from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from functools import lru_cache
from threading import Lock
from typing import Callable, List, Optional, Tuple

from app.schemas import Theme
from models.records import Reading, ReadingBatch

logger = logging.getLogger(__name__)


class StateChange(str, Enum):
    baseline = "baseline"
    historical = "historical"
    theme = "theme"
    live = "live"


@dataclass(frozen=True)
class StateSnapshot:
    """Point-in-time copy of everything the dashboard renders from."""

    baseline: Tuple[Reading, ...]
    historical: Tuple[Reading, ...]
    theme: Theme
    live: bool
    generated_at: Optional[datetime]

    @property
    def readings(self) -> ReadingBatch:
        return [*self.historical, *self.baseline]


Subscriber = Callable[[StateChange, StateSnapshot], None]


class DashboardState:
    """Owns the current batches and UI toggles and notifies subscribers."""

    def __init__(self, theme: Theme = Theme.light, live: bool = True) -> None:
        self._baseline: Tuple[Reading, ...] = ()
        self._historical: Tuple[Reading, ...] = ()
        self._theme = theme
        self._live = live
        self._generated_at: Optional[datetime] = None
        self._subscribers: List[Subscriber] = []
        self._lock = Lock()

    def snapshot(self) -> StateSnapshot:
        with self._lock:
            return self._snapshot()

    def readings(self) -> ReadingBatch:
        return self.snapshot().readings

    def replace_baseline(self, readings: ReadingBatch, generated_at: datetime) -> None:
        with self._lock:
            self._baseline = tuple(readings)
            self._generated_at = generated_at
        self._notify(StateChange.baseline)

    def replace_historical(self, readings: ReadingBatch) -> None:
        with self._lock:
            self._historical = tuple(readings)
        self._notify(StateChange.historical)

    def clear_historical(self) -> None:
        self.replace_historical([])

    def toggle_theme(self) -> Theme:
        with self._lock:
            self._theme = Theme.dark if self._theme is Theme.light else Theme.light
            theme = self._theme
        self._notify(StateChange.theme)
        return theme

    def set_live(self, enabled: bool) -> None:
        with self._lock:
            changed = self._live != enabled
            self._live = enabled
        if changed:
            self._notify(StateChange.live)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback`` and return a function that removes it."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _snapshot(self) -> StateSnapshot:
        return StateSnapshot(
            baseline=self._baseline,
            historical=self._historical,
            theme=self._theme,
            live=self._live,
            generated_at=self._generated_at,
        )

    def _notify(self, change: StateChange) -> None:
        with self._lock:
            snapshot = self._snapshot()
            subscribers = list(self._subscribers)
        logger.debug("State changed", extra={"event": change.value})
        for callback in subscribers:
            callback(change, snapshot)


@lru_cache
def build_default_state() -> DashboardState:
    return DashboardState()
