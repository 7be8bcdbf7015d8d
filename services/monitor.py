"""Coordinates generation, uploads, state and the filtered dashboard view."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Callable, List, Optional

from app.schemas import LoadStatus
from datastore.dashboard_state import (
    DashboardState,
    StateChange,
    StateSnapshot,
    build_default_state,
)
from models.records import REGION_ALL, Reading
from services.aggregator import (
    Aggregator,
    DashboardSummary,
    RegionFilter,
    filter_readings,
    resolve_region_filter,
    sort_for_display,
)
from services.generator import ReadingGenerator, build_default_generator
from services.loader import LoadedFile, ReadingLoader
from settings import get_settings
from storage.reading_file import ReadingFileStore, build_default_store

logger = logging.getLogger(__name__)

MIN_THRESHOLD = 0.5
MAX_THRESHOLD = 1.5


@dataclass
class DashboardView:
    region: str
    crack_threshold: float
    summary: DashboardSummary
    readings: List[Reading]
    snapshot: StateSnapshot


class MonitorService:
    """Re-evaluates the dashboard on each trigger (timer tick or user input)."""

    def __init__(
        self,
        generator: ReadingGenerator,
        store: ReadingFileStore,
        state: DashboardState,
        aggregator: Aggregator,
        loader: ReadingLoader,
        batch_size: int = 100,
        refresh_interval: timedelta = timedelta(seconds=5),
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.generator = generator
        self.store = store
        self.state = state
        self.aggregator = aggregator
        self.loader = loader
        self.batch_size = batch_size
        self.refresh_interval = refresh_interval
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._unsubscribe = state.subscribe(self._on_state_change)

    def refresh(self, now: Optional[datetime] = None) -> List[Reading]:
        """Simulate one telemetry poll by replacing the baseline batch."""
        moment = self._now(now)
        readings = self.generator.generate(self.batch_size, now=moment)
        self.state.replace_baseline(readings, generated_at=moment)
        logger.info("Refreshed baseline", extra={"reading_count": len(readings)})
        return readings

    def tick(self, now: Optional[datetime] = None) -> bool:
        """Timer trigger; refreshes only in live mode once the interval elapsed."""
        moment = self._now(now)
        snapshot = self.state.snapshot()
        if snapshot.generated_at is None:
            self.refresh(moment)
            return True
        if not snapshot.live:
            return False
        if moment - snapshot.generated_at < self.refresh_interval:
            return False
        self.refresh(moment)
        return True

    def load_upload(self, filename: str, contents: bytes) -> LoadedFile:
        """Parse an uploaded file; only usable readings ever reach the state."""
        if not contents:
            raise ValueError("Uploaded file is empty.")
        loaded = self.loader.load(filename, contents)
        if loaded.result.status is not LoadStatus.rejected:
            self.state.replace_historical(loaded.readings)
        return loaded

    def clear_uploads(self) -> None:
        self.state.clear_historical()

    def view(
        self,
        region_filter: RegionFilter = REGION_ALL,
        crack_threshold: float = MIN_THRESHOLD,
    ) -> DashboardView:
        if not MIN_THRESHOLD <= crack_threshold <= MAX_THRESHOLD:
            raise ValueError(
                f"Crack threshold must be between {MIN_THRESHOLD} and {MAX_THRESHOLD}."
            )
        region = resolve_region_filter(region_filter)
        region_name = region.value if region is not None else REGION_ALL

        snapshot = self.state.snapshot()
        filtered = filter_readings(snapshot.readings, region_name, crack_threshold)
        summary = self.aggregator.summarize(filtered)
        return DashboardView(
            region=region_name,
            crack_threshold=crack_threshold,
            summary=summary,
            readings=sort_for_display(filtered),
            snapshot=snapshot,
        )

    def close(self) -> None:
        self._unsubscribe()

    def _now(self, now: Optional[datetime]) -> datetime:
        moment = now or self._clock()
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return moment.astimezone(timezone.utc)

    def _on_state_change(self, change: StateChange, snapshot: StateSnapshot) -> None:
        if change is not StateChange.baseline:
            return
        try:
            self.store.write_batch(snapshot.baseline)
        except OSError:
            logger.exception(
                "Failed to mirror baseline to file",
                extra={"output_path": str(self.store.path)},
            )


@lru_cache
def build_default_monitor() -> MonitorService:
    """Factory that wires the monitor with settings-driven defaults."""
    settings = get_settings()
    return MonitorService(
        generator=build_default_generator(),
        store=build_default_store(),
        state=build_default_state(),
        aggregator=Aggregator(),
        loader=ReadingLoader(),
        batch_size=settings.batch_size,
        refresh_interval=timedelta(seconds=settings.refresh_seconds),
    )
