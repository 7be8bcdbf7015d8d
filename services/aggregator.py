"""Filtering and aggregation logic for structural readings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Union

from models.records import REGION_ALL, Reading, Region, RepairStatus

STRESS_LIMIT = 0.8
CRACK_LIMIT = 1.2
LOAD_PATH_LIMIT = 0.9

RegionFilter = Union[Region, str]


def is_high_risk(reading: Reading) -> bool:
    """A reading is high-risk when any single risk threshold is exceeded."""
    return (
        reading.stress_score > STRESS_LIMIT
        or reading.crack_sensitivity > CRACK_LIMIT
        or reading.load_path_risk > LOAD_PATH_LIMIT
    )


def resolve_region_filter(region_filter: RegionFilter) -> Optional[Region]:
    """Map a filter value to a region, or ``None`` for "All"."""
    if isinstance(region_filter, Region):
        return region_filter
    if region_filter.strip().lower() == REGION_ALL.lower():
        return None
    return Region.parse(region_filter)


def filter_readings(
    readings: Iterable[Reading],
    region_filter: RegionFilter = REGION_ALL,
    crack_threshold: float = 0.5,
) -> List[Reading]:
    region = resolve_region_filter(region_filter)
    return [
        reading
        for reading in readings
        if (region is None or reading.region is region)
        and reading.crack_sensitivity >= crack_threshold
    ]


def sort_for_display(readings: Iterable[Reading]) -> List[Reading]:
    return sorted(readings, key=lambda reading: reading.timestamp, reverse=True)


@dataclass
class DashboardSummary:
    """Computed statistics for the filtered view of a batch."""

    reading_count: int = 0
    regions_monitored: int = 0
    high_risk_count: int = 0
    critical_count: int = 0
    alert: bool = False
    latest: Optional[Reading] = None
    mean_stress_score: float | None = None
    max_crack_sensitivity: float | None = None
    per_region_count: Dict[str, int] = field(default_factory=dict)


class Aggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def aggregate(
        self,
        readings: Iterable[Reading],
        region_filter: RegionFilter = REGION_ALL,
        crack_threshold: float = 0.5,
    ) -> DashboardSummary:
        filtered = filter_readings(readings, region_filter, crack_threshold)
        return self.summarize(filtered)

    def summarize(self, readings: Iterable[Reading]) -> DashboardSummary:
        """Summarize readings that have already been filtered."""
        summary = DashboardSummary()
        total_stress = 0.0

        for reading in readings:
            summary.reading_count += 1
            total_stress += reading.stress_score

            if is_high_risk(reading):
                summary.high_risk_count += 1
            if reading.repair_status is RepairStatus.critical:
                summary.critical_count += 1

            if (
                summary.max_crack_sensitivity is None
                or reading.crack_sensitivity > summary.max_crack_sensitivity
            ):
                summary.max_crack_sensitivity = reading.crack_sensitivity

            # Strict comparison keeps the earliest batch entry on timestamp ties.
            if summary.latest is None or reading.timestamp > summary.latest.timestamp:
                summary.latest = reading

            region_name = reading.region.value
            summary.per_region_count[region_name] = (
                summary.per_region_count.get(region_name, 0) + 1
            )

        summary.regions_monitored = len(summary.per_region_count)
        if summary.reading_count:
            summary.mean_stress_score = round(total_stress / summary.reading_count, 4)
        summary.alert = summary.latest is not None and is_high_risk(summary.latest)
        return summary
