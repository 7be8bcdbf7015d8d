"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from models.records import Reading, Region, RepairStatus
from services.aggregator import DashboardSummary
from storage.reading_file import format_timestamp


class LoadStatus(str, Enum):
    """Outcome of parsing an uploaded historical file."""

    loaded = "loaded"
    partial = "partial"
    rejected = "rejected"


class Theme(str, Enum):
    light = "light"
    dark = "dark"


class LoadError(BaseModel):
    """Details about a row (or the whole file) that could not be used."""

    row_number: int = Field(..., ge=1)
    reason: str


class LoadResult(BaseModel):
    """Parsed readings and problems found in an uploaded file."""

    filename: str
    status: LoadStatus
    reading_count: int = Field(0, ge=0)
    errors: List[LoadError] = Field(default_factory=list)


class ReadingOut(BaseModel):
    """Wire representation of a reading, keyed like the JSON file format."""

    model_config = ConfigDict(populate_by_name=True)

    timestamp: datetime = Field(..., alias="Timestamp")
    region: Region = Field(..., alias="Region")
    crack_sensitivity: float = Field(..., alias="CrackSensitivity")
    stress_score: float = Field(..., alias="StressScore")
    load_path_risk: float = Field(..., alias="LoadPathRisk")
    repair_status: RepairStatus = Field(..., alias="RepairStatus")

    @field_serializer("timestamp")
    def serialize_timestamp(self, value: datetime) -> str:
        return format_timestamp(value)

    @classmethod
    def from_reading(cls, reading: Reading) -> "ReadingOut":
        return cls(
            timestamp=reading.timestamp,
            region=reading.region,
            crack_sensitivity=reading.crack_sensitivity,
            stress_score=reading.stress_score,
            load_path_risk=reading.load_path_risk,
            repair_status=reading.repair_status,
        )


class SummaryOut(BaseModel):
    """Aggregate metrics for the filtered readings."""

    region: str
    crack_threshold: float
    reading_count: int = Field(..., ge=0)
    regions_monitored: int = Field(..., ge=0)
    high_risk_count: int = Field(..., ge=0)
    critical_count: int = Field(..., ge=0)
    alert: bool
    latest: Optional[ReadingOut] = None
    mean_stress_score: Optional[float] = None
    max_crack_sensitivity: Optional[float] = None
    per_region_count: Dict[str, int] = Field(default_factory=dict)
    generated_at: Optional[datetime] = None

    @classmethod
    def from_summary(
        cls,
        summary: DashboardSummary,
        region: str,
        crack_threshold: float,
        generated_at: Optional[datetime] = None,
    ) -> "SummaryOut":
        return cls(
            region=region,
            crack_threshold=crack_threshold,
            reading_count=summary.reading_count,
            regions_monitored=summary.regions_monitored,
            high_risk_count=summary.high_risk_count,
            critical_count=summary.critical_count,
            alert=summary.alert,
            latest=ReadingOut.from_reading(summary.latest) if summary.latest else None,
            mean_stress_score=summary.mean_stress_score,
            max_crack_sensitivity=summary.max_crack_sensitivity,
            per_region_count=dict(summary.per_region_count),
            generated_at=generated_at,
        )


class LiveModeRequest(BaseModel):
    enabled: bool


class StateOut(BaseModel):
    """Dashboard toggles plus batch sizes."""

    theme: Theme
    live: bool
    baseline_count: int = Field(..., ge=0)
    historical_count: int = Field(..., ge=0)
    generated_at: Optional[datetime] = None
