"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List


REGION_ALL = "All"


class Region(str, Enum):
    """Structural zones of the cathedral that are monitored."""

    nave = "Nave"
    transept = "Transept"
    apse = "Apse"
    buttress = "Buttress"

    @classmethod
    def parse(cls, value: str) -> "Region":
        candidate = value.strip().lower()
        for member in cls:
            if member.value.lower() == candidate:
                return member
        raise ValueError(f"Unknown region {value!r}")


class RepairStatus(str, Enum):
    """Maintenance tag attached to every reading."""

    ok = "OK"
    needs_inspection = "Needs Inspection"
    critical = "Critical"

    @classmethod
    def parse(cls, value: str) -> "RepairStatus":
        candidate = value.replace(" ", "").replace("_", "").lower()
        for member in cls:
            if member.value.replace(" ", "").lower() == candidate:
                return member
        raise ValueError(f"Unknown repair status {value!r}")


@dataclass(frozen=True, slots=True)
class Reading:
    """A single synthetic structural reading for one region."""

    timestamp: datetime
    region: Region
    crack_sensitivity: float
    stress_score: float
    load_path_risk: float
    repair_status: RepairStatus


ReadingBatch = List[Reading]
