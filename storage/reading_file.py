from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Iterable, List, Optional

from models.records import Reading, ReadingBatch, Region, RepairStatus
from settings import get_settings

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

FIELD_TIMESTAMP = "Timestamp"
FIELD_REGION = "Region"
FIELD_CRACK_SENSITIVITY = "CrackSensitivity"
FIELD_STRESS_SCORE = "StressScore"
FIELD_LOAD_PATH_RISK = "LoadPathRisk"
FIELD_REPAIR_STATUS = "RepairStatus"

RECORD_FIELDS = (
    FIELD_TIMESTAMP,
    FIELD_REGION,
    FIELD_CRACK_SENSITIVITY,
    FIELD_STRESS_SCORE,
    FIELD_LOAD_PATH_RISK,
    FIELD_REPAIR_STATUS,
)


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    candidate = value.strip()
    if not candidate:
        raise ValueError("Timestamp is empty.")

    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise ValueError("Invalid timestamp format") from exc

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed.astimezone(timezone.utc)


def reading_to_record(reading: Reading) -> Dict[str, Any]:
    return {
        FIELD_TIMESTAMP: format_timestamp(reading.timestamp),
        FIELD_REGION: reading.region.value,
        FIELD_CRACK_SENSITIVITY: reading.crack_sensitivity,
        FIELD_STRESS_SCORE: reading.stress_score,
        FIELD_LOAD_PATH_RISK: reading.load_path_risk,
        FIELD_REPAIR_STATUS: reading.repair_status.value,
    }


def record_to_reading(record: Dict[str, Any]) -> Reading:
    """Build a reading from a well-formed record; raises on bad values."""
    return Reading(
        timestamp=parse_timestamp(str(record[FIELD_TIMESTAMP])),
        region=Region.parse(str(record[FIELD_REGION])),
        crack_sensitivity=float(record[FIELD_CRACK_SENSITIVITY]),
        stress_score=float(record[FIELD_STRESS_SCORE]),
        load_path_risk=float(record[FIELD_LOAD_PATH_RISK]),
        repair_status=RepairStatus.parse(str(record[FIELD_REPAIR_STATUS])),
    )


def dump_readings(readings: Iterable[Reading]) -> str:
    return json.dumps([reading_to_record(reading) for reading in readings], indent=2)


class ReadingFileStore:
    """JSON file holding the most recently generated batch."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = Lock()

    def exists(self) -> bool:
        return self.path.is_file()

    def write_batch(self, readings: Iterable[Reading]) -> None:
        payload = dump_readings(readings)
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(payload, encoding="utf-8")
        logger.info("Wrote reading batch", extra={"output_path": str(self.path)})

    def read_batch(self) -> ReadingBatch:
        with self._lock:
            if not self.path.exists():
                raise KeyError(f"Reading file {str(self.path)!r} not found.")
            raw = self.path.read_text(encoding="utf-8") or "[]"
        records: List[Dict[str, Any]] = json.loads(raw)
        return [record_to_reading(record) for record in records]


@lru_cache
def build_default_store(path: Optional[str] = None) -> ReadingFileStore:
    settings = get_settings()
    target = settings.readings_path if path is None else path
    return ReadingFileStore(path=Path(target))
