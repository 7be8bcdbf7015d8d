"""Parsing of uploaded historical reading files (JSON or CSV)."""

from __future__ import annotations

import csv
import io
import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Any, Dict, Iterable, List, Tuple

from app.schemas import LoadError, LoadResult, LoadStatus
from models.records import Reading, ReadingBatch, Region, RepairStatus
from services.generator import (
    CRACK_SENSITIVITY_RANGE,
    LOAD_PATH_RISK_RANGE,
    STRESS_SCORE_RANGE,
)
from storage.reading_file import (
    FIELD_CRACK_SENSITIVITY,
    FIELD_LOAD_PATH_RISK,
    FIELD_REGION,
    FIELD_REPAIR_STATUS,
    FIELD_STRESS_SCORE,
    FIELD_TIMESTAMP,
    RECORD_FIELDS,
    parse_timestamp,
)

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".json", ".csv")

_NUMERIC_RANGES = {
    FIELD_CRACK_SENSITIVITY: CRACK_SENSITIVITY_RANGE,
    FIELD_STRESS_SCORE: STRESS_SCORE_RANGE,
    FIELD_LOAD_PATH_RISK: LOAD_PATH_RISK_RANGE,
}


class FileFormatError(ValueError):
    """Raised internally when a whole file is unusable."""


class RowError(ValueError):
    """Raised internally when a single row cannot become a reading."""


@dataclass
class LoadedFile:
    result: LoadResult
    readings: ReadingBatch = field(default_factory=list)


def _normalize_header(name: str) -> str:
    return name.replace("_", "").replace(" ", "").strip().lower()


_CANONICAL = {_normalize_header(name): name for name in RECORD_FIELDS}


class ReadingLoader:
    """Turns uploaded bytes into readings without ever raising on bad content."""

    def load(self, filename: str, contents: bytes) -> LoadedFile:
        name = PurePath(filename or "upload").name
        errors: List[LoadError] = []
        readings: ReadingBatch = []

        try:
            rows = self._read_rows(name, contents)
            for row_number, row in rows:
                try:
                    reading = self._parse_row(row)
                except RowError as exc:
                    reason = str(exc)
                    logger.warning(
                        "Skipping row %s: %s",
                        row_number,
                        reason,
                        extra={
                            "upload_name": name,
                            "row_number": row_number,
                            "reason": reason,
                        },
                    )
                    errors.append(LoadError(row_number=row_number, reason=reason))
                    continue
                readings.append(reading)
        except FileFormatError as exc:
            logger.warning(
                "Rejected upload",
                extra={"upload_name": name, "reason": str(exc)},
            )
            errors = [LoadError(row_number=1, reason=str(exc))]
            readings = []

        if not readings:
            status = LoadStatus.rejected
            if not errors:
                errors.append(LoadError(row_number=1, reason="file contains no readings"))
        elif errors:
            status = LoadStatus.partial
        else:
            status = LoadStatus.loaded

        result = LoadResult(
            filename=name,
            status=status,
            reading_count=len(readings),
            errors=errors,
        )
        logger.info(
            "Parsed upload",
            extra={
                "upload_name": name,
                "status": status.value,
                "reading_count": len(readings),
                "error_count": len(errors),
            },
        )
        return LoadedFile(result=result, readings=readings)

    def _read_rows(
        self, name: str, contents: bytes
    ) -> List[Tuple[int, Dict[str, Any]]]:
        extension = PurePath(name).suffix.lower()
        if extension not in SUPPORTED_EXTENSIONS:
            raise FileFormatError(
                f"Unsupported file type {extension or '(none)'!r}; expected .json or .csv"
            )

        try:
            text = contents.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise FileFormatError("File is not valid UTF-8 text.") from exc

        if extension == ".json":
            return self._read_json(text)
        return self._read_csv(text)

    def _read_json(self, text: str) -> List[Tuple[int, Dict[str, Any]]]:
        try:
            document = json.loads(text)
        except json.JSONDecodeError as exc:
            raise FileFormatError(f"Invalid JSON: {exc.msg}") from exc

        if not isinstance(document, list):
            raise FileFormatError("JSON document must be an array of readings.")

        rows: List[Tuple[int, Dict[str, Any]]] = []
        for index, item in enumerate(document, start=1):
            if not isinstance(item, dict):
                rows.append((index, {}))
                continue
            rows.append((index, self._canonicalize(item.items())))
        return rows

    def _read_csv(self, text: str) -> List[Tuple[int, Dict[str, Any]]]:
        reader = csv.DictReader(io.StringIO(text))
        if not reader.fieldnames:
            raise FileFormatError("CSV file is missing a header row.")

        present = {_normalize_header(name) for name in reader.fieldnames if name}
        missing = [name for key, name in _CANONICAL.items() if key not in present]
        if missing:
            raise FileFormatError(f"CSV missing required columns: {', '.join(missing)}")

        return [
            (row_number, self._canonicalize(row.items()))
            for row_number, row in enumerate(reader, start=2)
        ]

    @staticmethod
    def _canonicalize(items: Iterable[Tuple[Any, Any]]) -> Dict[str, Any]:
        canonical: Dict[str, Any] = {}
        for key, value in items:
            if not isinstance(key, str):
                continue
            target = _CANONICAL.get(_normalize_header(key))
            if target is not None:
                canonical[target] = value
        return canonical

    @staticmethod
    def _parse_row(row: Dict[str, Any]) -> Reading:
        values: Dict[str, str] = {}
        for name in RECORD_FIELDS:
            raw = row.get(name)
            text = "" if raw is None else str(raw).strip()
            if not text:
                raise RowError(f"missing {name}")
            values[name] = text

        try:
            timestamp = parse_timestamp(values[FIELD_TIMESTAMP])
        except ValueError as exc:
            raise RowError("invalid timestamp") from exc

        try:
            region = Region.parse(values[FIELD_REGION])
        except ValueError as exc:
            raise RowError("unknown region") from exc

        try:
            repair_status = RepairStatus.parse(values[FIELD_REPAIR_STATUS])
        except ValueError as exc:
            raise RowError("unknown repair status") from exc

        numbers: Dict[str, float] = {}
        for name, (low, high) in _NUMERIC_RANGES.items():
            try:
                number = float(values[name])
            except ValueError as exc:
                raise RowError(f"invalid numeric value for {name}") from exc
            if not math.isfinite(number):
                raise RowError(f"invalid numeric value for {name}")
            if not low <= number <= high:
                raise RowError(f"{name} out of range [{low}, {high}]")
            numbers[name] = number

        return Reading(
            timestamp=timestamp,
            region=region,
            crack_sensitivity=numbers[FIELD_CRACK_SENSITIVITY],
            stress_score=numbers[FIELD_STRESS_SCORE],
            load_path_risk=numbers[FIELD_LOAD_PATH_RISK],
            repair_status=repair_status,
        )
