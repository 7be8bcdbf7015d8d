from __future__ import annotations

import json
import logging

from app.schemas import LoadStatus
from models.records import Region, RepairStatus
from services.loader import ReadingLoader

_JSON_ROWS = [
    {
        "Timestamp": "2024-01-01T00:00:00Z",
        "Region": "Nave",
        "CrackSensitivity": 1.3,
        "StressScore": 0.4,
        "LoadPathRisk": 0.2,
        "RepairStatus": "Critical",
    },
    {
        "Timestamp": "2024-01-01 00:10:00",
        "Region": "Buttress",
        "CrackSensitivity": 0.7,
        "StressScore": 0.9,
        "LoadPathRisk": 0.5,
        "RepairStatus": "NeedsInspection",
    },
]


def _load(filename: str, body: str | bytes):
    data = body.encode("utf-8") if isinstance(body, str) else body
    return ReadingLoader().load(filename, data)


def test_load_json_array() -> None:
    loaded = _load("history.json", json.dumps(_JSON_ROWS))

    assert loaded.result.status is LoadStatus.loaded
    assert loaded.result.reading_count == 2
    assert loaded.result.errors == []
    assert loaded.readings[0].region is Region.nave
    assert loaded.readings[1].repair_status is RepairStatus.needs_inspection


def test_load_csv_with_same_headers() -> None:
    csv_body = (
        "Timestamp,Region,CrackSensitivity,StressScore,LoadPathRisk,RepairStatus\n"
        "2024-01-01T00:00:00Z,Apse,1.1,0.3,0.95,OK\n"
        "2024-01-01T00:10:00Z,Transept,0.9,0.1,0.1,Needs Inspection\n"
    )

    loaded = _load("history.CSV", csv_body)

    assert loaded.result.status is LoadStatus.loaded
    assert [reading.region for reading in loaded.readings] == [Region.apse, Region.transept]


def test_csv_headers_match_loosely() -> None:
    csv_body = (
        "timestamp,region,crack_sensitivity,stress score,load_path_risk,repair_status\n"
        "2024-01-01T00:00:00Z,nave,1.0,0.3,0.2,ok\n"
    )

    loaded = _load("history.csv", csv_body)

    assert loaded.result.status is LoadStatus.loaded
    assert loaded.readings[0].repair_status is RepairStatus.ok


def test_unrecognized_extension_is_rejected() -> None:
    loaded = _load("history.xlsx", b"\x00\x01")

    assert loaded.result.status is LoadStatus.rejected
    assert loaded.readings == []
    assert "Unsupported file type" in loaded.result.errors[0].reason


def test_malformed_json_is_rejected() -> None:
    loaded = _load("history.json", "[{not json")

    assert loaded.result.status is LoadStatus.rejected
    assert loaded.readings == []
    assert loaded.result.errors[0].reason.startswith("Invalid JSON")


def test_json_object_instead_of_array_is_rejected() -> None:
    loaded = _load("history.json", json.dumps(_JSON_ROWS[0]))

    assert loaded.result.status is LoadStatus.rejected
    assert "array" in loaded.result.errors[0].reason


def test_csv_missing_columns_is_rejected() -> None:
    loaded = _load("history.csv", "Timestamp,Region\n2024-01-01T00:00:00Z,Nave\n")

    assert loaded.result.status is LoadStatus.rejected
    assert "CSV missing required columns" in loaded.result.errors[0].reason


def test_row_errors_skip_rows_and_report_partial() -> None:
    csv_body = (
        "Timestamp,Region,CrackSensitivity,StressScore,LoadPathRisk,RepairStatus\n"
        "2024-01-01T00:00:00Z,Nave,1.0,0.3,0.2,OK\n"
        "not-a-time,Nave,1.0,0.3,0.2,OK\n"
        "2024-01-01T00:20:00Z,Crypt,1.0,0.3,0.2,OK\n"
        "2024-01-01T00:30:00Z,Apse,abc,0.3,0.2,OK\n"
        "2024-01-01T00:40:00Z,Apse,1.0,0.3,0.2,Collapsed\n"
        "2024-01-01T00:50:00Z,Apse,1.0,,0.2,OK\n"
    )

    loaded = _load("history.csv", csv_body)

    assert loaded.result.status is LoadStatus.partial
    assert loaded.result.reading_count == 1
    reasons = {error.row_number: error.reason for error in loaded.result.errors}
    assert reasons == {
        3: "invalid timestamp",
        4: "unknown region",
        5: "invalid numeric value for CrackSensitivity",
        6: "unknown repair status",
        7: "missing StressScore",
    }


def test_all_rows_invalid_is_rejected() -> None:
    loaded = _load("history.json", json.dumps([{"Region": "Nave"}, 5]))

    assert loaded.result.status is LoadStatus.rejected
    assert loaded.readings == []
    assert [error.row_number for error in loaded.result.errors] == [1, 2]


def test_empty_array_is_rejected_without_row_errors() -> None:
    loaded = _load("history.json", "[]")

    assert loaded.result.status is LoadStatus.rejected
    assert loaded.result.errors[0].reason == "file contains no readings"


def test_skipped_rows_are_logged(caplog) -> None:
    csv_body = (
        "Timestamp,Region,CrackSensitivity,StressScore,LoadPathRisk,RepairStatus\n"
        "2024-01-01T00:00:00Z,Nave,1.0,0.3,0.2,OK\n"
        "2024-01-01T00:10:00Z,Nave,1.0,high,0.2,OK\n"
    )

    with caplog.at_level(logging.WARNING, logger="services.loader"):
        _load("invalid.csv", csv_body)

    records = [record for record in caplog.records if record.name == "services.loader"]
    assert any("Skipping row" in record.getMessage() for record in records)
    assert any(getattr(record, "upload_name", None) == "invalid.csv" for record in records)
    assert any(getattr(record, "row_number", None) == 3 for record in records)


def test_non_finite_and_out_of_range_numbers_are_skipped() -> None:
    csv_body = (
        "Timestamp,Region,CrackSensitivity,StressScore,LoadPathRisk,RepairStatus\n"
        "2024-01-01T00:00:00Z,Apse,inf,0.3,0.2,Critical\n"
        "2024-01-01T00:10:00Z,Apse,1.0,nan,0.2,Critical\n"
        "2024-01-01T00:20:00Z,Apse,1.0,0.3,-5,Critical\n"
        "2024-01-01T00:30:00Z,Apse,1.6,0.3,0.2,Critical\n"
        "2024-01-01T00:40:00Z,Apse,1.5,1.0,0.0,Critical\n"
    )

    loaded = _load("history.csv", csv_body)

    assert loaded.result.status is LoadStatus.partial
    assert loaded.result.reading_count == 1
    assert loaded.readings[0].crack_sensitivity == 1.5
    reasons = {error.row_number: error.reason for error in loaded.result.errors}
    assert reasons == {
        2: "invalid numeric value for CrackSensitivity",
        3: "invalid numeric value for StressScore",
        4: "LoadPathRisk out of range [0.0, 1.0]",
        5: "CrackSensitivity out of range [0.5, 1.5]",
    }


def test_json_non_finite_only_upload_is_rejected() -> None:
    body = json.dumps([dict(_JSON_ROWS[0], StressScore=float("nan"))])

    loaded = _load("history.json", body)

    assert loaded.result.status is LoadStatus.rejected
    assert loaded.readings == []
