"""Unit tests for synthetic reading generation."""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone

import pytest

from models.records import Region, RepairStatus
from services.generator import ReadingGenerator, build_default_generator

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("count", [0, 1, 4, 250])
def test_generate_returns_exact_count_within_ranges(count: int) -> None:
    generator = ReadingGenerator(rng=random.Random(42))

    readings = generator.generate(count, now=NOW)

    assert len(readings) == count
    for reading in readings:
        assert 0.5 <= reading.crack_sensitivity <= 1.5
        assert 0.0 <= reading.stress_score <= 1.0
        assert 0.0 <= reading.load_path_risk <= 1.0
        assert isinstance(reading.region, Region)
        assert isinstance(reading.repair_status, RepairStatus)
        assert round(reading.stress_score, 2) == reading.stress_score


def test_timestamps_step_back_ten_minutes_from_now() -> None:
    readings = ReadingGenerator(rng=random.Random(1)).generate(3, now=NOW)

    assert [reading.timestamp for reading in readings] == [
        NOW,
        NOW - timedelta(minutes=10),
        NOW - timedelta(minutes=20),
    ]


def test_naive_now_is_treated_as_utc() -> None:
    naive = datetime(2024, 6, 1, 12, 0)

    readings = ReadingGenerator(rng=random.Random(1)).generate(1, now=naive)

    assert readings[0].timestamp == NOW


def test_same_seed_reproduces_batch() -> None:
    first = ReadingGenerator(rng=random.Random(99)).generate(10, now=NOW)
    second = ReadingGenerator(rng=random.Random(99)).generate(10, now=NOW)

    assert first == second


def test_negative_count_is_rejected() -> None:
    with pytest.raises(ValueError):
        ReadingGenerator().generate(-1, now=NOW)


def test_default_generator_uses_configured_seed() -> None:
    generator = build_default_generator()
    expected = ReadingGenerator(rng=random.Random(7)).generate(5, now=NOW)

    assert generator.generate(5, now=NOW) == expected
