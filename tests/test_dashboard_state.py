"""Unit tests for the observable dashboard state."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Tuple

from app.schemas import Theme
from datastore.dashboard_state import DashboardState, StateChange, StateSnapshot
from models.records import Reading, Region, RepairStatus

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _reading(region: Region = Region.nave) -> Reading:
    return Reading(
        timestamp=NOW,
        region=region,
        crack_sensitivity=1.0,
        stress_score=0.5,
        load_path_risk=0.5,
        repair_status=RepairStatus.ok,
    )


def test_readings_combine_historical_then_baseline() -> None:
    state = DashboardState()
    baseline = [_reading(Region.nave)]
    historical = [_reading(Region.apse)]

    state.replace_baseline(baseline, generated_at=NOW)
    state.replace_historical(historical)

    assert state.readings() == historical + baseline
    assert state.snapshot().generated_at == NOW


def test_subscribers_receive_change_and_snapshot() -> None:
    state = DashboardState()
    events: List[Tuple[StateChange, StateSnapshot]] = []
    state.subscribe(lambda change, snapshot: events.append((change, snapshot)))

    state.replace_baseline([_reading()], generated_at=NOW)
    state.toggle_theme()
    state.set_live(False)
    state.clear_historical()

    assert [change for change, _ in events] == [
        StateChange.baseline,
        StateChange.theme,
        StateChange.live,
        StateChange.historical,
    ]
    assert len(events[0][1].baseline) == 1
    assert events[1][1].theme is Theme.dark


def test_unsubscribe_stops_notifications() -> None:
    state = DashboardState()
    events: List[StateChange] = []
    unsubscribe = state.subscribe(lambda change, _snapshot: events.append(change))

    state.toggle_theme()
    unsubscribe()
    state.toggle_theme()

    assert events == [StateChange.theme]


def test_theme_toggle_alternates() -> None:
    state = DashboardState()

    assert state.toggle_theme() is Theme.dark
    assert state.toggle_theme() is Theme.light


def test_set_live_to_same_value_does_not_notify() -> None:
    state = DashboardState(live=True)
    events: List[StateChange] = []
    state.subscribe(lambda change, _snapshot: events.append(change))

    state.set_live(True)

    assert events == []


def test_snapshot_is_isolated_from_later_changes() -> None:
    state = DashboardState()
    state.replace_baseline([_reading()], generated_at=NOW)
    before = state.snapshot()

    state.replace_baseline([], generated_at=NOW)

    assert len(before.baseline) == 1
    assert state.snapshot().baseline == ()
