# tests/memento_test/test_app.py
# Pytest for the host facade: settings apply order, clock restarts, milestone delivery, goals, status view

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List

import pytest

from memento.app import MementoApp
from memento.errors import InvalidParameter, StorageError, ValidationError
from memento.events import MilestoneEvent
from memento.model import DisplayUnit, TimeRemaining
from memento.store import MemoryAdapter


def _dt(*a) -> datetime:
    return datetime(*a, tzinfo=timezone.utc)


class FakeNow:
    def __init__(self, t: datetime) -> None:
        self.t = t

    def __call__(self) -> datetime:
        return self.t

    def advance(self, **kw) -> None:
        self.t = self.t + timedelta(**kw)


@pytest.fixture()
def now() -> FakeNow:
    return FakeNow(_dt(2024, 6, 15))


@pytest.fixture()
def adapter() -> MemoryAdapter:
    return MemoryAdapter()


@pytest.fixture()
def notes() -> List[MilestoneEvent]:
    return []


@pytest.fixture()
def events() -> list:
    return []


@pytest.fixture()
def app(adapter, now, notes, events) -> MementoApp:
    a = MementoApp(adapter, now=now, threaded=False, notification_sink=notes.append, event_sink=events.append)
    a.set_birthdate(_dt(1990, 6, 15))
    return a


def test_first_run_uses_defaults(adapter, now):
    a = MementoApp(adapter, now=now, threaded=False)
    assert a.settings.birthdate == _dt(1994, 6, 15)
    assert a.settings.life_expectancy_years == 80
    assert a.settings.display_unit is DisplayUnit.YEARS


def test_settings_are_persisted_and_reloaded(app, adapter, now):
    app.set_life_expectancy(90)
    app.set_display_unit("hours")
    again = MementoApp(adapter, now=now, threaded=False)
    assert again.settings == app.settings
    assert again.settings.life_expectancy_years == 90


def test_start_fires_crossed_milestones_before_subscribers(app, notes):
    seen = []

    def sub(snap: TimeRemaining) -> None:
        seen.append((snap.percentage_complete, len(notes)))

    app.subscribe(sub)
    app.start()
    assert [n.milestone_id for n in notes] == ["quarter", "third"]
    assert seen[0][0] == pytest.approx(42.5, abs=0.01)
    assert seen[0][1] == 2


def test_lower_expectancy_restarts_clock_and_fires_new_milestones(app, notes):
    app.start()
    app.set_life_expectancy(40, enforce_form_bounds=False)
    assert app.clock.running
    assert app.clock.params.life_expectancy_years == 40
    assert [n.milestone_id for n in notes] == ["quarter", "third", "half", "two-thirds", "three-quarters"]

    # raising it again never re-fires latched milestones
    app.set_life_expectancy(120)
    app.set_life_expectancy(40, enforce_form_bounds=False)
    assert len(notes) == 5


def test_form_bounds_reject_without_side_effects(app, adapter):
    app.start()
    stored = adapter.get("life-settings")
    with pytest.raises(ValidationError):
        app.set_life_expectancy(49)
    with pytest.raises(ValidationError):
        app.set_birthdate(_dt(2030, 1, 1))
    assert app.settings.life_expectancy_years == 80
    assert app.clock.params.life_expectancy_years == 80
    assert adapter.get("life-settings") == stored


def test_engine_rejects_non_positive_expectancy_even_without_form_bounds(app):
    app.start()
    with pytest.raises(InvalidParameter):
        app.set_life_expectancy(0, enforce_form_bounds=False)
    assert app.clock.running and app.clock.params.life_expectancy_years == 80


def test_storage_failure_leaves_settings_and_clock_untouched(app, adapter):
    app.start()
    adapter.fail_writes = True
    with pytest.raises(StorageError):
        app.set_life_expectancy(90)
    assert app.settings.life_expectancy_years == 80
    assert app.clock.params.life_expectancy_years == 80


def test_display_unit_change_does_not_restart_clock(app, events):
    app.start()
    ticks = app.clock.health()["ticks"]
    app.set_display_unit(DisplayUnit.DAYS)
    assert app.clock.health()["ticks"] == ticks
    assert app.status()["display"].endswith(" days")
    assert any(e["kind"] == "SettingsSaved" and e["extra"]["display_unit"] == "days" for e in events)


def test_stop_and_clock_ticks_follow_fake_time(app, now):
    got: List[TimeRemaining] = []
    app.subscribe(got.append)
    app.start()
    now.advance(minutes=1)
    app.clock.tick()
    assert got[0].total_milliseconds_remaining - got[1].total_milliseconds_remaining == 60_000
    app.stop()
    assert app.clock.tick() is None


def test_goals_through_the_facade(app, now):
    g = app.add_goal("Climb Kilimanjaro", "", "2029-06-15")
    assert g.created_at == now()
    progress = app.goal_progress()
    assert progress[g.id].days_remaining == 1826
    assert 0 < progress[g.id].percentage_complete < 100
    assert app.remove_goal(g.id) is True
    assert app.remove_goal(g.id) is False
    assert app.goal_progress() == {}


def test_status_view(app):
    st = app.status(_dt(2024, 6, 15))
    assert set(st) == {"now", "settings", "remaining", "display", "weekly", "monthly", "calendar"}
    assert st["display"] == "45y 11m 29d"
    assert st["settings"] == {
        "birthdate": "1990-06-15T00:00:00+00:00",
        "life_expectancy_years": 80,
        "display_unit": "years",
    }
    assert st["remaining"]["percentage_complete"] == pytest.approx(42.5, abs=0.01)
    assert "computed_at" not in st["remaining"]
    assert st["calendar"]["total"] == 320
