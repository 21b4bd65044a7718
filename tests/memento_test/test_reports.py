# tests/memento_test/test_reports.py
# Pytest for derived views: countdown text per unit, weekly/monthly stats, quarter calendar

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from memento.clock import compute_snapshot
from memento.model import DisplayUnit, LifeParameters, TimeRemaining
from memento.reports import display_value, life_calendar, monthly_stats, remaining_days, weekly_stats


def _dt(*a) -> datetime:
    return datetime(*a, tzinfo=timezone.utc)


FORTY_SIX = TimeRemaining(years=46)


def test_remaining_days_from_calendar_units():
    assert remaining_days(FORTY_SIX) == pytest.approx(16_801.5)
    assert remaining_days(TimeRemaining(months=2, days=3, hours=23)) == pytest.approx(63.874)


@pytest.mark.parametrize(
    "unit, expected",
    [
        (DisplayUnit.YEARS, "46y 00m 00d"),
        ("days", "16,801 days"),
        ("hours", "403,236 hours"),
        ("MINUTES", "24,194,160 minutes"),
    ],
)
def test_display_value_per_unit(unit, expected):
    assert display_value(FORTY_SIX, unit) == expected


def test_display_value_rejects_unknown_unit():
    with pytest.raises(ValueError):
        display_value(FORTY_SIX, "fortnights")


def test_display_for_live_snapshot():
    snap = compute_snapshot(LifeParameters(_dt(1990, 6, 15), 80), _dt(2024, 6, 15))
    assert display_value(snap) == "45y 11m 29d"


def test_weekly_and_monthly_stats():
    wk = weekly_stats(FORTY_SIX, 80)
    assert (wk.lived, wk.remaining, wk.total) == (1771, 2400, 4171)
    assert wk.percent == pytest.approx(42.46, abs=0.01)

    mo = monthly_stats(FORTY_SIX, 80)
    assert (mo.lived, mo.remaining, mo.total) == (408, 552, 960)
    assert mo.percent == pytest.approx(42.5)


def test_stats_percent_is_clamped_before_birth():
    wk = weekly_stats(TimeRemaining(years=100), 80)
    mo = monthly_stats(TimeRemaining(years=100), 80)
    assert wk.lived < 0 and wk.percent == 0.0
    assert mo.lived < 0 and mo.percent == 0.0


def test_stats_at_end_of_life():
    assert weekly_stats(TimeRemaining(), 80).percent == 100.0
    assert monthly_stats(TimeRemaining(), 80).remaining == 0


def test_life_calendar_counts_quarters():
    cal = life_calendar(_dt(1990, 6, 15), 80, _dt(2024, 6, 15))
    assert (cal.lived, cal.remaining, cal.total) == (136, 184, 320)
    cells = cal.cells()
    assert len(cells) == 320 and sum(cells) == 136
    assert cells[135] and not cells[136]


def test_life_calendar_before_birth_and_after_end():
    before = life_calendar(_dt(1990, 6, 15), 80, _dt(1980, 1, 1))
    assert (before.lived, before.remaining) == (0, 320)
    after = life_calendar(_dt(1900, 1, 1), 80, _dt(2024, 1, 1))
    assert (after.lived, after.remaining) == (320, 0)
