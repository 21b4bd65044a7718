# tests/memento_test/test_duration.py
# Pytest for duration math: decomposition, year addition, life-progress percentage

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from memento.duration import (
    MS_PER_DAY,
    MS_PER_HOUR,
    MS_PER_MONTH,
    MS_PER_YEAR,
    Decomposition,
    add_years,
    decompose,
    percentage_complete,
    span_ms,
)
from memento.errors import InvalidParameter


def _dt(*a) -> datetime:
    return datetime(*a, tzinfo=timezone.utc)


def test_unit_constants_match_average_lengths():
    assert MS_PER_DAY == 86_400_000
    assert MS_PER_MONTH == 2_629_756_800       # 30.437 days
    assert MS_PER_YEAR == 31_557_600_000       # 365.25 days


def test_decompose_zero_is_all_zero():
    assert decompose(0) == Decomposition()


def test_decompose_walks_units_from_years_down():
    delta = 2 * MS_PER_YEAR + 3 * MS_PER_MONTH + 4 * MS_PER_DAY + 5 * MS_PER_HOUR + 6 * 60_000 + 7_000 + 89
    d = decompose(delta)
    assert (d.years, d.months, d.days, d.hours, d.minutes, d.seconds, d.milliseconds) == (2, 3, 4, 5, 6, 7, 89)


@pytest.mark.parametrize("delta", [1, 999, 86_399_999, MS_PER_MONTH - 1, MS_PER_YEAR + 1, 46 * MS_PER_YEAR + 12_345, 2_524_608_000_000])
def test_reconstruction_stays_within_one_day(delta):
    d = decompose(delta)
    assert abs(d.to_ms() - delta) < MS_PER_DAY
    assert 0 <= d.milliseconds <= 999
    assert d.months < 12 and d.hours < 24 and d.minutes < 60 and d.seconds < 60


def test_decompose_rejects_negative():
    with pytest.raises(ValueError):
        decompose(-1)


def test_span_ms_treats_naive_as_utc_and_floors():
    a = datetime(2020, 1, 1)
    b = _dt(2020, 1, 2)
    assert span_ms(a, b) == MS_PER_DAY
    assert span_ms(b, a) == -MS_PER_DAY
    assert span_ms(a, a + timedelta(microseconds=1500)) == 1


def test_add_years_plain_and_leap_day():
    assert add_years(_dt(1990, 6, 15), 80) == _dt(2070, 6, 15)
    assert add_years(_dt(2000, 2, 29), 1) == _dt(2001, 2, 28)
    assert add_years(_dt(2000, 2, 29), 4) == _dt(2004, 2, 29)
    assert add_years(_dt(2024, 3, 1), -30) == _dt(1994, 3, 1)


def test_add_years_out_of_range_is_invalid_parameter():
    with pytest.raises(InvalidParameter):
        add_years(_dt(9990, 1, 1), 20)


def test_percentage_at_birth_and_at_end():
    birth = _dt(1990, 6, 15)
    assert percentage_complete(birth, 80, birth) == 0.0
    assert percentage_complete(birth, 80, add_years(birth, 80)) == 100.0


def test_percentage_is_clamped_outside_the_lifespan():
    birth = _dt(1990, 6, 15)
    assert percentage_complete(birth, 80, _dt(1980, 1, 1)) == 0.0
    assert percentage_complete(birth, 80, _dt(2100, 1, 1)) == 100.0
    assert percentage_complete(birth, 1, _dt(2090, 1, 1)) == 100.0


def test_percentage_is_monotonic_before_end():
    birth = _dt(1970, 1, 1)
    prev = -1.0
    t = birth
    while t < add_years(birth, 70):
        cur = percentage_complete(birth, 70, t)
        assert cur >= prev
        prev = cur
        t += timedelta(days=397, hours=5)


@pytest.mark.parametrize("bad", [0, -5])
def test_percentage_rejects_non_positive_expectancy(bad):
    with pytest.raises(InvalidParameter):
        percentage_complete(_dt(1990, 1, 1), bad, _dt(2000, 1, 1))


def test_scenario_a_percentage():
    pct = percentage_complete(_dt(1990, 6, 15), 80, _dt(2024, 6, 15))
    assert pct == pytest.approx(42.5, abs=0.01)
