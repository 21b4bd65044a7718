# memento/reports.py
# Derived views over a snapshot: countdown text per display unit, weekly/monthly stats, life-in-quarters calendar

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import List

from .duration import MS_PER_DAY, clamp_percent, span_ms
from .model import DisplayUnit, TimeRemaining

DAYS_PER_YEAR = 365.25
DAYS_PER_MONTH = 30.437
WEEKS_PER_YEAR = 52.143
MS_PER_QUARTER = MS_PER_DAY * 9_125 // 100   # 91.25 days


def remaining_days(snap: TimeRemaining) -> float:
    """Day count rebuilt from the calendar units (sub-day units ignored)."""
    return snap.years * DAYS_PER_YEAR + snap.months * DAYS_PER_MONTH + snap.days


def display_value(snap: TimeRemaining, unit: DisplayUnit | str = DisplayUnit.YEARS) -> str:
    unit = DisplayUnit.parse(unit)
    if unit is DisplayUnit.YEARS:
        return f"{snap.years:02d}y {snap.months:02d}m {snap.days:02d}d"
    days = remaining_days(snap)
    if unit is DisplayUnit.DAYS:
        return f"{math.floor(days):,} days"
    hours = days * 24 + snap.hours
    if unit is DisplayUnit.HOURS:
        return f"{math.floor(hours):,} hours"
    minutes = hours * 60 + snap.minutes
    return f"{math.floor(minutes):,} minutes"


@dataclass(frozen=True)
class PeriodStats:
    lived: int
    remaining: int
    total: int
    percent: float


def weekly_stats(snap: TimeRemaining, life_expectancy_years: int) -> PeriodStats:
    remaining = math.floor(remaining_days(snap) / 7)
    total = math.floor(life_expectancy_years * WEEKS_PER_YEAR)
    lived = total - remaining
    pct = clamp_percent(lived / total * 100.0) if total > 0 else 100.0
    return PeriodStats(lived=lived, remaining=remaining, total=total, percent=pct)


def monthly_stats(snap: TimeRemaining, life_expectancy_years: int) -> PeriodStats:
    remaining = snap.years * 12 + snap.months
    total = life_expectancy_years * 12
    lived = total - remaining
    pct = clamp_percent(lived / total * 100.0) if total > 0 else 100.0
    return PeriodStats(lived=lived, remaining=remaining, total=total, percent=pct)


@dataclass(frozen=True)
class LifeCalendar:
    """One cell per ~3 months of the expected lifespan."""
    lived: int
    remaining: int
    total: int

    def cells(self) -> List[bool]:
        return [i < self.lived for i in range(self.total)]


def life_calendar(birthdate: datetime, life_expectancy_years: int, now: datetime) -> LifeCalendar:
    total = max(0, int(life_expectancy_years) * 4)
    age_quarters = max(0, span_ms(birthdate, now) // MS_PER_QUARTER)
    return LifeCalendar(
        lived=min(age_quarters, total),
        remaining=max(0, total - age_quarters),
        total=total,
    )


__all__ = [
    "DAYS_PER_YEAR", "DAYS_PER_MONTH", "WEEKS_PER_YEAR", "MS_PER_QUARTER",
    "remaining_days", "display_value",
    "PeriodStats", "weekly_stats", "monthly_stats",
    "LifeCalendar", "life_calendar",
]
