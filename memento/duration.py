# memento/duration.py
# Duration math: calendar-approximate decomposition of millisecond spans and life-progress percentage

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from .errors import InvalidParameter
from .utils import as_aware

MS_PER_SECOND = 1_000
MS_PER_MINUTE = MS_PER_SECOND * 60
MS_PER_HOUR = MS_PER_MINUTE * 60
MS_PER_DAY = MS_PER_HOUR * 24                 # 86_400_000
MS_PER_MONTH = MS_PER_DAY * 30_437 // 1_000   # 30.437 days (average month)
MS_PER_YEAR = MS_PER_DAY * 36_525 // 100      # 365.25 days (leap years averaged in)

_ONE_MS = timedelta(milliseconds=1)


@dataclass(frozen=True)
class Decomposition:
    years: int = 0
    months: int = 0
    days: int = 0
    hours: int = 0
    minutes: int = 0
    seconds: int = 0
    milliseconds: int = 0

    def to_ms(self) -> int:
        """Reconstruct the span using the same unit constants."""
        return (
            self.years * MS_PER_YEAR
            + self.months * MS_PER_MONTH
            + self.days * MS_PER_DAY
            + self.hours * MS_PER_HOUR
            + self.minutes * MS_PER_MINUTE
            + self.seconds * MS_PER_SECOND
            + self.milliseconds
        )


def decompose(delta_ms: int) -> Decomposition:
    """
    Break a non-negative span into years/months/days/hours/minutes/seconds/ms.

    Uses the average month and year lengths above, so the result is
    calendar-approximate rather than a Gregorian breakdown. Callers clamp
    negative spans to 0 before calling.
    """
    rem = int(delta_ms)
    if rem < 0:
        raise ValueError(f"decompose(): delta_ms must be >= 0, got {delta_ms}")

    years, rem = divmod(rem, MS_PER_YEAR)
    months, rem = divmod(rem, MS_PER_MONTH)
    days, rem = divmod(rem, MS_PER_DAY)
    hours, rem = divmod(rem, MS_PER_HOUR)
    minutes, rem = divmod(rem, MS_PER_MINUTE)
    seconds, ms = divmod(rem, MS_PER_SECOND)
    return Decomposition(years, months, days, hours, minutes, seconds, ms)


def span_ms(start: datetime, end: datetime) -> int:
    """Whole milliseconds from start to end (negative if end precedes start)."""
    return (as_aware(end) - as_aware(start)) // _ONE_MS


def add_years(instant: datetime, years: int) -> datetime:
    """
    Same month/day/time `years` later. Feb 29 lands on Feb 28 when the
    target year is not a leap year.
    """
    try:
        target_year = instant.year + int(years)
        try:
            return instant.replace(year=target_year)
        except ValueError:
            if instant.month == 2 and instant.day == 29:
                return instant.replace(year=target_year, day=28)
            raise
    except (ValueError, OverflowError) as e:
        raise InvalidParameter(f"cannot add {years} years to {instant.isoformat()}: {e}") from e


def validate_life_expectancy(years: object) -> int:
    if isinstance(years, bool) or not isinstance(years, int):
        raise InvalidParameter(f"life expectancy must be an integer number of years, got {years!r}")
    if years <= 0:
        raise InvalidParameter(f"life expectancy must be > 0, got {years}")
    return years


def clamp_percent(value: float) -> float:
    return max(0.0, min(100.0, float(value)))


def percentage_complete(birthdate: datetime, life_expectancy_years: int, now: datetime) -> float:
    """
    Share of the expected lifespan that has elapsed at `now`, in [0, 100].

    Raises InvalidParameter when the expected lifespan is not positive.
    """
    birthdate = as_aware(birthdate)
    if isinstance(life_expectancy_years, bool) or int(life_expectancy_years) <= 0:
        raise InvalidParameter(f"life expectancy must be > 0, got {life_expectancy_years!r}")
    end = add_years(birthdate, life_expectancy_years)
    total = span_ms(birthdate, end)
    if total <= 0:
        raise InvalidParameter(f"lifespan must be positive, got {total} ms")
    elapsed = span_ms(birthdate, now)
    return clamp_percent(elapsed / total * 100.0)


__all__ = [
    "MS_PER_SECOND", "MS_PER_MINUTE", "MS_PER_HOUR", "MS_PER_DAY", "MS_PER_MONTH", "MS_PER_YEAR",
    "Decomposition", "decompose", "span_ms", "add_years",
    "validate_life_expectancy", "clamp_percent", "percentage_complete",
]
