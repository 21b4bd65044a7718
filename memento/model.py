# memento/model.py
# Core dataclasses and enums (LifeParameters, TimeRemaining, Goal, GoalProgress, Milestone, DisplayUnit)

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from .duration import validate_life_expectancy
from .utils import as_aware


class DisplayUnit(str, Enum):
    YEARS = "years"
    DAYS = "days"
    HOURS = "hours"
    MINUTES = "minutes"

    @classmethod
    def parse(cls, x: object, default: Optional["DisplayUnit"] = None) -> "DisplayUnit":
        if isinstance(x, DisplayUnit):
            return x
        try:
            return cls(str(x).strip().lower())
        except ValueError:
            if default is not None:
                return default
            raise


@dataclass(frozen=True)
class LifeParameters:
    birthdate: datetime
    life_expectancy_years: int

    def validated(self) -> "LifeParameters":
        """Return a copy with an aware birthdate; raises InvalidParameter on bad expectancy."""
        years = validate_life_expectancy(self.life_expectancy_years)
        return LifeParameters(birthdate=as_aware(self.birthdate), life_expectancy_years=years)


@dataclass(frozen=True)
class TimeRemaining:
    years: int = 0
    months: int = 0
    days: int = 0
    hours: int = 0
    minutes: int = 0
    seconds: int = 0
    milliseconds: int = 0
    total_milliseconds_remaining: int = 0
    percentage_complete: float = 0.0
    computed_at: Optional[datetime] = None


@dataclass(frozen=True)
class Goal:
    id: str
    title: str
    target_date: datetime
    description: str = ""
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class GoalProgress:
    days_remaining: int = 0
    percentage_complete: float = 0.0


@dataclass
class Milestone:
    id: str
    title: str
    description: str
    threshold_percent: float
    triggered: bool = False


__all__ = ["DisplayUnit", "LifeParameters", "TimeRemaining", "Goal", "GoalProgress", "Milestone"]
