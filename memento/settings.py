# memento/settings.py
# Host-owned life settings record (birthdate, life expectancy, display unit): defaults, load/save, form bounds

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, Optional

from .config import CONFIG, MementoConfig
from .duration import add_years, validate_life_expectancy
from .errors import ValidationError
from .model import DisplayUnit, LifeParameters
from .schema import validate_settings_record
from .store import SETTINGS_KEY, PersistenceAdapter
from .utils import as_aware, iso, parse_iso, utcnow


@dataclass(frozen=True)
class LifeSettings:
    birthdate: datetime
    life_expectancy_years: int
    display_unit: DisplayUnit = DisplayUnit.YEARS

    @property
    def params(self) -> LifeParameters:
        return LifeParameters(birthdate=self.birthdate, life_expectancy_years=self.life_expectancy_years)

    def with_birthdate(self, birthdate: datetime) -> "LifeSettings":
        return replace(self, birthdate=as_aware(birthdate))

    def with_life_expectancy(self, years: int) -> "LifeSettings":
        return replace(self, life_expectancy_years=years)

    def with_display_unit(self, unit: Any) -> "LifeSettings":
        return replace(self, display_unit=DisplayUnit.parse(unit))


def default_settings(now: Optional[datetime] = None, *, config: MementoConfig = CONFIG) -> LifeSettings:
    now = as_aware(now or utcnow())
    return LifeSettings(
        birthdate=add_years(now, -config.DEFAULT_AGE_YEARS),
        life_expectancy_years=config.DEFAULT_LIFE_EXPECTANCY,
        display_unit=DisplayUnit.parse(config.DEFAULT_DISPLAY_UNIT, DisplayUnit.YEARS),
    )


def settings_to_record(s: LifeSettings) -> Dict[str, Any]:
    return {
        "birthdate": iso(s.birthdate),
        "lifeExpectancyYears": int(s.life_expectancy_years),
        "displayUnit": DisplayUnit.parse(s.display_unit).value,
    }


def settings_from_record(d: Any, *, fallback: LifeSettings) -> LifeSettings:
    """Fields that are missing or unreadable keep the fallback's values."""
    try:
        validate_settings_record(d)
    except ValueError:
        return fallback
    birth = parse_iso(d.get("birthdate"))
    return LifeSettings(
        birthdate=birth or fallback.birthdate,
        life_expectancy_years=int(d["lifeExpectancyYears"]),
        display_unit=DisplayUnit.parse(d.get("displayUnit"), fallback.display_unit),
    )


def load_settings(
    adapter: PersistenceAdapter,
    *,
    now: Optional[datetime] = None,
    config: MementoConfig = CONFIG,
) -> LifeSettings:
    fallback = default_settings(now, config=config)
    raw = adapter.get(SETTINGS_KEY)
    if not raw:
        return fallback
    try:
        d = json.loads(raw)
    except ValueError:
        return fallback
    return settings_from_record(d, fallback=fallback)


def save_settings(adapter: PersistenceAdapter, settings: LifeSettings) -> None:
    """Raises InvalidParameter for a non-positive expectancy, StorageError on write failure."""
    validate_life_expectancy(settings.life_expectancy_years)
    record = settings_to_record(settings)
    validate_settings_record(record)
    adapter.set(SETTINGS_KEY, json.dumps(record))


def check_form_bounds(
    settings: LifeSettings,
    *,
    now: Optional[datetime] = None,
    config: MementoConfig = CONFIG,
) -> None:
    """
    The settings form's stricter bounds: expectancy within
    [MIN_LIFE_EXPECTANCY, MAX_LIFE_EXPECTANCY], birthdate between
    EARLIEST_BIRTH_YEAR-01-01 and now.
    """
    years = settings.life_expectancy_years
    if isinstance(years, bool) or not isinstance(years, int) or not (
        config.MIN_LIFE_EXPECTANCY <= years <= config.MAX_LIFE_EXPECTANCY
    ):
        raise ValidationError(
            f"life expectancy must be between {config.MIN_LIFE_EXPECTANCY} and {config.MAX_LIFE_EXPECTANCY} years, got {years!r}"
        )
    now = as_aware(now or utcnow())
    birth = as_aware(settings.birthdate)
    if birth > now:
        raise ValidationError(f"birthdate is in the future: {birth.isoformat()}")
    if birth.year < config.EARLIEST_BIRTH_YEAR:
        raise ValidationError(f"birthdate must not be before {config.EARLIEST_BIRTH_YEAR}-01-01")


__all__ = [
    "LifeSettings",
    "default_settings",
    "settings_to_record",
    "settings_from_record",
    "load_settings",
    "save_settings",
    "check_form_bounds",
]
