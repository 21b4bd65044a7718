# memento/app.py
# Host facade: wires settings, lifetime clock, milestone watcher and goal tracker over one persistence adapter

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from .clock import LifetimeClock, SnapshotSubscriber, compute_snapshot, validate_params
from .config import CONFIG, MementoConfig
from .events import EventKind, EventSink, emit, make_event
from .milestones import MilestoneWatcher, NotificationSink
from .model import DisplayUnit, Goal, GoalProgress, Milestone, TimeRemaining
from .reports import display_value, life_calendar, monthly_stats, weekly_stats
from .settings import LifeSettings, check_form_bounds, load_settings, save_settings
from .store import PersistenceAdapter
from .tracker import GoalProgressTracker
from .utils import as_aware, iso, utcnow


class MementoApp:
    """
    Lightweight surface so a UI/CLI can drive the engine without touching internals.

    Settings changes are validated, persisted, and only then applied; a
    running clock is restarted atomically with the new parameters.
    Within one tick the watcher sees the snapshot before other subscribers.
    """

    def __init__(
        self,
        adapter: PersistenceAdapter,
        *,
        config: MementoConfig = CONFIG,
        milestones: Optional[Iterable[Milestone]] = None,
        notification_sink: Optional[NotificationSink] = None,
        event_sink: Optional[EventSink] = None,
        now: Optional[Callable[[], datetime]] = None,
        threaded: bool = True,
    ) -> None:
        self.adapter = adapter
        self.config = config
        self.event_sink = event_sink
        self._now = now or utcnow

        self.settings: LifeSettings = load_settings(adapter, now=self._now(), config=config)
        self.clock = LifetimeClock(now=self._now, event_sink=event_sink, threaded=threaded)
        self.watcher = MilestoneWatcher(milestones, sink=notification_sink)
        self.tracker = GoalProgressTracker(adapter, event_sink=event_sink)
        self._subs: List[SnapshotSubscriber] = []

    # ---------- clock ----------

    def subscribe(self, fn: SnapshotSubscriber) -> None:
        self._subs.append(fn)

    def start(self, tick_interval_ms: Optional[float] = None) -> None:
        self.clock.start(self.settings.params, tick_interval_ms or self.config.TICK_MS, self._on_snapshot)

    def stop(self) -> None:
        self.clock.stop()

    def _on_snapshot(self, snap: TimeRemaining) -> None:
        self.watcher.on_snapshot(snap)
        for fn in list(self._subs):
            fn(snap)

    # ---------- settings ----------

    def set_birthdate(self, birthdate: datetime, *, enforce_form_bounds: bool = True) -> LifeSettings:
        return self._apply(self.settings.with_birthdate(birthdate), enforce_form_bounds)

    def set_life_expectancy(self, years: int, *, enforce_form_bounds: bool = True) -> LifeSettings:
        return self._apply(self.settings.with_life_expectancy(years), enforce_form_bounds)

    def set_display_unit(self, unit: DisplayUnit | str) -> LifeSettings:
        return self._apply(self.settings.with_display_unit(unit), False)

    def _apply(self, new: LifeSettings, enforce_form_bounds: bool) -> LifeSettings:
        validate_params(new.params)
        if enforce_form_bounds:
            check_form_bounds(new, now=self._now(), config=self.config)
        save_settings(self.adapter, new)
        params_changed = new.params != self.settings.params
        self.settings = new
        if params_changed:
            self.clock.update_params(new.params)
        emit(self.event_sink, make_event(EventKind.SettingsSaved, **_settings_view(new)))
        return new

    # ---------- goals ----------

    def add_goal(self, title: str, description: Optional[str], target_date: Any, now: Optional[datetime] = None) -> Goal:
        return self.tracker.add_goal(title, description, target_date, now or self._now())

    def remove_goal(self, goal_id: str) -> bool:
        return self.tracker.remove_goal(goal_id)

    def goal_progress(self, now: Optional[datetime] = None) -> Dict[str, GoalProgress]:
        return self.tracker.progress_all(self.settings.birthdate, now or self._now())

    # ---------- reporting ----------

    def status(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """One-shot view of everything a dashboard shows, computed for `now`."""
        now = as_aware(now or self._now())
        s = self.settings
        snap = compute_snapshot(validate_params(s.params), now)
        return {
            "now": iso(now),
            "settings": _settings_view(s),
            "remaining": {k: v for k, v in asdict(snap).items() if k != "computed_at"},
            "display": display_value(snap, s.display_unit),
            "weekly": asdict(weekly_stats(snap, s.life_expectancy_years)),
            "monthly": asdict(monthly_stats(snap, s.life_expectancy_years)),
            "calendar": asdict(life_calendar(s.birthdate, s.life_expectancy_years, now)),
        }


def _settings_view(s: LifeSettings) -> Dict[str, Any]:
    return {
        "birthdate": iso(s.birthdate),
        "life_expectancy_years": s.life_expectancy_years,
        "display_unit": DisplayUnit.parse(s.display_unit).value,
    }


__all__ = ["MementoApp"]
