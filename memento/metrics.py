# memento/metrics.py
# Prometheus metrics for the clock, milestones, goals and storage + helpers to observe/refresh them

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Optional

from prometheus_client import Counter, Gauge, Histogram, start_http_server

from .utils import as_aware, utcnow

# --- Lifetime clock ---
clock_ticks_total = Counter(
    "memento_clock_ticks_total",
    "Snapshots emitted by the lifetime clock",
)
clock_errors_total = Counter(
    "memento_clock_errors_total",
    "Subscriber errors raised while delivering a snapshot",
)
clock_running = Gauge(
    "memento_clock_running",
    "1 while a lifetime clock is running, 0 otherwise",
)
clock_restarts_total = Counter(
    "memento_clock_restarts_total",
    "Atomic clock restarts (parameter updates while running)",
)
life_percentage = Gauge(
    "memento_life_percentage",
    "Latest life-progress percentage (0..100)",
)
tick_seconds = Histogram(
    "memento_tick_seconds",
    "Time spent computing and delivering one snapshot",
    buckets=(0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1, float("inf")),
)

# --- Milestones ---
milestones_fired_total = Counter(
    "memento_milestones_fired_total",
    "Milestone notifications fired",
    ["milestone"],
)

# --- Goals ---
goal_events_total = Counter(
    "memento_goal_events_total",
    "Goal lifecycle events",
    ["event"],
)
goals_total = Gauge(
    "memento_goals_total",
    "Current number of tracked goals",
)
goals_overdue_total = Gauge(
    "memento_goals_overdue_total",
    "Tracked goals whose target date has passed",
)

# --- Storage ---
storage_errors_total = Counter(
    "memento_storage_errors_total",
    "Persistence failures by operation",
    ["op"],
)


# ------------------------------
# Public helpers (never throw)
# ------------------------------

def observe_tick(percentage: float, duration_sec: Optional[float] = None) -> None:
    try:
        clock_ticks_total.inc()
        life_percentage.set(float(percentage))
        if duration_sec is not None and duration_sec >= 0:
            tick_seconds.observe(duration_sec)
    except Exception:
        pass


def observe_clock_error() -> None:
    try:
        clock_errors_total.inc()
    except Exception:
        pass


def set_clock_running(running: bool, *, restarted: bool = False) -> None:
    try:
        clock_running.set(1 if running else 0)
        if restarted:
            clock_restarts_total.inc()
    except Exception:
        pass


def observe_milestone(milestone_id: str) -> None:
    try:
        milestones_fired_total.labels(milestone=str(milestone_id)).inc()
    except Exception:
        pass


def observe_goal_event(kind: str) -> None:
    try:
        goal_events_total.labels(event=str(kind)).inc()
    except Exception:
        pass


def observe_storage_error(op: str) -> None:
    try:
        storage_errors_total.labels(op=str(op)).inc()
    except Exception:
        pass


def refresh_goals(goals: Iterable[Any], *, now: Optional[datetime] = None) -> None:
    """
    Recompute goal gauges. Duck-typed: anything with a `target_date`.
    Safe to call periodically.
    """
    now = as_aware(now or utcnow())
    count = 0
    overdue = 0
    for g in goals:
        count += 1
        td = getattr(g, "target_date", None)
        if td is None:
            continue
        try:
            if (now - as_aware(td)).total_seconds() > 0:
                overdue += 1
        except Exception:
            continue
    try:
        goals_total.set(count)
        goals_overdue_total.set(overdue)
    except Exception:
        pass


def serve_metrics(port: int = 9100) -> None:
    """Expose /metrics on http://localhost:<port>/metrics"""
    start_http_server(port)


__all__ = [
    "observe_tick", "observe_clock_error", "set_clock_running",
    "observe_milestone", "observe_goal_event", "observe_storage_error",
    "refresh_goals", "serve_metrics",
    "clock_ticks_total", "clock_errors_total", "clock_running", "clock_restarts_total",
    "life_percentage", "tick_seconds", "milestones_fired_total",
    "goal_events_total", "goals_total", "goals_overdue_total", "storage_errors_total",
]
