# memento/events.py
# Typed events for the clock, milestones and goals + adapter to flat sink dicts

from __future__ import annotations

from dataclasses import dataclass, asdict, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional

from .model import Goal, Milestone

UTCNOW = lambda: datetime.now(timezone.utc)
EVENT_VERSION = 1

EventSink = Callable[[Dict[str, Any]], None]


# ----------- Event kinds -----------

class EventKind(str, Enum):
    # Clock lifecycle
    ClockStarted   = "ClockStarted"
    ClockRestarted = "ClockRestarted"
    ClockStopped   = "ClockStopped"
    ClockError     = "ClockError"

    # Milestones
    MilestoneReached = "MilestoneReached"

    # Goals
    GoalAdded   = "GoalAdded"
    GoalRemoved = "GoalRemoved"

    # Settings
    SettingsSaved = "SettingsSaved"


# ----------- Base + typed events -----------

@dataclass
class BaseEvent:
    ts: str = field(default_factory=lambda: UTCNOW().isoformat())
    kind: str = ""
    src: str = "memento"
    level: str = "info"
    v: int = EVENT_VERSION
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class MilestoneEvent(BaseEvent):
    """The one-time notification a host surfaces as a toast/banner."""
    milestone_id: str = ""
    title: str = ""
    description: str = ""
    threshold_percent: float = 0.0
    percentage: float = 0.0


@dataclass
class GoalEvent(BaseEvent):
    goal_id: str = ""
    title: str = ""
    target_date: Optional[str] = None


# ----------- Factories -----------

def make_milestone_event(milestone: Milestone, percentage: float) -> MilestoneEvent:
    return MilestoneEvent(
        kind=EventKind.MilestoneReached.value,
        milestone_id=milestone.id,
        title=milestone.title,
        description=milestone.description,
        threshold_percent=float(milestone.threshold_percent),
        percentage=float(percentage),
    )


def make_goal_event(kind: str | EventKind, goal: Goal, *, extra: Optional[Dict[str, Any]] = None) -> GoalEvent:
    return GoalEvent(
        kind=kind.value if isinstance(kind, EventKind) else str(kind),
        goal_id=goal.id,
        title=goal.title or "",
        target_date=goal.target_date.isoformat() if goal.target_date else None,
        extra=dict(extra or {}),
    )


def make_event(kind: str | EventKind, *, level: str = "info", **extra: Any) -> BaseEvent:
    return BaseEvent(
        kind=kind.value if isinstance(kind, EventKind) else str(kind),
        level=level,
        extra=dict(extra),
    )


# ----------- Adapters -----------

def to_sink_event(ev: BaseEvent) -> Dict[str, Any]:
    """Flatten to a dict suitable for an observability sink."""
    d = asdict(ev)
    d["source"] = d.pop("src")
    return d


def emit(sink: Optional[EventSink], ev: BaseEvent) -> None:
    """Deliver to an optional sink. Observability must never break the engine."""
    if not callable(sink):
        return
    try:
        sink(to_sink_event(ev))
    except Exception:
        pass


__all__ = [
    "EventKind",
    "EventSink",
    "BaseEvent",
    "MilestoneEvent",
    "GoalEvent",
    "make_milestone_event",
    "make_goal_event",
    "make_event",
    "to_sink_event",
    "emit",
]
