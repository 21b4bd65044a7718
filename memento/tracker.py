# memento/tracker.py
# Goal store + progress calculator: add/remove goals (persisted as one record) and compute days left / percentage

from __future__ import annotations

import json
import threading
from datetime import datetime
from typing import Any, Callable, Dict, Iterator, List, Optional

from . import metrics
from .duration import MS_PER_DAY, clamp_percent, span_ms
from .errors import ValidationError
from .events import EventKind, EventSink, emit, make_goal_event
from .model import Goal, GoalProgress
from .schema import is_valid_goal_record, validate_goals_record
from .store import GOALS_KEY, PersistenceAdapter
from .utils import as_aware, iso, mk_id, parse_instant, parse_iso, utcnow

IdFactory = Callable[[], str]


def goal_to_record(g: Goal) -> Dict[str, Any]:
    return {
        "id": g.id,
        "title": g.title,
        "description": g.description or "",
        "targetDate": iso(g.target_date),
        "createdAt": iso(g.created_at),
    }


def goal_from_record(d: Dict[str, Any]) -> Optional[Goal]:
    """None when the record is malformed or its target date can't be parsed."""
    if not is_valid_goal_record(d):
        return None
    target = parse_iso(d.get("targetDate"))
    if target is None:
        return None
    return Goal(
        id=str(d["id"]),
        title=str(d["title"]),
        description=str(d.get("description") or ""),
        target_date=target,
        created_at=parse_iso(d.get("createdAt")),
    )


def compute_progress(goal: Goal, birthdate: datetime, now: datetime) -> GoalProgress:
    """
    Days left until the target, and how far along the birthdate -> target
    span `now` is. A span that is not positive saturates at 100%.
    """
    remaining = max(0, span_ms(now, goal.target_date))
    total = span_ms(birthdate, goal.target_date)
    if total <= 0:
        return GoalProgress(days_remaining=0, percentage_complete=100.0)
    elapsed = total - remaining
    return GoalProgress(
        days_remaining=remaining // MS_PER_DAY,
        percentage_complete=clamp_percent(elapsed / total * 100.0),
    )


class GoalProgressTracker:
    """
    Insertion-ordered goals keyed by id, persisted as one full-set record.

    Dependencies:
      - adapter: PersistenceAdapter (get/set); writes are synchronous
      - id_factory (optional): callable returning a fresh unique id
      - event_sink (optional): callable(event_dict) for observability
    """

    def __init__(
        self,
        adapter: PersistenceAdapter,
        *,
        key: str = GOALS_KEY,
        id_factory: Optional[IdFactory] = None,
        event_sink: Optional[EventSink] = None,
    ) -> None:
        self.adapter = adapter
        self.key = key
        self.id_factory: IdFactory = id_factory or mk_id
        self.event_sink = event_sink
        self._goals: Dict[str, Goal] = {}
        self._lock = threading.RLock()
        self.reload()

    # ---------- loading / persistence ----------

    def reload(self) -> None:
        """Re-read the goals record. Unreadable payloads load as empty; bad entries are skipped."""
        goals: Dict[str, Goal] = {}
        raw = self.adapter.get(self.key)
        items: Any = []
        if raw:
            try:
                items = json.loads(raw)
            except ValueError:
                items = []
        if isinstance(items, list):
            for rec in items:
                g = goal_from_record(rec)
                if g is not None and g.id not in goals:
                    goals[g.id] = g
        with self._lock:
            self._goals = goals
        metrics.refresh_goals(goals.values())

    def _persist(self) -> None:
        records = [goal_to_record(g) for g in self._goals.values()]
        validate_goals_record(records)
        self.adapter.set(self.key, json.dumps(records, ensure_ascii=False))

    # ---------- queries ----------

    def __len__(self) -> int:
        return len(self._goals)

    def __iter__(self) -> Iterator[Goal]:
        with self._lock:
            items = list(self._goals.values())
        return iter(items)

    def __contains__(self, goal_id: object) -> bool:
        return goal_id in self._goals

    def get_goal(self, goal_id: str) -> Optional[Goal]:
        return self._goals.get(goal_id)

    def list_goals(self) -> List[Goal]:
        return list(self)

    # ---------- mutations ----------

    def add_goal(
        self,
        title: str,
        description: Optional[str],
        target_date_input: Any,
        now: Optional[datetime] = None,
    ) -> Goal:
        if not isinstance(title, str) or not title.strip():
            raise ValidationError("goal title must not be empty")
        target = parse_instant(target_date_input)
        if target is None:
            raise ValidationError(f"invalid target date: {target_date_input!r}")
        now = as_aware(now or utcnow())
        if target <= now:
            raise ValidationError(f"target date must be in the future: {target.isoformat()}")

        goal = Goal(
            id=str(self.id_factory()),
            title=title.strip(),
            description=str(description or ""),
            target_date=target,
            created_at=now,
        )
        with self._lock:
            if goal.id in self._goals:
                raise ValidationError(f"duplicate goal id: {goal.id}")
            self._goals[goal.id] = goal
            try:
                self._persist()
            except Exception:
                del self._goals[goal.id]
                raise

        metrics.observe_goal_event(EventKind.GoalAdded.value)
        metrics.refresh_goals(self._goals.values(), now=now)
        emit(self.event_sink, make_goal_event(EventKind.GoalAdded, goal))
        return goal

    def remove_goal(self, goal_id: str) -> bool:
        """Remove if present. Unknown ids are a no-op and return False."""
        with self._lock:
            if goal_id not in self._goals:
                return False
            before = dict(self._goals)
            goal = self._goals.pop(goal_id)
            try:
                self._persist()
            except Exception:
                self._goals = before
                raise

        metrics.observe_goal_event(EventKind.GoalRemoved.value)
        metrics.refresh_goals(self._goals.values())
        emit(self.event_sink, make_goal_event(EventKind.GoalRemoved, goal))
        return True

    # ---------- progress ----------

    def progress(self, goal: Goal, birthdate: datetime, now: Optional[datetime] = None) -> GoalProgress:
        return compute_progress(goal, birthdate, now or utcnow())

    def progress_all(self, birthdate: datetime, now: Optional[datetime] = None) -> Dict[str, GoalProgress]:
        now = now or utcnow()
        return {g.id: compute_progress(g, birthdate, now) for g in self}


__all__ = ["GoalProgressTracker", "compute_progress", "goal_to_record", "goal_from_record"]
