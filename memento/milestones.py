# memento/milestones.py
# Edge-triggered milestone watcher: fires each life-progress threshold exactly once, in ascending order

from __future__ import annotations

import math
from dataclasses import replace
from typing import Callable, Iterable, List, Optional, Sequence

from . import metrics
from .errors import InvalidParameter
from .events import MilestoneEvent, make_milestone_event
from .model import Milestone, TimeRemaining

NotificationSink = Callable[[MilestoneEvent], None]


def _journey(pct: int) -> str:
    return f"You've completed {pct}% of your expected life journey."


DEFAULT_MILESTONES: Sequence[Milestone] = (
    Milestone(id="quarter", title="Quarter Life", description=_journey(25), threshold_percent=25),
    Milestone(id="third", title="One-Third Life", description=_journey(33), threshold_percent=33),
    Milestone(id="half", title="Half Life", description=_journey(50), threshold_percent=50),
    Milestone(id="two-thirds", title="Two-Thirds Life", description=_journey(66), threshold_percent=66),
    Milestone(id="three-quarters", title="Three-Quarters Life", description=_journey(75), threshold_percent=75),
)


def validate_milestones(milestones: Iterable[Milestone]) -> List[Milestone]:
    """Thresholds within [0, 100], strictly ascending; ids unique."""
    out: List[Milestone] = []
    seen_ids = set()
    prev: Optional[float] = None
    for m in milestones:
        if not isinstance(m, Milestone):
            raise InvalidParameter(f"expected Milestone, got {type(m).__name__}")
        t = m.threshold_percent
        if isinstance(t, bool) or not isinstance(t, (int, float)) or not (0 <= t <= 100):
            raise InvalidParameter(f"milestone {m.id!r}: threshold must be within [0, 100], got {t!r}")
        if prev is not None and t <= prev:
            raise InvalidParameter(f"milestone {m.id!r}: thresholds must be strictly ascending ({t} after {prev})")
        if m.id in seen_ids:
            raise InvalidParameter(f"duplicate milestone id {m.id!r}")
        seen_ids.add(m.id)
        prev = t
        # each watcher owns its latches
        out.append(replace(m))
    return out


class MilestoneWatcher:
    """
    Consumes the clock's percentage stream and latches milestones.

    A milestone fires on the first update whose percentage reaches its
    threshold and never again for the life of this watcher, even if the
    percentage later drops and climbs back.
    """

    def __init__(
        self,
        milestones: Optional[Iterable[Milestone]] = None,
        *,
        sink: Optional[NotificationSink] = None,
    ) -> None:
        self._milestones = validate_milestones(DEFAULT_MILESTONES if milestones is None else milestones)
        self.sink = sink

    @property
    def milestones(self) -> List[Milestone]:
        return list(self._milestones)

    def triggered(self) -> List[Milestone]:
        return [m for m in self._milestones if m.triggered]

    def pending(self) -> List[Milestone]:
        return [m for m in self._milestones if not m.triggered]

    def on_percentage_update(self, percentage: float) -> List[MilestoneEvent]:
        """
        Fire every newly reached milestone in ascending order.

        All of them are delivered in this call even if the sink raises; the
        first sink error is re-raised once the loop is done. Non-finite
        percentages are ignored.
        """
        fired: List[MilestoneEvent] = []
        if isinstance(percentage, bool) or not isinstance(percentage, (int, float)) or not math.isfinite(percentage):
            return fired
        first_error: Optional[Exception] = None
        for m in self._milestones:
            if m.triggered or m.threshold_percent > percentage:
                continue
            m.triggered = True
            ev = make_milestone_event(m, percentage)
            fired.append(ev)
            metrics.observe_milestone(m.id)
            if self.sink is None:
                continue
            try:
                self.sink(ev)
            except Exception as e:
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error
        return fired

    def on_snapshot(self, snapshot: TimeRemaining) -> List[MilestoneEvent]:
        return self.on_percentage_update(snapshot.percentage_complete)


__all__ = ["DEFAULT_MILESTONES", "MilestoneWatcher", "NotificationSink", "validate_milestones"]
