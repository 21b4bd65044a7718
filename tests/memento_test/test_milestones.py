# tests/memento_test/test_milestones.py
# Pytest for the milestone watcher: ordered one-time firing, latching, list validation

from __future__ import annotations

from typing import List

import pytest

from memento.errors import InvalidParameter
from memento.events import MilestoneEvent
from memento.milestones import DEFAULT_MILESTONES, MilestoneWatcher
from memento.model import Milestone, TimeRemaining


class Sink:
    def __init__(self) -> None:
        self.events: List[MilestoneEvent] = []

    def __call__(self, ev: MilestoneEvent) -> None:
        self.events.append(ev)

    @property
    def ids(self) -> List[str]:
        return [e.milestone_id for e in self.events]


def test_reference_set_is_ascending():
    assert [m.threshold_percent for m in DEFAULT_MILESTONES] == [25, 33, 50, 66, 75]
    assert DEFAULT_MILESTONES[2].title == "Half Life"
    assert "50%" in DEFAULT_MILESTONES[2].description


def test_jump_fires_every_crossed_threshold_once_in_order():
    sink = Sink()
    w = MilestoneWatcher(sink=sink)
    assert w.on_percentage_update(10.0) == []
    fired = w.on_percentage_update(80.0)
    assert [e.threshold_percent for e in fired] == [25, 33, 50, 66, 75]
    assert sink.ids == ["quarter", "third", "half", "two-thirds", "three-quarters"]
    assert all(e.kind == "MilestoneReached" for e in fired)
    assert fired[0].title == "Quarter Life" and fired[0].percentage == 80.0


def test_latch_never_refires_on_same_lower_or_recrossing_values():
    sink = Sink()
    w = MilestoneWatcher(sink=sink)
    w.on_percentage_update(30.0)
    w.on_percentage_update(30.0)
    w.on_percentage_update(12.0)
    w.on_percentage_update(31.0)
    assert sink.ids == ["quarter"]
    w.on_percentage_update(33.0)
    assert sink.ids == ["quarter", "third"]


def test_threshold_is_inclusive():
    w = MilestoneWatcher()
    assert [e.milestone_id for e in w.on_percentage_update(25.0)] == ["quarter"]
    assert w.on_percentage_update(24.999) == []


def test_sink_sees_each_event_before_the_next_is_evaluated():
    order = []
    w = MilestoneWatcher()

    def sink(ev):
        order.append((ev.milestone_id, [m.id for m in w.triggered()]))

    w.sink = sink
    w.on_percentage_update(51)
    assert order == [
        ("quarter", ["quarter"]),
        ("third", ["quarter", "third"]),
        ("half", ["quarter", "third", "half"]),
    ]


def test_pending_and_triggered_views():
    w = MilestoneWatcher()
    w.on_percentage_update(60)
    assert [m.id for m in w.triggered()] == ["quarter", "third", "half"]
    assert [m.id for m in w.pending()] == ["two-thirds", "three-quarters"]


def test_on_snapshot_reads_percentage():
    w = MilestoneWatcher()
    fired = w.on_snapshot(TimeRemaining(percentage_complete=42.5))
    assert [e.milestone_id for e in fired] == ["quarter", "third"]


def test_watchers_do_not_share_latches_or_mutate_input():
    src = [Milestone("a", "A", "first", 10), Milestone("b", "B", "second", 20)]
    w1 = MilestoneWatcher(src)
    w2 = MilestoneWatcher(src)
    w1.on_percentage_update(100)
    assert all(not m.triggered for m in src)
    assert [e.milestone_id for e in w2.on_percentage_update(15)] == ["a"]


def test_custom_list_is_accepted():
    w = MilestoneWatcher([Milestone("start", "Start", "", 0), Milestone("end", "End", "", 100)])
    assert [e.milestone_id for e in w.on_percentage_update(0)] == ["start"]
    assert [e.milestone_id for e in w.on_percentage_update(100)] == ["end"]


@pytest.mark.parametrize(
    "items",
    [
        [Milestone("a", "A", "", 50), Milestone("b", "B", "", 25)],   # descending
        [Milestone("a", "A", "", 50), Milestone("b", "B", "", 50)],   # duplicate threshold
        [Milestone("a", "A", "", 10), Milestone("a", "B", "", 20)],   # duplicate id
        [Milestone("a", "A", "", 120)],                                # out of range
        [Milestone("a", "A", "", -1)],
    ],
)
def test_invalid_lists_are_rejected(items):
    with pytest.raises(InvalidParameter):
        MilestoneWatcher(items)


def test_empty_list_fires_nothing():
    w = MilestoneWatcher([])
    assert w.on_percentage_update(100) == []


def test_failing_sink_still_receives_every_reached_milestone_in_one_call():
    calls = []

    def flaky(ev):
        calls.append(ev.milestone_id)
        if len(calls) == 1:
            raise RuntimeError("toast failed")

    w = MilestoneWatcher(sink=flaky)
    with pytest.raises(RuntimeError, match="toast failed"):
        w.on_percentage_update(80)
    assert calls == ["quarter", "third", "half", "two-thirds", "three-quarters"]
    assert w.pending() == []
    assert w.on_percentage_update(90) == []
    assert len(calls) == 5


def test_sink_that_always_fails_raises_first_error_after_delivering_all():
    calls = []

    def broken(ev):
        calls.append(ev.milestone_id)
        raise ValueError(ev.milestone_id)

    w = MilestoneWatcher(sink=broken)
    with pytest.raises(ValueError, match="quarter"):
        w.on_percentage_update(40)
    assert calls == ["quarter", "third"]


@pytest.mark.parametrize("bad", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_percentages_are_ignored(bad):
    sink = Sink()
    w = MilestoneWatcher(sink=sink)
    assert w.on_percentage_update(bad) == []
    assert sink.ids == [] and w.triggered() == []
    assert [e.milestone_id for e in w.on_percentage_update(26)] == ["quarter"]
