# memento/clock.py
# Lifetime clock: recomputes a TimeRemaining snapshot on a fixed tick and hands it to a subscriber

from __future__ import annotations

import threading
import time
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Optional

from . import metrics
from .duration import add_years, decompose, percentage_complete, span_ms
from .errors import InvalidParameter
from .events import EventKind, EventSink, emit, make_event
from .model import LifeParameters, TimeRemaining
from .utils import as_aware, utcnow

SnapshotSubscriber = Callable[[TimeRemaining], None]
NowProvider = Callable[[], datetime]


class ClockState(str, Enum):
    IDLE = "IDLE"
    RUNNING = "RUNNING"


def compute_snapshot(params: LifeParameters, now: datetime) -> TimeRemaining:
    """
    Pure tick computation: everything is derived from (params, now).
    Remaining time is clamped at zero once the estimated end date has passed.
    """
    birth = as_aware(params.birthdate)
    now = as_aware(now)
    end = add_years(birth, params.life_expectancy_years)
    remaining = max(0, span_ms(now, end))
    d = decompose(remaining)
    return TimeRemaining(
        years=d.years,
        months=d.months,
        days=d.days,
        hours=d.hours,
        minutes=d.minutes,
        seconds=d.seconds,
        milliseconds=d.milliseconds,
        total_milliseconds_remaining=remaining,
        percentage_complete=percentage_complete(birth, params.life_expectancy_years, now),
        computed_at=now,
    )


def validate_params(params: LifeParameters) -> LifeParameters:
    if not isinstance(params, LifeParameters):
        raise InvalidParameter(f"expected LifeParameters, got {type(params).__name__}")
    if not isinstance(params.birthdate, datetime):
        raise InvalidParameter(f"birthdate must be a datetime, got {params.birthdate!r}")
    p = params.validated()
    # Reject unrepresentable end dates now rather than at tick time
    add_years(p.birthdate, p.life_expectancy_years)
    return p


def _validate_interval(tick_interval_ms: Any) -> float:
    if isinstance(tick_interval_ms, bool) or not isinstance(tick_interval_ms, (int, float)):
        raise InvalidParameter(f"tick interval must be a number of milliseconds, got {tick_interval_ms!r}")
    if tick_interval_ms <= 0:
        raise InvalidParameter(f"tick interval must be > 0 ms, got {tick_interval_ms}")
    return float(tick_interval_ms)


class LifetimeClock:
    """
    Two-state engine (IDLE/RUNNING).

      - start(): validate, emit one snapshot synchronously, then one every tick
      - stop(): cancel the timer; no-op while IDLE
      - update_params(): while RUNNING, stop-then-start in one atomic step

    Snapshots are delivered under the clock's lock and tagged with a
    generation number, so once stop()/update_params() return no snapshot
    for the previous parameters is delivered.

    With threaded=False no timer thread is started and the host drives
    ticks itself through tick().
    """

    def __init__(
        self,
        *,
        now: Optional[NowProvider] = None,
        event_sink: Optional[EventSink] = None,
        threaded: bool = True,
    ) -> None:
        self._now: NowProvider = now or utcnow
        self.event_sink = event_sink
        self.threaded = threaded

        self._lock = threading.RLock()
        self._state = ClockState.IDLE
        self._generation = 0
        self._params: Optional[LifeParameters] = None
        self._interval_ms: Optional[float] = None
        self._on_snapshot: Optional[SnapshotSubscriber] = None
        self._stop_evt: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

        # Health
        self._last_snapshot: Optional[TimeRemaining] = None
        self._ticks = 0
        self._last_error: Optional[str] = None

    # ---------------- Introspection ----------------

    @property
    def state(self) -> ClockState:
        return self._state

    @property
    def running(self) -> bool:
        return self._state is ClockState.RUNNING

    @property
    def params(self) -> Optional[LifeParameters]:
        return self._params

    @property
    def snapshot(self) -> Optional[TimeRemaining]:
        """Latest emitted snapshot (None before the first tick)."""
        return self._last_snapshot

    def health(self) -> Dict[str, Any]:
        snap = self._last_snapshot
        return {
            "state": self._state.value,
            "ticks": self._ticks,
            "interval_ms": self._interval_ms,
            "last_tick_at": snap.computed_at.isoformat() if snap and snap.computed_at else None,
            "last_error": self._last_error,
        }

    def compute(self, now: Optional[datetime] = None) -> TimeRemaining:
        """Snapshot for the current parameters without emitting it."""
        if self._params is None:
            raise InvalidParameter("clock has no life parameters yet")
        return compute_snapshot(self._params, now or self._now())

    # ---------------- Lifecycle ----------------

    def start(self, params: LifeParameters, tick_interval_ms: float, on_snapshot: SnapshotSubscriber) -> None:
        params = validate_params(params)
        interval = _validate_interval(tick_interval_ms)
        if not callable(on_snapshot):
            raise InvalidParameter("on_snapshot must be callable")

        with self._lock:
            restarted = self._state is ClockState.RUNNING
            old = self._cancel_locked()
            self._params = params
            self._interval_ms = interval
            self._on_snapshot = on_snapshot
            self._launch_locked()
        self._join(old)

        metrics.set_clock_running(self.running, restarted=restarted)
        kind = EventKind.ClockRestarted if restarted else EventKind.ClockStarted
        emit(self.event_sink, make_event(kind, interval_ms=interval, life_expectancy_years=params.life_expectancy_years))

    def stop(self) -> None:
        with self._lock:
            if self._state is ClockState.IDLE:
                return
            old = self._cancel_locked()
        self._join(old)
        metrics.set_clock_running(False)
        emit(self.event_sink, make_event(EventKind.ClockStopped, ticks=self._ticks))

    def update_params(self, params: LifeParameters) -> None:
        params = validate_params(params)
        with self._lock:
            if self._state is ClockState.IDLE:
                self._params = params
                return
            old = self._cancel_locked()
            self._params = params
            self._launch_locked()
        self._join(old)

        metrics.set_clock_running(self.running, restarted=True)
        emit(self.event_sink, make_event(EventKind.ClockRestarted, life_expectancy_years=params.life_expectancy_years))

    def tick(self) -> Optional[TimeRemaining]:
        """Compute and deliver one snapshot now. Returns None while IDLE."""
        with self._lock:
            if self._state is not ClockState.RUNNING:
                return None
            return self._deliver()

    # ---------------- Internals ----------------

    def _launch_locked(self) -> None:
        self._generation += 1
        gen = self._generation
        self._state = ClockState.RUNNING
        self._deliver()
        # the subscriber may have stopped or restarted us from inside the first emission
        if gen != self._generation or not self.threaded:
            return
        stop_evt = threading.Event()
        self._stop_evt = stop_evt
        t = threading.Thread(
            target=self._loop,
            args=(gen, stop_evt, (self._interval_ms or 0.0) / 1000.0),
            name="LifetimeClock",
            daemon=True,
        )
        self._thread = t
        t.start()

    def _cancel_locked(self) -> Optional[threading.Thread]:
        self._generation += 1
        if self._stop_evt is not None:
            self._stop_evt.set()
        old = self._thread
        self._stop_evt = None
        self._thread = None
        self._state = ClockState.IDLE
        return old

    def _join(self, t: Optional[threading.Thread]) -> None:
        if t is not None and t is not threading.current_thread():
            t.join()

    def _loop(self, gen: int, stop_evt: threading.Event, interval_s: float) -> None:
        while not stop_evt.wait(interval_s):
            with self._lock:
                if gen != self._generation:
                    return
                self._deliver()

    def _deliver(self) -> Optional[TimeRemaining]:
        t0 = time.perf_counter()
        try:
            snap = compute_snapshot(self._params, self._now())  # type: ignore[arg-type]
        except Exception as e:
            self._record_error(e)
            return None

        self._last_snapshot = snap
        self._ticks += 1
        sub = self._on_snapshot
        try:
            if sub is not None:
                sub(snap)
            self._last_error = None
        except Exception as e:
            self._record_error(e)
        metrics.observe_tick(snap.percentage_complete, time.perf_counter() - t0)
        return snap

    def _record_error(self, e: Exception) -> None:
        self._last_error = f"{type(e).__name__}: {e}"
        metrics.observe_clock_error()
        emit(self.event_sink, make_event(EventKind.ClockError, level="error", error=self._last_error))


__all__ = ["ClockState", "LifetimeClock", "compute_snapshot", "validate_params", "SnapshotSubscriber"]
