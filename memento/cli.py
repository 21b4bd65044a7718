# memento/cli.py
# Command-line interface for Memento (settings, status, live countdown, goals add/list/remove)

from __future__ import annotations

import argparse
import json
import sys
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .app import MementoApp
from .config import CONFIG
from .errors import MementoError
from .events import MilestoneEvent
from .metrics import serve_metrics
from .model import DisplayUnit, Goal, GoalProgress, TimeRemaining
from .reports import display_value
from .store import FileAdapter
from .utils import iso, parse_instant


# ----------------------------- helpers -----------------------------

def _build_app(args, **kwargs: Any) -> MementoApp:
    data_dir = Path(args.data_dir or CONFIG.DATA_DIR).resolve()
    return MementoApp(FileAdapter(data_dir), **kwargs)

def _instant_from_arg(x: Optional[str], what: str):
    if x is None:
        return None
    dt = parse_instant(x)
    if dt is None:
        raise MementoError(f"invalid {what}: {x!r}")
    return dt

def _goal_to_jsonable(g: Goal, p: Optional[GoalProgress] = None) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "id": g.id,
        "title": g.title,
        "description": g.description,
        "target_date": iso(g.target_date),
        "created_at": iso(g.created_at),
    }
    if p is not None:
        d["days_remaining"] = p.days_remaining
        d["percentage_complete"] = round(p.percentage_complete, 4)
    return d

def _print_table(rows: Sequence[Dict[str, Any]]) -> None:
    if not rows:
        print("(no goals)")
        return
    cols = ["id", "title", "target", "days_left", "progress"]
    widths = {c: len(c) for c in cols}
    for r in rows:
        for k, v in r.items():
            widths[k] = max(widths[k], len(str(v)))
    hdr = "  ".join(k.ljust(widths[k]) for k in cols)
    print(hdr)
    print("-" * len(hdr))
    for r in rows:
        print("  ".join(str(r[c]).ljust(widths[c]) for c in cols))

def _print_settings(app: MementoApp) -> None:
    s = app.settings
    print(f"birthdate:        {s.birthdate.date().isoformat()}")
    print(f"life expectancy:  {s.life_expectancy_years} years")
    print(f"display unit:     {DisplayUnit.parse(s.display_unit).value}")


# ----------------------------- commands -----------------------------

def cmd_show(args) -> int:
    app = _build_app(args)
    if args.json:
        print(json.dumps(app.status()["settings"], indent=2))
    else:
        _print_settings(app)
    return 0

def cmd_set(args) -> int:
    app = _build_app(args)
    enforce = not args.no_bounds
    if args.birthdate is not None:
        app.set_birthdate(_instant_from_arg(args.birthdate, "birthdate"), enforce_form_bounds=enforce)
    if args.life_expectancy is not None:
        app.set_life_expectancy(args.life_expectancy, enforce_form_bounds=enforce)
    if args.unit is not None:
        app.set_display_unit(args.unit)
    if args.json:
        print(json.dumps(app.status()["settings"], indent=2))
    else:
        print("saved")
        _print_settings(app)
    return 0

def cmd_status(args) -> int:
    app = _build_app(args)
    st = app.status(_instant_from_arg(args.now, "--now"))
    if args.json:
        print(json.dumps(st, indent=2))
        return 0
    rem = st["remaining"]
    wk, mo, cal = st["weekly"], st["monthly"], st["calendar"]
    print(f"remaining:   {st['display']}")
    print(f"progress:    {rem['percentage_complete']:.4f}%")
    print(f"weeks:       {wk['lived']:,} lived / {wk['remaining']:,} remaining of {wk['total']:,} ({wk['percent']:.1f}%)")
    print(f"months:      {mo['lived']:,} lived / {mo['remaining']:,} remaining of {mo['total']:,} ({mo['percent']:.1f}%)")
    print(f"quarters:    {cal['lived']} lived / {cal['remaining']} remaining of {cal['total']}")
    return 0

def cmd_watch(args) -> int:
    done = threading.Event()
    count = {"n": 0}

    def on_milestone(ev: MilestoneEvent) -> None:
        print(f"milestone reached: {ev.title} - {ev.description}", flush=True)

    app = _build_app(args, notification_sink=on_milestone)
    unit = app.settings.display_unit
    last = {"text": None}

    def on_snapshot(snap: TimeRemaining) -> None:
        text = f"{display_value(snap, unit)}  {snap.hours:02d}:{snap.minutes:02d}:{snap.seconds:02d}  ({snap.percentage_complete:.6f}%)"
        if text != last["text"]:
            print(text, flush=True)
            last["text"] = text
        count["n"] += 1
        if args.ticks and count["n"] >= args.ticks:
            done.set()

    if args.metrics_port and CONFIG.METRICS_ENABLED:
        serve_metrics(args.metrics_port)
    app.subscribe(on_snapshot)
    app.start(args.interval_ms)
    try:
        done.wait()
    finally:
        app.stop()
    return 0

def cmd_add(args) -> int:
    app = _build_app(args)
    goal = app.add_goal(args.title, args.description, args.target)
    if args.json:
        print(json.dumps(_goal_to_jsonable(goal), indent=2))
    else:
        print(f"created {goal.id} {goal.title} (target {goal.target_date.date().isoformat()})")
    return 0

def cmd_list(args) -> int:
    app = _build_app(args)
    progress = app.goal_progress(_instant_from_arg(args.now, "--now"))
    goals = app.tracker.list_goals()
    if args.json:
        print(json.dumps([_goal_to_jsonable(g, progress.get(g.id)) for g in goals], indent=2))
        return 0
    rows: List[Dict[str, Any]] = []
    for g in goals:
        p = progress[g.id]
        rows.append({
            "id": g.id,
            "title": (g.title or "")[:60],
            "target": g.target_date.date().isoformat(),
            "days_left": p.days_remaining,
            "progress": f"{p.percentage_complete:.1f}%",
        })
    _print_table(rows)
    return 0

def cmd_remove(args) -> int:
    app = _build_app(args)
    removed = app.remove_goal(args.goal_id)
    if not args.quiet:
        print(f"removed {args.goal_id}" if removed else f"no such goal {args.goal_id} (nothing to do)")
    return 0


# ----------------------------- argparse -----------------------------

def _make_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="memento", description="Life countdown, milestones and goals")
    p.add_argument("--data-dir", default=None, help="Directory for state.json (default: data/memento or $MEMENTO_DATA_DIR)")
    p.add_argument("--json", action="store_true", help="Output JSON when applicable")

    sp = p.add_subparsers(dest="cmd", required=True)

    s = sp.add_parser("show", help="Show life settings")
    s.set_defaults(func=cmd_show)

    s = sp.add_parser("set", help="Update life settings")
    s.add_argument("--birthdate", help="ISO date, e.g. 1990-06-15")
    s.add_argument("--life-expectancy", type=int, help="Years (form bounds 50..120 unless --no-bounds)")
    s.add_argument("--unit", choices=[u.value for u in DisplayUnit], help="Countdown display unit")
    s.add_argument("--no-bounds", action="store_true", help="Only reject what the engine rejects (expectancy <= 0)")
    s.set_defaults(func=cmd_set)

    s = sp.add_parser("status", help="One-shot countdown, progress and reports")
    s.add_argument("--now", help="Evaluate at this ISO instant instead of the current time")
    s.set_defaults(func=cmd_status)

    s = sp.add_parser("watch", help="Live countdown with milestone notifications")
    s.add_argument("--interval-ms", type=float, default=None, help=f"Tick interval (default {CONFIG.TICK_MS:g})")
    s.add_argument("--ticks", type=int, default=0, help="Stop after this many ticks (default: run until Ctrl+C)")
    s.add_argument("--metrics-port", type=int, nargs="?", const=CONFIG.METRICS_PORT, default=0,
                   help=f"Serve Prometheus metrics (bare flag: port {CONFIG.METRICS_PORT}; off when MEMENTO_METRICS=0)")
    s.set_defaults(func=cmd_watch)

    s = sp.add_parser("add", help="Add a goal")
    s.add_argument("title", help="Goal title")
    s.add_argument("--target", required=True, help="Target date (ISO), must be in the future")
    s.add_argument("--description", default="", help="Optional description")
    s.set_defaults(func=cmd_add)

    s = sp.add_parser("list", help="List goals with days left and progress")
    s.add_argument("--now", help="Evaluate at this ISO instant instead of the current time")
    s.set_defaults(func=cmd_list)

    s = sp.add_parser("remove", help="Remove a goal (unknown ids are fine)")
    s.add_argument("goal_id")
    s.add_argument("--quiet", action="store_true")
    s.set_defaults(func=cmd_remove)

    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _make_parser()
    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except MementoError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
