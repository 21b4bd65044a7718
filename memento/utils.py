# memento/utils.py
# Common helpers for Memento: time parsing/formatting, ids, paths, atomic JSON/text writes

from __future__ import annotations

import contextlib
import json
import os
import tempfile
import uuid
from datetime import date, datetime, time, timezone
from pathlib import Path
from typing import Any, Optional, Union

# ---------- time ----------

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def as_aware(dt: datetime) -> datetime:
    """Naive datetimes are taken as wall-clock UTC."""
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)

def iso(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return as_aware(dt).isoformat()

def parse_iso(s: Optional[str]) -> Optional[datetime]:
    if not s:
        return None
    ss = s.strip()
    if ss.endswith("Z"):
        ss = ss[:-1] + "+00:00"
    try:
        return as_aware(datetime.fromisoformat(ss))
    except ValueError:
        return None

def parse_instant(value: Any) -> Optional[datetime]:
    """
    Best-effort conversion to an aware datetime.

    Accepts datetime, date (midnight), ISO-8601 strings (with or without 'Z')
    and unix epoch seconds. Returns None when the value can't be read.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return as_aware(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(float(value), tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        return parse_iso(value)
    return None

# ---------- ids ----------

def mk_id(prefix: str = "g_") -> str:
    return f"{prefix}{uuid.uuid4().hex[:10]}"

# ---------- paths / I/O ----------

def ensure_dir(p: Union[str, Path]) -> Path:
    path = Path(p)
    path.mkdir(parents=True, exist_ok=True)
    return path

def write_text(path: Union[str, Path], text: str) -> Path:
    p = Path(path)
    ensure_dir(p.parent)
    fd, tmpname = tempfile.mkstemp(prefix="._tmp_", dir=str(p.parent))
    os.close(fd)
    tmp = Path(tmpname)
    try:
        tmp.write_text(text, encoding="utf-8")
        tmp.replace(p)
    finally:
        with contextlib.suppress(OSError):
            if tmp.exists():
                tmp.unlink()
    return p

def write_json(path: Union[str, Path], data: Any, *, indent: Optional[int] = 2) -> Path:
    text = json.dumps(data, ensure_ascii=False, indent=indent)
    return write_text(path, text + "\n")

def read_json(path: Union[str, Path], *, default: Any = None) -> Any:
    p = Path(path)
    if not p.exists():
        return default
    try:
        return json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return default


__all__ = [
    "utcnow", "as_aware", "iso", "parse_iso", "parse_instant",
    "mk_id",
    "ensure_dir", "write_text", "write_json", "read_json",
]
