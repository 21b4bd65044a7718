# memento/config.py
# Central configuration for Memento: data paths, tick intervals, settings defaults/bounds, metrics.

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import os

# ---------- Helpers ----------
def _to_bool(v: Optional[str], default: bool) -> bool:
    if v is None:
        return default
    return str(v).strip().lower() in {"1", "true", "yes", "on", "y", "t"}

def _to_int(v: Optional[str], default: int) -> int:
    try:
        return int(v) if v is not None else default
    except ValueError:
        return default

def _to_float(v: Optional[str], default: float) -> float:
    try:
        return float(v) if v is not None else default
    except ValueError:
        return default

# ---------- Config Dataclass ----------
@dataclass
class MementoConfig:
    # Paths
    DATA_DIR: Path = Path("data/memento")

    # Clock
    TICK_MS: float = 100.0                 # sub-second countdown smoothness

    # Settings defaults (first run)
    DEFAULT_LIFE_EXPECTANCY: int = 80
    DEFAULT_AGE_YEARS: int = 30            # default birthdate = now - this many years
    DEFAULT_DISPLAY_UNIT: str = "years"

    # Settings form bounds (engine itself only rejects <= 0)
    MIN_LIFE_EXPECTANCY: int = 50
    MAX_LIFE_EXPECTANCY: int = 120
    EARLIEST_BIRTH_YEAR: int = 1900

    # Metrics
    METRICS_ENABLED: bool = True
    METRICS_PORT: int = 9100

# ---------- Build config with env overrides ----------
def build_from_env() -> MementoConfig:
    cfg = MementoConfig()
    cfg.DATA_DIR = Path(os.getenv("MEMENTO_DATA_DIR") or cfg.DATA_DIR)

    cfg.TICK_MS = _to_float(os.getenv("MEMENTO_TICK_MS"), cfg.TICK_MS)

    cfg.DEFAULT_LIFE_EXPECTANCY = _to_int(os.getenv("MEMENTO_DEFAULT_LIFE_EXPECTANCY"), cfg.DEFAULT_LIFE_EXPECTANCY)
    cfg.DEFAULT_AGE_YEARS = _to_int(os.getenv("MEMENTO_DEFAULT_AGE_YEARS"), cfg.DEFAULT_AGE_YEARS)
    cfg.DEFAULT_DISPLAY_UNIT = os.getenv("MEMENTO_DEFAULT_DISPLAY_UNIT", cfg.DEFAULT_DISPLAY_UNIT)

    cfg.MIN_LIFE_EXPECTANCY = _to_int(os.getenv("MEMENTO_MIN_LIFE_EXPECTANCY"), cfg.MIN_LIFE_EXPECTANCY)
    cfg.MAX_LIFE_EXPECTANCY = _to_int(os.getenv("MEMENTO_MAX_LIFE_EXPECTANCY"), cfg.MAX_LIFE_EXPECTANCY)
    cfg.EARLIEST_BIRTH_YEAR = _to_int(os.getenv("MEMENTO_EARLIEST_BIRTH_YEAR"), cfg.EARLIEST_BIRTH_YEAR)

    cfg.METRICS_ENABLED = _to_bool(os.getenv("MEMENTO_METRICS"), cfg.METRICS_ENABLED)
    cfg.METRICS_PORT = _to_int(os.getenv("MEMENTO_METRICS_PORT"), cfg.METRICS_PORT)
    return cfg

CONFIG = build_from_env()

# ---------- Quick usage notes ----------
# from memento.config import CONFIG
# clock.start(params, CONFIG.TICK_MS, on_snapshot)
# FileAdapter(CONFIG.DATA_DIR)
