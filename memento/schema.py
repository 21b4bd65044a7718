# memento/schema.py
# JSON Schemas + validators for the persisted life-settings and goals records

from __future__ import annotations

from typing import Any, Dict, List

from jsonschema import Draft202012Validator as _Validator


# ---------------------------
# Schemas
# ---------------------------

SETTINGS_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["birthdate", "lifeExpectancyYears"],
    "properties": {
        "birthdate": {"type": "string", "minLength": 1},
        "lifeExpectancyYears": {"type": "integer", "minimum": 1},
        "displayUnit": {"type": "string", "enum": ["years", "days", "hours", "minutes"]},
    },
    "additionalProperties": True,
}

GOAL_RECORD_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["id", "title", "targetDate"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "title": {"type": "string", "minLength": 1},
        "description": {"type": "string"},
        "targetDate": {"type": "string", "minLength": 1},
        "createdAt": {"type": ["string", "null"]},
    },
    "additionalProperties": True,
}

GOALS_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "array",
    "items": GOAL_RECORD_SCHEMA,
}


# ---------------------------
# Public API
# ---------------------------

def validate_settings_record(record: Any) -> None:
    """Raises ValueError with a readable message on failure."""
    _validate_with_schema(SETTINGS_SCHEMA, record, where="life-settings")


def validate_goals_record(records: Any) -> None:
    _validate_with_schema(GOALS_SCHEMA, records, where="life-goals")


def is_valid_goal_record(record: Any) -> bool:
    return _Validator(GOAL_RECORD_SCHEMA).is_valid(record)


# ---------------------------
# Internal: validation runner
# ---------------------------

def _validate_with_schema(schema: Dict[str, Any], instance: Any, *, where: str) -> None:
    validator = _Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: [str(p) for p in e.path])
    if not errors:
        return

    msgs: List[str] = []
    for e in errors[:5]:  # cap to first five
        path = "$" + "".join(f"[{repr(p)}]" if isinstance(p, int) else f".{p}" for p in e.path)
        msgs.append(f"{path}: {e.message}")
    more = "" if len(errors) <= 5 else f" (+{len(errors)-5} more)"
    raise ValueError(f"{where}: schema validation failed: " + "; ".join(msgs) + more)


__all__ = [
    "SETTINGS_SCHEMA",
    "GOAL_RECORD_SCHEMA",
    "GOALS_SCHEMA",
    "validate_settings_record",
    "validate_goals_record",
    "is_valid_goal_record",
]
