# memento/__init__.py
# Memento package initializer: life countdown clock, milestone watcher and goal progress tracker

__all__ = [
    "app", "cli", "clock", "config", "duration", "errors", "events", "metrics",
    "milestones", "model", "reports", "schema", "settings", "store", "tracker", "utils",
]
