"""Tab filters over a task list."""

from __future__ import annotations

import logging
from typing import Callable

from todo_engine.schema import FILTERS, Task

logger = logging.getLogger(__name__)

_ALIASES = {"todos": "all", "high": "high-priority"}

_PREDICATES: dict[str, Callable[[Task], bool]] = {
    "pending": lambda task: not getattr(task, "completed", False),
    "completed": lambda task: bool(getattr(task, "completed", False)),
    "high-priority": lambda task: getattr(task, "priority", None) == "high",
}


def normalize_selector(selector: str | None) -> str:
    """Map a selector to a known filter name, falling back to ``all``."""

    name = str(selector).strip().lower() if selector is not None else "all"
    name = _ALIASES.get(name, name)
    if name not in FILTERS:
        logger.debug("Unknown filter selector %r, showing all tasks", selector)
        return "all"
    return name


def filter_tasks(tasks: list[Task], selector: str | None) -> list[Task]:
    """Return the tasks matching ``selector`` in their original order."""

    predicate = _PREDICATES.get(normalize_selector(selector))
    if predicate is None:
        return list(tasks)
    return [task for task in tasks if predicate(task)]


def count_by_filter(tasks: list[Task]) -> dict[str, int]:
    """Size of every filter tab in one pass."""

    counts = {name: 0 for name in FILTERS}
    for task in tasks:
        counts["all"] += 1
        for name, predicate in _PREDICATES.items():
            counts[name] += 1 if predicate(task) else 0
    return counts
