"""Profile statistics over a user's task list."""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta

from todo_engine.records import as_datetime, clean_tasks, locale_week_start, start_of_week, to_local
from todo_engine.schema import PRIORITIES, Task

_TIERS = ((80, "excellent"), (60, "good"), (40, "fair"))


def completion_rate(completed: int, total: int) -> int:
    """Percentage of completed tasks, rounded half up to an integer."""

    if total <= 0:
        return 0
    return (200 * completed + total) // (2 * total)


def productivity_tier(rate: int) -> str:
    for threshold, label in _TIERS:
        if rate >= threshold:
            return label
    return "needs improvement"


def current_streak(tasks: list[Task], now: datetime | None = None) -> int:
    """Consecutive days, ending today or yesterday, with at least one completion."""

    now = to_local(now or datetime.now())
    days = {
        to_local(task.completed_at).date()
        for task in tasks
        if task.completed and isinstance(task.completed_at, datetime)
    }
    day = now.date()
    if day not in days:
        day -= timedelta(days=1)

    streak = 0
    while day in days:
        streak += 1
        day -= timedelta(days=1)
    return streak


def achievements(completed_count: int, streak: int) -> list[str]:
    earned = []
    if completed_count >= 1:
        earned.append("first-task")
    if completed_count >= 10:
        earned.append("productive")
    if streak >= 7:
        earned.append("weekly-streak")
    return earned


def compute_statistics(tasks: list[Task], now: datetime | None = None, week_start: int | None = None) -> dict:
    """Compute completion, distribution, weekly and overdue statistics."""

    now = to_local(now or datetime.now())
    if week_start is None:
        week_start = locale_week_start()
    tasks = clean_tasks(tasks)

    total = len(tasks)
    completed_count = sum(1 for task in tasks if task.completed)
    rate = completion_rate(completed_count, total)

    by_priority = Counter(task.priority for task in tasks)
    category_counts: dict[str, int] = {}
    for task in tasks:
        category_counts[task.category] = category_counts.get(task.category, 0) + 1

    week_begins = start_of_week(now, week_start)
    this_week = sum(1 for task in tasks if to_local(task.created_at) >= week_begins)

    overdue = 0
    for task in tasks:
        due = as_datetime(task.due_date)
        if due is not None and not task.completed and due < now:
            overdue += 1

    streak = current_streak(tasks, now)

    return {
        "total": total,
        "completed_count": completed_count,
        "pending_count": total - completed_count,
        "completion_rate": rate,
        "priority_counts": {priority: by_priority.get(priority, 0) for priority in PRIORITIES},
        "category_counts": category_counts,
        "this_week_count": this_week,
        "overdue_count": overdue,
        "productivity_tier": productivity_tier(rate),
        "current_streak": streak,
        "achievements": achievements(completed_count, streak),
        "week_started_at": week_begins,
    }
