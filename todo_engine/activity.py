"""Activity timeline synthesized from task state."""

from __future__ import annotations

import calendar
from datetime import datetime, timedelta

from todo_engine.records import clean_tasks, to_local
from todo_engine.schema import ActivityItem, Task

# Inclusive: an item exactly 7 whole days old still gets a weekday label.
RECENT_DAYS = 7


def _completion_time(task: Task, created: datetime) -> datetime:
    if isinstance(task.completed_at, datetime):
        completed = to_local(task.completed_at)
        if completed >= created:
            return completed
    return created


def build_activity(tasks: list[Task]) -> list[ActivityItem]:
    """Return created/completed items, newest first, ties kept in input order."""

    items: list[ActivityItem] = []
    for task in clean_tasks(tasks):
        created = to_local(task.created_at)
        items.append(
            ActivityItem(
                id=f"{task.id}-created",
                kind="created",
                task_title=task.title,
                timestamp=created,
                category=task.category,
                priority=task.priority,
            )
        )
        if task.completed:
            items.append(
                ActivityItem(
                    id=f"{task.id}-completed",
                    kind="completed",
                    task_title=task.title,
                    timestamp=_completion_time(task, created),
                    category=task.category,
                    priority=task.priority,
                )
            )

    # sorted() keeps equal keys in input order even with reverse=True.
    return sorted(items, key=lambda item: item.timestamp, reverse=True)


def _date_label(moment: datetime, now: datetime) -> str:
    label = f"{calendar.month_name[moment.month]} {moment.day}"
    if moment.year != now.year:
        label = f"{label}, {moment.year}"
    return label


def bucket_label(moment: datetime, now: datetime | None = None) -> str:
    """Display bucket for a timestamp: Today, Yesterday, weekday or date."""

    now = to_local(now or datetime.now())
    moment = to_local(moment)
    today = now.date()

    if moment.date() == today:
        return "Today"
    if moment.date() == today - timedelta(days=1):
        return "Yesterday"
    if (now - moment).days <= RECENT_DAYS:
        return calendar.day_name[moment.weekday()]
    return _date_label(moment, now)


def format_timestamp(moment: datetime, now: datetime | None = None) -> str:
    now = to_local(now or datetime.now())
    moment = to_local(moment)
    return f"{bucket_label(moment, now)} at {moment:%H:%M}"


def group_activity(items: list[ActivityItem], now: datetime | None = None) -> dict[str, list[ActivityItem]]:
    """Group items into display buckets in first-populated order."""

    now = to_local(now or datetime.now())
    groups: dict[str, list[ActivityItem]] = {}
    for item in items:
        groups.setdefault(bucket_label(item.timestamp, now), []).append(item)
    return groups


def summarize_activity(items: list[ActivityItem], now: datetime | None = None) -> dict:
    """Headline counts shown above the timeline."""

    now = to_local(now or datetime.now())
    today = now.date()
    return {
        "created_count": sum(1 for item in items if item.kind == "created"),
        "completed_count": sum(1 for item in items if item.kind == "completed"),
        "today_count": sum(1 for item in items if item.timestamp.date() == today),
        "recent_count": sum(1 for item in items if (now - item.timestamp).days <= RECENT_DAYS),
    }
