"""Record hygiene shared by the derivation modules."""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable

from babel import Locale, UnknownLocaleError

from todo_engine.schema import Task

logger = logging.getLogger(__name__)


def to_local(value: datetime) -> datetime:
    """Return ``value`` as a naive local datetime."""

    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def as_datetime(value: date | datetime | None) -> datetime | None:
    """Coerce a date or datetime to a naive local datetime, dates at midnight."""

    if value is None:
        return None
    if isinstance(value, datetime):
        return to_local(value)
    return datetime.combine(value, time.min)


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def locale_week_start() -> int:
    """First day of the week for the process locale (Monday = 0).

    Falls back to Monday when no locale is configured in the environment.
    """

    try:
        return Locale.default().first_week_day
    except (UnknownLocaleError, ValueError, TypeError) as exc:
        logger.debug("No usable locale for first weekday (%s), using Monday", exc)
        return 0


def start_of_week(moment: datetime, week_start: int) -> datetime:
    """Local midnight of the most recent ``week_start`` weekday (Monday = 0)."""

    offset = (moment.weekday() - week_start) % 7
    return start_of_day(moment) - timedelta(days=offset)


def _problem(record: Any) -> str | None:
    if not isinstance(record, Task):
        return f"unexpected record type {type(record).__name__}"
    if not record.id:
        return "missing id"
    if not record.title:
        return "missing title"
    if not isinstance(record.created_at, datetime):
        return "missing created_at"
    if not isinstance(record.completed, bool):
        return f"completed is {type(record.completed).__name__}, not bool"
    if record.due_date is not None and not isinstance(record.due_date, date):
        return f"due_date is {type(record.due_date).__name__}, not a date"
    if record.completed_at is not None and not isinstance(record.completed_at, datetime):
        return f"completed_at is {type(record.completed_at).__name__}, not a datetime"
    return None


def clean_tasks(tasks: Iterable[Any]) -> list[Task]:
    """Drop malformed records, logging each one, and keep the rest in order."""

    kept: list[Task] = []
    for index, record in enumerate(tasks or ()):
        problem = _problem(record)
        if problem:
            logger.warning("Skipping malformed task record at position %d: %s", index, problem)
            continue
        kept.append(record)
    return kept
