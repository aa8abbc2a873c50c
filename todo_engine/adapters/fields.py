"""Field parsing shared by the task record adapters."""

from __future__ import annotations

from datetime import datetime

from todo_engine.schema import CATEGORIES, PRIORITIES, Task

REQUIRED_FIELDS = ("id", "title", "created_at")

# Column names used by the hosted backend and older exports.
ALIASES = {
    "user_id": "owner_id",
    "dueDate": "due_date",
    "createdAt": "created_at",
    "completedAt": "completed_at",
}

_TRUE = {"1", "true", "yes", "y", "on"}
_FALSE = {"0", "false", "no", "n", "off", ""}


def _canonical(record: dict) -> dict:
    return {ALIASES.get(key, key): value for key, value in record.items()}


def _timestamp(value, label: str, field: str) -> datetime | None:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"{label}: malformed {field}") from exc


def _flag(value, label: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower() if value is not None else ""
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"{label}: invalid completed flag '{value}'")


def parse_record(record: dict, label: str, owner_id: str = "") -> Task:
    """Build a Task from a flat mapping, raising ValueError with ``label`` on problems."""

    record = _canonical(record)
    missing = [field for field in REQUIRED_FIELDS if not record.get(field)]
    if missing:
        raise ValueError(f"{label}: missing required fields {missing}")

    priority = str(record.get("priority") or "normal").strip()
    if priority not in PRIORITIES:
        raise ValueError(f"{label}: invalid priority '{priority}'")

    category = str(record.get("category") or "personal").strip()
    if category not in CATEGORIES:
        raise ValueError(f"{label}: invalid category '{category}'")

    return Task(
        id=str(record["id"]).strip(),
        title=str(record["title"]).strip(),
        created_at=_timestamp(record["created_at"], label, "created_at"),
        owner_id=str(record.get("owner_id") or owner_id).strip(),
        description=str(record.get("description") or ""),
        completed=_flag(record.get("completed"), label),
        due_date=_timestamp(record.get("due_date"), label, "due_date"),
        priority=priority,
        category=category,
        completed_at=_timestamp(record.get("completed_at"), label, "completed_at"),
    )
