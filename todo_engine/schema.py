"""Core data schema for tasks and derived records."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

PRIORITIES = ("high", "normal", "low")
CATEGORIES = ("personal", "work", "study", "home")
FILTERS = ("all", "pending", "completed", "high-priority")
CHANGE_KINDS = ("insert", "update", "delete")

# Fields a caller may change after creation.
EDITABLE_FIELDS = ("title", "description", "due_date", "priority", "category", "completed", "completed_at")


@dataclass
class Task:
    """A user-owned to-do item."""

    id: str
    title: str
    created_at: datetime
    owner_id: str
    description: str = ""
    completed: bool = False
    due_date: Optional[datetime] = None
    priority: str = "normal"
    category: str = "personal"
    completed_at: Optional[datetime] = None


@dataclass
class ActivityItem:
    """Synthetic timeline entry derived from a task's creation or completion."""

    id: str
    kind: str
    task_title: str
    timestamp: datetime
    category: str
    priority: str


@dataclass
class ChangeEvent:
    """Change notification delivered by a task store subscription."""

    kind: str
    task_id: str
    owner_id: str
    task: Optional[Task] = None
