"""Task store contract and an in-memory reference backend.

The hosted backend owns identity, persistence and change delivery. The rest
of the package only talks to it through :class:`TaskStore`, so any client
object with these five methods can be passed to the view model.
"""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Callable, Optional, Protocol

from todo_engine.schema import CATEGORIES, EDITABLE_FIELDS, PRIORITIES, ChangeEvent, Task

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[ChangeEvent], None]

_CREATE_FIELDS = ("title", "description", "due_date", "priority", "category")


class TaskNotFoundError(KeyError):
    """Raised when a task id is not known to the store."""


class Subscription:
    """Handle for a change-notification registration."""

    def __init__(self, release: Callable[[], None]) -> None:
        self._release: Optional[Callable[[], None]] = release

    @property
    def active(self) -> bool:
        return self._release is not None

    def unsubscribe(self) -> None:
        release, self._release = self._release, None
        if release is not None:
            release()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.unsubscribe()


class TaskStore(Protocol):
    """Operations the backend exposes for one user's tasks."""

    def list_tasks(self, owner_id: str) -> list[Task]: ...

    def create_task(self, owner_id: str, fields: dict) -> Task: ...

    def update_task(self, task_id: str, fields: dict) -> Task: ...

    def delete_task(self, task_id: str) -> None: ...

    def on_change(self, owner_id: str, callback: ChangeCallback) -> Subscription: ...


def validate_fields(fields: dict, allowed: tuple[str, ...]) -> dict:
    """Check field names and values, returning a cleaned copy."""

    unknown = sorted(set(fields) - set(allowed))
    if unknown:
        raise ValueError(f"Unknown task fields {unknown}")

    cleaned = dict(fields)
    if "title" in cleaned:
        title = str(cleaned["title"] or "").strip()
        if not title:
            raise ValueError("Task title must not be empty")
        cleaned["title"] = title
    if "description" in cleaned:
        cleaned["description"] = str(cleaned["description"] or "")
    if "priority" in cleaned and cleaned["priority"] not in PRIORITIES:
        raise ValueError(f"Invalid priority '{cleaned['priority']}'")
    if "category" in cleaned and cleaned["category"] not in CATEGORIES:
        raise ValueError(f"Invalid category '{cleaned['category']}'")
    if "completed" in cleaned and not isinstance(cleaned["completed"], bool):
        raise ValueError(f"Invalid completed flag '{cleaned['completed']}'")
    if cleaned.get("due_date") is not None and not isinstance(cleaned["due_date"], date):
        raise ValueError(f"Invalid due_date '{cleaned['due_date']}', expected a date or datetime")
    if cleaned.get("completed_at") is not None and not isinstance(cleaned["completed_at"], datetime):
        raise ValueError(f"Invalid completed_at '{cleaned['completed_at']}', expected a datetime")
    return cleaned


class InMemoryTaskStore:
    """Dict-backed :class:`TaskStore` that notifies subscribers synchronously."""

    def __init__(
        self,
        tasks: Optional[list[Task]] = None,
        clock: Callable[[], datetime] = datetime.now,
        id_factory: Callable[[], str] = lambda: uuid.uuid4().hex,
    ) -> None:
        self._tasks: dict[str, Task] = {}
        self._subscribers: dict[str, list[ChangeCallback]] = defaultdict(list)
        self._clock = clock
        self._id_factory = id_factory
        for task in tasks or []:
            self._tasks[task.id] = task
        logger.debug("InMemoryTaskStore ready total=%d", len(self._tasks))

    def list_tasks(self, owner_id: str) -> list[Task]:
        return [task for task in self._tasks.values() if task.owner_id == owner_id]

    def create_task(self, owner_id: str, fields: dict) -> Task:
        cleaned = validate_fields(fields, _CREATE_FIELDS)
        if "title" not in cleaned:
            raise ValueError("Task title must not be empty")

        task = Task(id=self._id_factory(), created_at=self._clock(), owner_id=owner_id, **cleaned)
        if task.id in self._tasks:
            raise ValueError(f"Duplicate task id '{task.id}'")
        self._tasks[task.id] = task
        logger.info("Created task id=%s owner=%s", task.id, owner_id)
        self._notify(ChangeEvent(kind="insert", task_id=task.id, owner_id=owner_id, task=task))
        return task

    def update_task(self, task_id: str, fields: dict) -> Task:
        current = self._get(task_id)
        task = replace(current, **validate_fields(fields, EDITABLE_FIELDS))
        self._tasks[task_id] = task
        logger.info("Updated task id=%s fields=%s", task_id, sorted(fields))
        self._notify(ChangeEvent(kind="update", task_id=task_id, owner_id=task.owner_id, task=task))
        return task

    def delete_task(self, task_id: str) -> None:
        task = self._get(task_id)
        del self._tasks[task_id]
        logger.info("Deleted task id=%s", task_id)
        self._notify(ChangeEvent(kind="delete", task_id=task_id, owner_id=task.owner_id))

    def on_change(self, owner_id: str, callback: ChangeCallback) -> Subscription:
        callbacks = self._subscribers[owner_id]
        callbacks.append(callback)
        logger.debug("Subscribed owner=%s listeners=%d", owner_id, len(callbacks))

        def release() -> None:
            if callback in callbacks:
                callbacks.remove(callback)
            logger.debug("Unsubscribed owner=%s listeners=%d", owner_id, len(callbacks))

        return Subscription(release)

    def subscriber_count(self, owner_id: str) -> int:
        return len(self._subscribers.get(owner_id, ()))

    def _get(self, task_id: str) -> Task:
        try:
            return self._tasks[task_id]
        except KeyError:
            raise TaskNotFoundError(task_id) from None

    def _notify(self, event: ChangeEvent) -> None:
        for callback in list(self._subscribers.get(event.owner_id, ())):
            try:
                callback(event)
            except Exception:  # noqa: BLE001
                logger.exception("Change listener failed for %s event on task %s", event.kind, event.task_id)
