"""In-memory task list for one signed-in user, with derived views."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Optional

from todo_engine.activity import build_activity, group_activity, summarize_activity
from todo_engine.filtering import count_by_filter, filter_tasks
from todo_engine.metrics import compute_statistics
from todo_engine.records import clean_tasks
from todo_engine.schema import ActivityItem, ChangeEvent, Task
from todo_engine.store import Subscription, TaskNotFoundError, TaskStore, validate_fields

logger = logging.getLogger(__name__)

_EDIT_FIELDS = ("title", "description", "due_date", "priority", "category")


class TaskViewModel:
    """
    Owns the authoritative local copy of a user's tasks.

    Mutations of existing tasks are applied locally before the store is called
    and rolled back if the store raises. Change events from the store replace
    whole records by id, so the latest write always wins. All calls must come
    from the same thread or event loop.
    """

    def __init__(
        self,
        store: TaskStore,
        owner_id: str,
        clock: Callable[[], datetime] = datetime.now,
        week_start: Optional[int] = None,
    ) -> None:
        self._store = store
        self.owner_id = owner_id
        self._clock = clock
        self._week_start = week_start
        self._tasks: list[Task] = []
        self._subscription: Optional[Subscription] = None

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    @property
    def subscribed(self) -> bool:
        return self._subscription is not None and self._subscription.active

    # ---- lifecycle ----

    def load(self) -> list[Task]:
        self._tasks = []
        for task in clean_tasks(self._store.list_tasks(self.owner_id)):
            self._upsert(task)
        logger.info("Loaded %d tasks for owner=%s", len(self._tasks), self.owner_id)
        return self.tasks

    def subscribe(self) -> Subscription:
        if self._subscription is None or not self._subscription.active:
            self._subscription = self._store.on_change(self.owner_id, self.apply_event)
        return self._subscription

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
            logger.debug("Released change subscription for owner=%s", self.owner_id)

    def __enter__(self) -> "TaskViewModel":
        try:
            self.load()
            self.subscribe()
        except Exception:
            self.close()
            raise
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ---- mutations ----

    def create(self, title: str, **fields: Any) -> Task:
        task = self._store.create_task(self.owner_id, {"title": title, **fields})
        self._upsert(task)
        return task

    def toggle(self, task_id: str) -> Task:
        current = self._find(task_id)
        completed = not current.completed
        changes = {"completed": completed, "completed_at": self._clock() if completed else None}
        return self._apply_update(task_id, changes)

    def edit(self, task_id: str, **fields: Any) -> Task:
        self._find(task_id)
        return self._apply_update(task_id, validate_fields(fields, _EDIT_FIELDS))

    def delete(self, task_id: str) -> None:
        snapshot = list(self._tasks)
        self._find(task_id)
        self._tasks = [task for task in self._tasks if task.id != task_id]
        try:
            self._store.delete_task(task_id)
        except Exception:
            logger.warning("Delete of task %s failed, restoring local copy", task_id)
            self._tasks = snapshot
            raise

    def apply_event(self, event: ChangeEvent) -> None:
        """Merge a change notification into the local list."""

        if event.owner_id != self.owner_id:
            logger.debug("Ignoring %s event for other owner=%s", event.kind, event.owner_id)
            return

        if event.kind == "delete":
            self._tasks = [task for task in self._tasks if task.id != event.task_id]
        elif event.kind in ("insert", "update"):
            if not clean_tasks([event.task]):
                return
            self._upsert(event.task)
        else:
            logger.warning("Ignoring change event with unknown kind %r", event.kind)

    # ---- derived views ----

    def visible(self, selector: Optional[str] = "all") -> list[Task]:
        return filter_tasks(self._tasks, selector)

    def tab_counts(self) -> dict[str, int]:
        return count_by_filter(self._tasks)

    def statistics(self, now: Optional[datetime] = None) -> dict:
        return compute_statistics(self._tasks, now=now or self._clock(), week_start=self._week_start)

    def activity(self) -> list[ActivityItem]:
        return build_activity(self._tasks)

    def activity_groups(self, now: Optional[datetime] = None) -> dict[str, list[ActivityItem]]:
        return group_activity(self.activity(), now=now or self._clock())

    def activity_summary(self, now: Optional[datetime] = None) -> dict:
        return summarize_activity(self.activity(), now=now or self._clock())

    # ---- helpers ----

    def _find(self, task_id: str) -> Task:
        for task in self._tasks:
            if task.id == task_id:
                return task
        raise TaskNotFoundError(task_id)

    def _upsert(self, task: Task) -> None:
        for index, existing in enumerate(self._tasks):
            if existing.id == task.id:
                self._tasks[index] = task
                return
        self._tasks.append(task)

    def _apply_update(self, task_id: str, changes: dict) -> Task:
        snapshot = list(self._tasks)
        self._upsert(replace(self._find(task_id), **changes))
        try:
            confirmed = self._store.update_task(task_id, changes)
        except Exception:
            logger.warning("Update of task %s failed, restoring local copy", task_id)
            self._tasks = snapshot
            raise
        self._upsert(confirmed)
        return confirmed
