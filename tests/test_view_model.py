import itertools
from datetime import datetime

import pytest

from todo_engine.schema import ChangeEvent, Task
from todo_engine.store import InMemoryTaskStore, TaskNotFoundError
from todo_engine.view_model import TaskViewModel

T0 = datetime.fromisoformat("2026-10-19T09:00:00")
T1 = datetime.fromisoformat("2026-10-19T11:30:00")


class Clock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FlakyStore(InMemoryTaskStore):
    """Store whose writes fail on demand."""

    fail = False

    def update_task(self, task_id, fields):
        if self.fail:
            raise ConnectionError("backend unavailable")
        return super().update_task(task_id, fields)

    def delete_task(self, task_id):
        if self.fail:
            raise ConnectionError("backend unavailable")
        return super().delete_task(task_id)


def make_store(cls=InMemoryTaskStore, clock=None, tasks=None):
    counter = itertools.count(1)
    return cls(tasks=tasks, clock=clock or Clock(T0), id_factory=lambda: f"t{next(counter)}")


def seeded_tasks():
    return [
        Task("a", "Plan sprint", T0, "u1", priority="high", category="work"),
        Task("b", "Read book", T0, "u1", category="study"),
        Task("z", "Someone else's", T0, "u2"),
    ]


def test_load_scopes_to_owner():
    view = TaskViewModel(make_store(tasks=seeded_tasks()), "u1")
    assert [t.id for t in view.load()] == ["a", "b"]


def test_create_appends_once_even_with_echo_event():
    store = make_store()
    with TaskViewModel(store, "u1") as view:
        task = view.create("Write report", priority="high")
        assert [t.id for t in view.tasks] == [task.id]
        assert view.tasks[0].completed is False


def test_create_rejects_empty_title():
    view = TaskViewModel(make_store(), "u1")
    with pytest.raises(ValueError):
        view.create("   ")
    assert view.tasks == []


def test_toggle_stamps_and_clears_completion_time():
    clock = Clock(T0)
    store = make_store(clock=clock)
    view = TaskViewModel(store, "u1", clock=clock)
    task = view.create("Write report")

    clock.now = T1
    done = view.toggle(task.id)
    assert done.completed is True
    assert done.completed_at == T1
    assert [i.id for i in view.activity()] == [f"{task.id}-completed", f"{task.id}-created"]
    assert [i.timestamp for i in view.activity()] == [T1, T0]

    reopened = view.toggle(task.id)
    assert reopened.completed is False
    assert reopened.completed_at is None
    assert store.list_tasks("u1")[0].completed is False


def test_edit_updates_fields_in_place():
    view = TaskViewModel(make_store(tasks=seeded_tasks()), "u1")
    view.load()
    edited = view.edit("b", title="Read two books", priority="low")
    assert [t.id for t in view.tasks] == ["a", "b"]
    assert view.tasks[1] == edited
    assert edited.title == "Read two books"


def test_edit_validates_before_touching_local_state():
    view = TaskViewModel(make_store(tasks=seeded_tasks()), "u1")
    view.load()
    with pytest.raises(ValueError):
        view.edit("b", priority="urgent")
    with pytest.raises(ValueError):
        view.edit("b", completed=True)
    assert view.tasks[1].priority == "normal"


def test_edit_rejects_non_date_due_date():
    view = TaskViewModel(make_store(tasks=seeded_tasks()), "u1", clock=Clock(T1), week_start=0)
    view.load()
    with pytest.raises(ValueError, match="due_date"):
        view.edit("a", due_date="2026-10-01")
    assert view.tasks[0].due_date is None

    view.edit("a", due_date=datetime.fromisoformat("2026-10-01T00:00:00"))
    assert view.statistics()["overdue_count"] == 1


def test_badly_typed_records_from_backend_do_not_break_statistics():
    broken = Task("x", "Backend row", T0, "u1", due_date="2026-10-01")
    view = TaskViewModel(make_store(tasks=seeded_tasks() + [broken]), "u1", clock=Clock(T1), week_start=0)
    assert [t.id for t in view.load()] == ["a", "b"]

    view.apply_event(ChangeEvent("update", "b", "u1", Task("b", "Read book", T0, "u1", completed="false")))
    assert view.tasks[1].completed is False
    stats = view.statistics()
    assert stats["total"] == 2
    assert stats["completed_count"] == 0


def test_delete_removes_task():
    store = make_store(tasks=seeded_tasks())
    view = TaskViewModel(store, "u1")
    view.load()
    view.delete("a")
    assert [t.id for t in view.tasks] == ["b"]
    assert [t.id for t in store.list_tasks("u1")] == ["b"]


def test_unknown_task_id():
    view = TaskViewModel(make_store(), "u1")
    with pytest.raises(TaskNotFoundError):
        view.toggle("missing")
    with pytest.raises(TaskNotFoundError):
        view.delete("missing")


def test_failed_store_write_rolls_back():
    store = make_store(cls=FlakyStore, tasks=seeded_tasks())
    view = TaskViewModel(store, "u1")
    view.load()
    before = view.tasks

    store.fail = True
    with pytest.raises(ConnectionError):
        view.toggle("a")
    assert view.tasks == before
    with pytest.raises(ConnectionError):
        view.delete("b")
    assert view.tasks == before


def test_external_changes_are_merged():
    store = make_store(tasks=seeded_tasks())
    with TaskViewModel(store, "u1") as view:
        other_tab = TaskViewModel(store, "u1")
        other_tab.load()

        created = other_tab.create("From another device")
        other_tab.toggle("a")
        other_tab.delete("b")

        assert [t.id for t in view.tasks] == ["a", created.id]
        assert view.tasks[0].completed is True
        assert view.statistics()["completed_count"] == 1


def test_events_for_other_owner_are_ignored():
    view = TaskViewModel(make_store(), "u1")
    view.apply_event(ChangeEvent("insert", "x", "u2", Task("x", "Not mine", T0, "u2")))
    view.apply_event(ChangeEvent("insert", "y", "u1", Task("y", "", T0, "u1")))
    view.apply_event(ChangeEvent("truncate", "y", "u1"))
    assert view.tasks == []


def test_last_write_wins():
    view = TaskViewModel(make_store(tasks=seeded_tasks()), "u1")
    view.load()
    view.apply_event(ChangeEvent("update", "a", "u1", Task("a", "First", T0, "u1")))
    view.apply_event(ChangeEvent("update", "a", "u1", Task("a", "Second", T0, "u1")))
    assert [t.title for t in view.tasks] == ["Second", "Read book"]


def test_subscription_released_on_exit():
    store = make_store()
    with pytest.raises(RuntimeError):
        with TaskViewModel(store, "u1") as view:
            assert view.subscribed
            assert store.subscriber_count("u1") == 1
            raise RuntimeError("navigated away")
    assert store.subscriber_count("u1") == 0
    assert not view.subscribed

    view.close()
    assert store.subscriber_count("u1") == 0


def test_subscribe_is_not_doubled():
    store = make_store()
    view = TaskViewModel(store, "u1")
    view.subscribe()
    view.subscribe()
    assert store.subscriber_count("u1") == 1
    view.close()


def test_derived_views():
    clock = Clock(T1)
    view = TaskViewModel(make_store(tasks=seeded_tasks()), "u1", clock=clock, week_start=0)
    view.load()
    view.toggle("a")

    assert [t.id for t in view.visible("pending")] == ["b"]
    assert [t.id for t in view.visible("nonsense")] == ["a", "b"]
    assert view.tab_counts() == {"all": 2, "pending": 1, "completed": 1, "high-priority": 1}

    stats = view.statistics()
    assert stats["completion_rate"] == 50
    assert stats["this_week_count"] == 2
    assert stats["current_streak"] == 1

    assert list(view.activity_groups()) == ["Today"]
    assert view.activity_summary()["completed_count"] == 1
