"""Demo script for todo-engine."""

import sys
from datetime import datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from todo_engine.activity import format_timestamp
from todo_engine.adapters.json_adapter import parse_lenient
from todo_engine.config import load_settings
from todo_engine.logging_setup import setup_logging
from todo_engine.store import InMemoryTaskStore
from todo_engine.view_model import TaskViewModel


def main() -> None:
    settings = load_settings()
    setup_logging(settings.log_level, settings.log_dir)

    store = InMemoryTaskStore(parse_lenient(str(settings.data_path), settings.owner_id))
    with TaskViewModel(store, settings.owner_id, week_start=settings.week_start) as view:
        task = view.create("Write weekly report", priority="high", category="work")
        view.toggle(task.id)

        print("Tabs:", view.tab_counts())
        print("Pending:", [t.title for t in view.visible("pending")])
        print("Statistics:", view.statistics())

        now = datetime.now()
        for label, items in view.activity_groups(now).items():
            print(label)
            for item in items:
                print(f"  {item.kind:<9} {item.task_title} ({format_timestamp(item.timestamp, now)})")


if __name__ == "__main__":
    main()
