"""Print profile statistics and the activity timeline for a task export."""

from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from todo_engine.activity import build_activity, format_timestamp, group_activity, summarize_activity
from todo_engine.adapters import csv_adapter, json_adapter
from todo_engine.config import load_settings
from todo_engine.filtering import count_by_filter, filter_tasks
from todo_engine.logging_setup import setup_logging
from todo_engine.metrics import compute_statistics


def _load_tasks(path: Path, owner_id: str):
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return csv_adapter.parse_lenient(str(path), owner_id)
    if suffix == ".json":
        return json_adapter.parse_lenient(str(path), owner_id)
    raise ValueError("Unsupported input format, expected .csv or .json")


def build_report(tasks: list, now: datetime, week_start: int, selector: str) -> dict:
    items = build_activity(tasks)
    groups = group_activity(items, now=now)
    return {
        "statistics": compute_statistics(tasks, now=now, week_start=week_start),
        "tabs": count_by_filter(tasks),
        "visible": [task.title for task in filter_tasks(tasks, selector)],
        "activity_summary": summarize_activity(items, now=now),
        "timeline": {
            label: [
                {"kind": item.kind, "task": item.task_title, "when": format_timestamp(item.timestamp, now)}
                for item in bucket
            ]
            for label, bucket in groups.items()
        },
    }


def main() -> None:
    settings = load_settings()
    parser = argparse.ArgumentParser(description="Summarize a task export")
    parser.add_argument("--data", default=str(settings.data_path), help="Path to CSV/JSON task export")
    parser.add_argument("--owner", default=settings.owner_id, help="Owner id for records without one")
    parser.add_argument("--filter", default="all", help="Tab filter: all, pending, completed, high-priority")
    parser.add_argument("--now", default=None, help="ISO timestamp to use as the current time")
    args = parser.parse_args()

    setup_logging(settings.log_level, settings.log_dir)

    now = datetime.fromisoformat(args.now) if args.now else datetime.now()
    tasks = _load_tasks(Path(args.data), args.owner)
    report = build_report(tasks, now, settings.week_start, args.filter)

    print(json.dumps(report, indent=2, default=str))


if __name__ == "__main__":
    main()
