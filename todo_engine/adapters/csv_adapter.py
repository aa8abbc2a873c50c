"""CSV adapter for task exports."""

from __future__ import annotations

import csv
import logging
from typing import Iterator

from todo_engine.adapters.fields import parse_record
from todo_engine.schema import Task

logger = logging.getLogger(__name__)


def _rows(file_path: str) -> Iterator[tuple[int, dict]]:
    with open(file_path, newline="", encoding="utf-8") as handle:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            return
        yield from enumerate(reader, start=2)


def parse(file_path: str, owner_id: str = "") -> list[Task]:
    """Parse CSV file into a list of tasks, failing on the first malformed row."""

    return [parse_record(row, f"Row {row_number}", owner_id) for row_number, row in _rows(file_path)]


def parse_lenient(file_path: str, owner_id: str = "") -> list[Task]:
    """Parse CSV file into a list of tasks, skipping malformed rows."""

    tasks: list[Task] = []
    for row_number, row in _rows(file_path):
        try:
            tasks.append(parse_record(row, f"Row {row_number}", owner_id))
        except ValueError as exc:
            logger.warning("Skipping task record: %s", exc)
    return tasks
