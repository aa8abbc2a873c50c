"""JSON adapter for task exports."""

from __future__ import annotations

import json
import logging

from todo_engine.adapters.fields import parse_record
from todo_engine.schema import Task

logger = logging.getLogger(__name__)


def _load(file_path: str) -> list:
    with open(file_path, encoding="utf-8") as handle:
        payload = json.load(handle)

    if isinstance(payload, dict) and isinstance(payload.get("tasks"), list):
        payload = payload["tasks"]
    if not isinstance(payload, list):
        raise ValueError("JSON payload must be a list of objects")
    return payload


def _parse_item(item, index: int, owner_id: str) -> Task:
    if not isinstance(item, dict):
        raise ValueError(f"Item {index}: expected an object")
    return parse_record(item, f"Item {index}", owner_id)


def parse(file_path: str, owner_id: str = "") -> list[Task]:
    """Parse a JSON task export, failing on the first malformed item."""

    return [_parse_item(item, i, owner_id) for i, item in enumerate(_load(file_path), start=1)]


def parse_lenient(file_path: str, owner_id: str = "") -> list[Task]:
    """Parse a JSON task export, skipping malformed items."""

    tasks: list[Task] = []
    for index, item in enumerate(_load(file_path), start=1):
        try:
            tasks.append(_parse_item(item, index, owner_id))
        except ValueError as exc:
            logger.warning("Skipping task record: %s", exc)
    return tasks
