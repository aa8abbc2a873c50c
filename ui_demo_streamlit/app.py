"""Streamlit dashboard for todo-engine."""

from __future__ import annotations

import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any

from todo_engine.activity import format_timestamp
from todo_engine.adapters import csv_adapter, json_adapter
from todo_engine.config import load_settings
from todo_engine.logging_setup import setup_logging
from todo_engine.schema import CATEGORIES, PRIORITIES
from todo_engine.store import InMemoryTaskStore
from todo_engine.view_model import TaskViewModel

TABS = [("all", "All"), ("pending", "Pending"), ("completed", "Completed"), ("high-priority", "High priority")]

TIER_LABELS = {
    "excellent": "Excellent",
    "good": "Good",
    "fair": "Fair",
    "needs improvement": "Needs improvement",
}

ACHIEVEMENT_LABELS = {
    "first-task": "First task: you completed your first task",
    "productive": "Productive: 10+ tasks completed",
    "weekly-streak": "Weekly streak: 7+ days in a row",
}


def _parse_tasks_from_path(file_path: str, owner_id: str) -> list:
    suffix = Path(file_path).suffix.lower()
    if suffix == ".csv":
        return csv_adapter.parse_lenient(file_path, owner_id)
    if suffix == ".json":
        return json_adapter.parse_lenient(file_path, owner_id)
    raise ValueError("Unsupported file type. Please use .csv or .json")


def _parse_uploaded(uploaded_file, owner_id: str) -> list:
    suffix = Path(uploaded_file.name).suffix.lower()
    with tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as handle:
        handle.write(uploaded_file.getbuffer())
        temp_path = handle.name
    return _parse_tasks_from_path(temp_path, owner_id)


def build_dashboard(view: TaskViewModel, now: datetime) -> dict[str, Any]:
    """Collect every derived view the dashboard renders."""

    return {
        "tabs": {selector: view.visible(selector) for selector, _ in TABS},
        "tab_counts": view.tab_counts(),
        "statistics": view.statistics(now),
        "activity_summary": view.activity_summary(now),
        "activity_groups": view.activity_groups(now),
    }


def _render_tab(st, view: TaskViewModel, selector: str, tasks: list) -> None:
    if not tasks:
        st.info("No tasks here yet.")
        return
    for task in tasks:
        c1, c2, c3 = st.columns([6, 1, 1])
        due = f" · due {task.due_date:%Y-%m-%d}" if task.due_date else ""
        c1.write(f"**{task.title}** · {task.priority} · {task.category}{due}")
        if task.description:
            c1.caption(task.description)
        if c2.button("Undo" if task.completed else "Done", key=f"{selector}-toggle-{task.id}"):
            view.toggle(task.id)
            st.rerun()
        if c3.button("Delete", key=f"{selector}-delete-{task.id}"):
            view.delete(task.id)
            st.rerun()


def _render_profile(st, result: dict[str, Any], now: datetime) -> None:
    stats = result["statistics"]
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Total tasks", stats["total"])
    c2.metric("Completed", stats["completed_count"], f"{stats['completion_rate']}%")
    c3.metric("Pending", stats["pending_count"])
    c4.metric("Current streak", f"{stats['current_streak']} days")

    st.progress(stats["completion_rate"] / 100.0)
    st.write(f"Productivity: **{TIER_LABELS[stats['productivity_tier']]}**")
    st.write(f"New this week: {stats['this_week_count']} · Overdue: {stats['overdue_count']}")

    p1, p2 = st.columns(2)
    p1.write("**By priority**")
    p1.table([stats["priority_counts"]])
    p2.write("**By category**")
    if stats["category_counts"]:
        p2.table([stats["category_counts"]])
    else:
        p2.write("No tasks yet.")

    for achievement in stats["achievements"]:
        st.success(ACHIEVEMENT_LABELS[achievement])

    st.subheader("Recent activity")
    summary = result["activity_summary"]
    a1, a2, a3, a4 = st.columns(4)
    a1.metric("Created", summary["created_count"])
    a2.metric("Completed", summary["completed_count"])
    a3.metric("Today", summary["today_count"])
    a4.metric("Last 7 days", summary["recent_count"])

    for label, items in result["activity_groups"].items():
        st.markdown(f"**{label}**")
        for item in items:
            verb = "Created" if item.kind == "created" else "Completed"
            st.write(f"{verb} \"{item.task_title}\" · {format_timestamp(item.timestamp, now)}")


def main() -> None:
    import streamlit as st

    settings = load_settings()
    setup_logging(settings.log_level, settings.log_dir)

    st.set_page_config(page_title="Todo Engine", layout="wide")
    st.title("Todo Engine: tasks and profile")

    with st.sidebar:
        st.header("Data")
        owner_id = st.text_input("Owner", value=settings.owner_id)
        uploaded = st.file_uploader("Upload task export", type=["csv", "json"])
        reload_data = st.button("Load tasks", type="primary")

        st.header("New task")
        with st.form("new_task", clear_on_submit=True):
            title = st.text_input("Title")
            description = st.text_area("Description")
            priority = st.selectbox("Priority", options=list(PRIORITIES), index=1)
            category = st.selectbox("Category", options=list(CATEGORIES), index=0)
            has_due = st.checkbox("Has due date")
            due = st.date_input("Due date", disabled=not has_due)
            submitted = st.form_submit_button("Add task")

    try:
        if reload_data or "view" not in st.session_state:
            if "view" in st.session_state:
                st.session_state["view"].close()
            if uploaded is not None:
                tasks = _parse_uploaded(uploaded, owner_id)
            else:
                tasks = _parse_tasks_from_path(str(settings.data_path), owner_id)
            view = TaskViewModel(InMemoryTaskStore(tasks), owner_id, week_start=settings.week_start)
            view.load()
            view.subscribe()
            st.session_state["view"] = view

        view: TaskViewModel = st.session_state["view"]

        if submitted:
            fields = {"description": description, "priority": priority, "category": category}
            if has_due:
                fields["due_date"] = due
            view.create(title, **fields)

        now = datetime.now()
        result = build_dashboard(view, now)

        tabs = st.tabs([f"{label} ({result['tab_counts'][selector]})" for selector, label in TABS] + ["Profile"])
        for tab, (selector, _) in zip(tabs, TABS):
            with tab:
                _render_tab(st, view, selector, result["tabs"][selector])
        with tabs[-1]:
            _render_profile(st, result, now)

    except ValueError as exc:
        st.error(f"Input error: {exc}")
    except OSError as exc:
        st.error(f"Could not read task data: {exc}")


if __name__ == "__main__":
    main()
