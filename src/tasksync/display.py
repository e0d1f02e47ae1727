"""Terminal rendering of task graphs."""

from __future__ import annotations

import json

from rich.markup import escape
from rich.table import Table

from tasksync import log
from tasksync.tasks.model import Task, TaskStatus
from tasksync.tasks.reader import TaskGraph
from tasksync.tasks.reconcile import aggregate_task_status

_ICONS = {
    TaskStatus.COMPLETED: "[green]✓[/green]",
    TaskStatus.IN_PROGRESS: "[yellow]▶[/yellow]",
    TaskStatus.PENDING: "[dim]○[/dim]",
}

UNCATEGORIZED = "Uncategorized"


def status_icon(status: TaskStatus) -> str:
    return _ICONS.get(status, "?")


def section_rollups(tasks: list[Task]) -> list[tuple[str, list[Task]]]:
    """Group leaf tasks by section label, in order of first appearance."""
    sections: dict[str, list[Task]] = {}
    for task in tasks:
        if task.is_reference:
            continue
        sections.setdefault(task.section or UNCATEGORIZED, []).append(task)
    return list(sections.items())


def show_summary(graph: TaskGraph) -> None:
    """Per-section progress followed by the overall total."""
    log.console.print("[bold]Tasks[/bold]")
    for section, tasks in section_rollups(graph.tasks):
        completed = sum(1 for t in tasks if t.status is TaskStatus.COMPLETED)
        in_progress = sum(1 for t in tasks if t.status is TaskStatus.IN_PROGRESS)
        percent = completed / len(tasks) * 100
        line = (
            f"{status_icon(aggregate_task_status(tasks))} {escape(section)}: "
            f"{completed}/{len(tasks)} completed ({percent:.0f}%)"
        )
        if in_progress:
            line += f", {in_progress} in progress"
        log.console.print(line)

    summary = graph.summary
    log.console.print("")
    if summary.total:
        percent = summary.completed / summary.total * 100
        log.console.print(
            f"[bold]Total:[/bold] {summary.completed}/{summary.total} completed ({percent:.0f}%)"
        )
    else:
        log.console.print("[dim]No tasks found[/dim]")


def show_flattened(graph: TaskGraph) -> None:
    table = Table(show_header=True, header_style="bold", box=None)
    table.add_column("", no_wrap=True)
    table.add_column("ID", no_wrap=True)
    table.add_column("Section")
    table.add_column("Description")
    for task in graph.leaf_tasks():
        table.add_row(
            status_icon(task.status), task.id, escape(task.section or "-"), escape(task.description)
        )
    log.console.print(table)

    s = graph.summary
    log.console.print(
        f"Total: {s.total} tasks ({s.completed} completed, "
        f"{s.in_progress} in progress, {s.pending} pending)"
    )


def graph_to_json(graph: TaskGraph) -> str:
    return json.dumps(
        {
            "hierarchical": graph.hierarchical,
            "summary": graph.summary.to_dict(),
            "tasks": [t.to_dict() for t in graph.tasks],
        },
        indent=2,
        ensure_ascii=False,
    )
