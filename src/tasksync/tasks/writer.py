"""Write a layout plan to disk as one flat file or a root file plus children."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from tasksync import log
from tasksync.errors import SerializationError
from tasksync.tasks.grouping import ROOT_FILE_NAME, UNSECTIONED_ID, ChildPlan, LayoutPlan
from tasksync.tasks.io import save_task_file
from tasksync.tasks.model import Task, TaskFile, make_ref
from tasksync.tasks.reconcile import aggregate_task_status

ROOT_HEADER = """\
// Tasks File (JSONC)
//
// Status values: "pending", "in_progress", "completed".
// Edit "status" as work progresses; re-running `tasksync accept` keeps it.
// Tasks with a "children" reference summarise a child file: their status
// is computed from that file and is rewritten on every conversion.

"""

_CHILD_FILE_RE = re.compile(rf"^tasks-(?:\d+|{UNSECTIONED_ID})\.jsonc$")


def child_file_header(change_id: str, parent_task_id: str) -> str:
    """Comment block written at the top of every child file."""
    return (
        f"// Generated by: tasksync accept {change_id}\n"
        f"// Parent change: {change_id}\n"
        f"// Parent task: {parent_task_id}\n"
        "//\n"
        "// Status Values:\n"
        '//   - "pending": not started yet\n'
        '//   - "in_progress": currently being worked on\n'
        '//   - "completed": finished and verified\n'
        "//\n"
        "// Status Transitions:\n"
        "//   pending -> in_progress -> completed\n"
        "//\n"
        "// Workflow:\n"
        '//   1. Set the task to "in_progress" before you start it\n'
        '//   2. Set it to "completed" as soon as it is done\n'
        '//   3. Pick the next "pending" task\n'
        "//\n"
        "// IMPORTANT - Update Status Immediately:\n"
        "//   - Do NOT batch status updates\n"
        "//   - Do NOT wait until all tasks are done\n"
        "\n"
    )


@dataclass
class WriteResult:
    written: list[Path] = field(default_factory=list)
    removed: list[Path] = field(default_factory=list)
    hierarchical: bool = False


# ── Child file housekeeping ──────────────────────────────────────────


def find_child_files(change_dir: Path) -> list[Path]:
    """Every generated child file currently under *change_dir*."""
    found: list[Path] = []
    if change_dir.is_dir():
        found.extend(
            sorted(p for p in change_dir.iterdir() if p.is_file() and _CHILD_FILE_RE.match(p.name))
        )
        specs_dir = change_dir / "specs"
        if specs_dir.is_dir():
            found.extend(sorted(p for p in specs_dir.glob("*/tasks.jsonc") if p.is_file()))
    return found


def delete_stale_child_files(change_dir: Path, keep: set[str] | None = None) -> list[Path]:
    """Remove child files not listed in *keep* (paths relative to *change_dir*)."""
    keep = keep or set()
    removed: list[Path] = []
    for path in find_child_files(change_dir):
        if path.relative_to(change_dir).as_posix() in keep:
            continue
        try:
            path.unlink()
        except OSError as err:
            raise SerializationError(f"failed to remove stale child file {path}: {err}") from err
        log.debug(f"Removed stale child file {path}")
        removed.append(path)
    return removed


# ── Writers ──────────────────────────────────────────────────────────


def reference_task(child: ChildPlan) -> Task:
    """Root task standing in for *child*, with its aggregate status."""
    if child.capability:
        description = f"{child.section} (capability: {child.capability})"
    else:
        description = child.section or "Tasks without a section"
    return Task(
        id=child.parent_id,
        section=child.section,
        description=description,
        status=aggregate_task_status(child.tasks),
        children=make_ref(child.path),
    )


def write_flat(change_dir: Path, tasks: list[Task]) -> WriteResult:
    result = WriteResult(removed=delete_stale_child_files(change_dir))
    root_path = change_dir / ROOT_FILE_NAME
    save_task_file(root_path, TaskFile(version=1, tasks=list(tasks)), ROOT_HEADER)
    result.written.append(root_path)
    return result


def write_child(path: Path, change_id: str, child: ChildPlan) -> None:
    tf = TaskFile(version=2, tasks=list(child.tasks), parent=child.parent_id)
    save_task_file(path, tf, child_file_header(change_id, child.parent_id))


def write_hierarchical(change_dir: Path, change_id: str, plan: LayoutPlan) -> WriteResult:
    """Write children first, then the root that references them."""
    result = WriteResult(
        removed=delete_stale_child_files(change_dir, set(plan.child_paths)),
        hierarchical=True,
    )

    root_tasks: list[Task] = []
    for entry in plan.entries:
        if isinstance(entry, ChildPlan):
            child_path = change_dir / entry.path
            write_child(child_path, change_id, entry)
            result.written.append(child_path)
            root_tasks.append(reference_task(entry))
        else:
            root_tasks.append(entry)

    root_path = change_dir / ROOT_FILE_NAME
    root = TaskFile(version=2, tasks=root_tasks, includes=list(plan.includes))
    save_task_file(root_path, root, ROOT_HEADER)
    result.written.insert(0, root_path)
    return result


def write_layout(change_dir: Path, change_id: str, plan: LayoutPlan) -> WriteResult:
    if plan.hierarchical:
        return write_hierarchical(change_dir, change_id, plan)
    return write_flat(change_dir, plan.root_tasks)
