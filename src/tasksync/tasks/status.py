"""Status write-back for tools that work through the generated task files."""

from __future__ import annotations

from pathlib import Path

from tasksync import log
from tasksync.errors import SourceNotFoundError, TaskSyncError
from tasksync.tasks.grouping import ROOT_FILE_NAME
from tasksync.tasks.io import load_task_file, read_header, save_task_file
from tasksync.tasks.model import TaskFile, TaskStatus
from tasksync.tasks.reader import existing_reference, iter_task_files, prefix_task_id
from tasksync.tasks.reconcile import aggregate_task_status


def _find_task_file(root_path: Path, task_id: str) -> tuple[Path, TaskFile, str]:
    """Locate the file holding *task_id*; accepts raw or parent-prefixed ids."""
    reference = ""
    for path, tf in iter_task_files(root_path):
        for task in tf.tasks:
            if task.id != task_id and prefix_task_id(task.id, tf.parent) != task_id:
                continue
            if task.is_reference:
                reference = reference or task.children
                continue
            return path, tf, task.id
    if reference:
        raise TaskSyncError(
            f"task {task_id} summarises {reference}; update its child tasks instead"
        )
    raise TaskSyncError(f"task {task_id} not found under {root_path.parent}")


def refresh_reference_statuses(root_path: Path) -> bool:
    """Recompute the status of every reference task in the root file.

    Returns ``True`` when the root file was rewritten.
    """
    root = load_task_file(root_path)
    changed = False
    for task in root.tasks:
        if not task.children:
            continue
        child_path = existing_reference(root_path.parent, task.children, strict=False)
        if child_path is None:
            continue
        status = aggregate_task_status(load_task_file(child_path).tasks)
        if status is not task.status:
            task.status = status
            changed = True
    if changed:
        save_task_file(root_path, root, read_header(root_path))
    return changed


def update_task_status(change_dir: Path, task_id: str, status: TaskStatus) -> Path:
    """Set *task_id* to *status* in whichever file holds it. Returns that file."""
    root_path = change_dir / ROOT_FILE_NAME
    if not root_path.is_file():
        raise SourceNotFoundError(root_path, what="task file")

    path, tf, raw_id = _find_task_file(root_path, task_id)
    task = tf.get_task(raw_id)
    assert task is not None
    if task.status is not status:
        log.debug(f"Task {task_id}: {task.status.value} -> {status.value}")
        task.status = status
        save_task_file(path, tf, read_header(path))

    if path != root_path:
        refresh_reference_statuses(root_path)
    return path
