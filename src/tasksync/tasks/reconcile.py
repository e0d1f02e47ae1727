"""Carry task statuses from previously written output onto freshly parsed tasks."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from pathlib import Path

from tasksync import log
from tasksync.tasks.grouping import ROOT_FILE_NAME
from tasksync.tasks.model import Task, TaskStatus
from tasksync.tasks.reader import iter_task_files

StatusMap = dict[str, TaskStatus]


def aggregate_status(statuses: Iterable[TaskStatus]) -> TaskStatus:
    """Roll child statuses up into one.

    Any ``in_progress`` child, or any mix of ``completed`` and ``pending``,
    gives ``in_progress``. Only a uniform set is ``completed`` or
    ``pending``; an empty set is ``pending``.
    """
    seen = set(statuses)
    if not seen:
        return TaskStatus.PENDING
    if TaskStatus.IN_PROGRESS in seen:
        return TaskStatus.IN_PROGRESS
    if seen == {TaskStatus.COMPLETED}:
        return TaskStatus.COMPLETED
    if seen == {TaskStatus.PENDING}:
        return TaskStatus.PENDING
    return TaskStatus.IN_PROGRESS


def aggregate_task_status(tasks: Iterable[Task]) -> TaskStatus:
    return aggregate_status(t.status for t in tasks)


def load_existing_statuses(change_dir: Path) -> StatusMap:
    """Map ``id -> status`` for every task recorded under *change_dir*.

    Reads the root file and, when it is hierarchical, every child file it
    can reach. Reference tasks are skipped since their status is derived.
    The first file to mention an id wins. Child files that have gone
    missing are logged and skipped.
    """
    root_path = change_dir / ROOT_FILE_NAME
    if not root_path.is_file():
        return {}

    status_map: StatusMap = {}
    for path, tf in iter_task_files(root_path, strict=False):
        for task in tf.tasks:
            if task.is_reference:
                continue
            status_map.setdefault(task.id, task.status)
        log.debug(f"Read statuses from {path}")
    return status_map


def merge_status(parsed: TaskStatus, stored: TaskStatus | None) -> TaskStatus:
    """A recorded status always wins; the checkbox only seeds new tasks."""
    return parsed if stored is None else stored


def apply_statuses(tasks: list[Task], status_map: StatusMap) -> list[Task]:
    """Return copies of *tasks* with recorded statuses carried forward."""
    result: list[Task] = []
    carried = 0
    for task in tasks:
        status = merge_status(task.status, status_map.get(task.id))
        if status is not task.status:
            carried += 1
        result.append(replace(task, status=status))
    if carried:
        log.debug(f"Carried forward {carried} recorded status(es)")
    return result
