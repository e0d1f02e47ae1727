"""Push recorded task statuses back into the ``tasks.md`` checkboxes.

The JSONC files are the source of truth once a change has been accepted.
Syncing only flips the checkbox character of task lines whose id has a
recorded status; every other byte of ``tasks.md`` is left as it was.
``completed`` maps to ``[x]``, ``pending`` and ``in_progress`` to ``[ ]``.
"""

from __future__ import annotations

from pathlib import Path

from tasksync import log
from tasksync.config import Config
from tasksync.errors import TaskSyncError
from tasksync.io_utils import read_text, write_text_atomic
from tasksync.tasks.grouping import ROOT_FILE_NAME
from tasksync.tasks.model import TaskStatus
from tasksync.tasks.parser import TASK_LINE, ParseState, step
from tasksync.tasks.reconcile import StatusMap, load_existing_statuses

TASKS_MD = "tasks.md"
ARCHIVE_DIR = "archive"


def checkbox_for(status: TaskStatus) -> str:
    return "x" if status is TaskStatus.COMPLETED else " "


def sync_lines(lines: list[str], status_map: StatusMap) -> tuple[list[str], int]:
    """Rewrite the checkboxes of *lines*. Returns the new lines and how many changed.

    Ids are assigned the same way ``accept`` assigns them, so unnumbered
    and renumbered task lines line up with their recorded entries.
    """
    state = ParseState()
    out: list[str] = []
    changed = 0
    for line in lines:
        state, task = step(state, line.rstrip("\r\n"))
        stored = status_map.get(task.id) if task is not None else None
        if stored is None:
            out.append(line)
            continue
        m = TASK_LINE.match(line)
        assert m is not None
        current, wanted = m.group(1), checkbox_for(stored)
        if (current in "xX") == (wanted == "x"):
            out.append(line)
            continue
        pos = m.start(1)
        out.append(line[:pos] + wanted + line[pos + 1 :])
        changed += 1
    return out, changed


def sync_tasks_to_markdown(change_dir: Path) -> int:
    """Update ``tasks.md`` of *change_dir* from its task files.

    Returns the number of task lines whose checkbox changed. A change that
    has not been accepted yet, or has no ``tasks.md``, is left alone.
    """
    md_path = change_dir / TASKS_MD
    if not (change_dir / ROOT_FILE_NAME).is_file() or not md_path.is_file():
        return 0

    status_map = load_existing_statuses(change_dir)
    lines, changed = sync_lines(read_text(md_path).splitlines(keepends=True), status_map)
    if changed:
        write_text_atomic(md_path, "".join(lines))
        log.debug(f"Updated {changed} checkbox(es) in {md_path}")
    return changed


def active_changes(cfg: Config) -> list[str]:
    """Ids of the change directories under the changes path, archive excluded."""
    if not cfg.changes_path.is_dir():
        return []
    return sorted(
        p.name
        for p in cfg.changes_path.iterdir()
        if p.is_dir() and p.name != ARCHIVE_DIR and not p.name.startswith(".")
    )


def sync_all_changes(cfg: Config) -> dict[str, int]:
    """Sync every active change. A change that fails is logged and skipped."""
    results: dict[str, int] = {}
    for change_id in active_changes(cfg):
        try:
            results[change_id] = sync_tasks_to_markdown(cfg.change_dir(change_id))
        except TaskSyncError as err:
            log.warn(f"sync: {change_id}: {err}")
    return results
