"""Read side: rehydrate a root task file and its children into one flat list."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field, replace
from pathlib import Path

from tasksync import log
from tasksync.errors import DanglingReferenceError, SourceNotFoundError
from tasksync.tasks.io import load_task_file
from tasksync.tasks.model import Task, TaskFile, TaskStatus, TaskSummary, ref_path


@dataclass
class TaskGraph:
    root: Path
    version: int
    hierarchical: bool
    tasks: list[Task] = field(default_factory=list)
    summary: TaskSummary = field(default_factory=TaskSummary)
    files: list[Path] = field(default_factory=list)

    def leaf_tasks(self) -> list[Task]:
        return [t for t in self.tasks if not t.is_reference]

    def get_task(self, task_id: str) -> Task | None:
        for t in self.tasks:
            if t.id == task_id:
                return t
        return None


# ── Reference resolution ─────────────────────────────────────────────


def resolve_reference(base_dir: Path, reference: str) -> Path:
    """Path a ``$ref:`` pointer names, relative to the referencing file."""
    rel = ref_path(reference)
    if not rel:
        raise DanglingReferenceError(reference)
    target = Path(rel)
    return target if target.is_absolute() else base_dir / target


def expand_include(base_dir: Path, pattern: str) -> list[Path]:
    return sorted(p for p in base_dir.glob(pattern) if p.is_file())


def existing_reference(base_dir: Path, reference: str, strict: bool) -> Path | None:
    try:
        path = resolve_reference(base_dir, reference)
    except DanglingReferenceError:
        if strict:
            raise
        log.warn(f"Ignoring malformed task reference: {reference}")
        return None
    if not path.is_file():
        if strict:
            raise DanglingReferenceError(reference, path)
        log.warn(f"Ignoring dangling task reference: {reference}")
        return None
    return path


def _existing_includes(base_dir: Path, pattern: str, strict: bool) -> list[Path]:
    matches = expand_include(base_dir, pattern)
    if not matches:
        if strict:
            raise DanglingReferenceError(pattern)
        log.warn(f"Include pattern matched no task files: {pattern}")
    return matches


# ── File walk (used by reconciliation) ───────────────────────────────


def _walk_children(
    path: Path, tf: TaskFile, visited: set[Path], strict: bool
) -> Iterator[tuple[Path, TaskFile]]:
    for task in tf.tasks:
        if not task.children:
            continue
        child_path = existing_reference(path.parent, task.children, strict)
        if child_path is None or child_path.resolve() in visited:
            continue
        visited.add(child_path.resolve())
        child = load_task_file(child_path)
        yield child_path, child
        yield from _walk_children(child_path, child, visited, strict)


def iter_task_files(root_path: Path, *, strict: bool = True) -> Iterator[tuple[Path, TaskFile]]:
    """Yield the root file and, for hierarchical roots, every child file once.

    Children named by ``children`` references come first, in root order;
    files found only through ``includes`` follow in sorted order.
    """
    root = load_task_file(root_path)
    yield root_path, root
    if not root.is_hierarchical():
        return

    visited = {root_path.resolve()}
    yield from _walk_children(root_path, root, visited, strict)
    for pattern in root.includes:
        for match in _existing_includes(root_path.parent, pattern, strict):
            if match.resolve() in visited:
                continue
            visited.add(match.resolve())
            child = load_task_file(match)
            yield match, child
            yield from _walk_children(match, child, visited, strict)


# ── Merge ────────────────────────────────────────────────────────────


def prefix_task_id(task_id: str, parent_id: str) -> str:
    if not parent_id or task_id.startswith(parent_id + "."):
        return task_id
    return f"{parent_id}.{task_id}"


def _merge_file(
    path: Path,
    tf: TaskFile,
    parent_id: str,
    merged: list[Task],
    files: list[Path],
    visited: set[Path],
) -> None:
    files.append(path)
    for task in tf.tasks:
        flat = replace(task, id=prefix_task_id(task.id, parent_id))
        merged.append(flat)
        if not task.children:
            continue
        child_path = existing_reference(path.parent, task.children, strict=True)
        assert child_path is not None
        if child_path.resolve() in visited:
            continue
        visited.add(child_path.resolve())
        _merge_file(child_path, load_task_file(child_path), flat.id, merged, files, visited)


def read_task_graph(root_path: Path) -> TaskGraph:
    """Load *root_path* and everything it references into one :class:`TaskGraph`.

    Child task ids are prefixed with their reference task's id unless they
    already carry it. Missing child files raise :class:`DanglingReferenceError`.
    """
    if not root_path.is_file():
        raise SourceNotFoundError(root_path, what="task file")

    root = load_task_file(root_path)
    if not root.is_hierarchical():
        return TaskGraph(
            root=root_path,
            version=root.version,
            hierarchical=False,
            tasks=list(root.tasks),
            summary=TaskSummary.from_tasks(root.tasks),
            files=[root_path],
        )

    merged: list[Task] = []
    files: list[Path] = []
    visited = {root_path.resolve()}
    _merge_file(root_path, root, "", merged, files, visited)

    for pattern in root.includes:
        for match in _existing_includes(root_path.parent, pattern, strict=True):
            if match.resolve() in visited:
                continue
            visited.add(match.resolve())
            child = load_task_file(match)
            _merge_file(match, child, child.parent, merged, files, visited)

    leaves = [t for t in merged if not t.is_reference]
    log.debug(f"Loaded {len(files)} task file(s), {len(leaves)} task(s) from {root_path}")
    return TaskGraph(
        root=root_path,
        version=root.version,
        hierarchical=True,
        tasks=merged,
        summary=TaskSummary.from_tasks(leaves),
        files=files,
    )


def next_pending_task(graph: TaskGraph) -> Task | None:
    """First task (in file order) that still needs doing."""
    for task in graph.leaf_tasks():
        if task.status is TaskStatus.PENDING:
            return task
    return None
