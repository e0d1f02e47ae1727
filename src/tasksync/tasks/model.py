"""Task and TaskFile data models shared by the parser, writer and reader."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

REF_PREFIX = "$ref:"


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass
class Task:
    id: str
    section: str = ""
    description: str = ""
    status: TaskStatus = TaskStatus.PENDING
    children: str = ""

    @property
    def is_reference(self) -> bool:
        return bool(self.children)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "section": self.section,
            "description": self.description,
            "status": self.status.value,
        }
        if self.children:
            data["children"] = self.children
        return data

    @classmethod
    def from_dict(cls, data: Any) -> Task:
        if not isinstance(data, dict):
            raise ValueError(f"task entry must be an object, got {type(data).__name__}")
        task_id = data.get("id")
        if not isinstance(task_id, str) or not task_id:
            raise ValueError("task is missing a string id")
        raw_status = data.get("status", TaskStatus.PENDING.value)
        try:
            status = TaskStatus(raw_status)
        except ValueError:
            raise ValueError(f"task {task_id}: unknown status {raw_status!r}") from None
        return cls(
            id=task_id,
            section=str(data.get("section") or ""),
            description=str(data.get("description") or ""),
            status=status,
            children=str(data.get("children") or ""),
        )


@dataclass
class TaskFile:
    version: int = 1
    tasks: list[Task] = field(default_factory=list)
    includes: list[str] = field(default_factory=list)
    parent: str = ""

    def get_task(self, task_id: str) -> Task | None:
        for t in self.tasks:
            if t.id == task_id:
                return t
        return None

    def has_children_references(self) -> bool:
        return any(t.children for t in self.tasks)

    def is_hierarchical(self) -> bool:
        """``True`` for a v2 root that delegates tasks to child files."""
        return self.version >= 2 and (bool(self.includes) or self.has_children_references())

    def duplicate_ids(self) -> list[str]:
        seen: set[str] = set()
        dupes: list[str] = []
        for t in self.tasks:
            if t.id in seen and t.id not in dupes:
                dupes.append(t.id)
            seen.add(t.id)
        return dupes

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "version": self.version,
            "tasks": [t.to_dict() for t in self.tasks],
        }
        if self.includes:
            data["includes"] = list(self.includes)
        if self.parent:
            data["parent"] = self.parent
        return data

    @classmethod
    def from_dict(cls, data: Any) -> TaskFile:
        if not isinstance(data, dict):
            raise ValueError("top level must be an object")
        version = data.get("version", 1)
        if not isinstance(version, int) or isinstance(version, bool):
            raise ValueError(f"version must be an integer, got {version!r}")
        raw_tasks = data.get("tasks") or []
        if not isinstance(raw_tasks, list):
            raise ValueError("tasks must be a list")
        includes = data.get("includes") or []
        if not isinstance(includes, list) or not all(isinstance(i, str) for i in includes):
            raise ValueError("includes must be a list of strings")
        return cls(
            version=version,
            tasks=[Task.from_dict(t) for t in raw_tasks],
            includes=list(includes),
            parent=str(data.get("parent") or ""),
        )


@dataclass
class TaskSummary:
    total: int = 0
    completed: int = 0
    in_progress: int = 0
    pending: int = 0

    @classmethod
    def from_tasks(cls, tasks: list[Task]) -> TaskSummary:
        summary = cls(total=len(tasks))
        for t in tasks:
            if t.status is TaskStatus.COMPLETED:
                summary.completed += 1
            elif t.status is TaskStatus.IN_PROGRESS:
                summary.in_progress += 1
            else:
                summary.pending += 1
        return summary

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "completed": self.completed,
            "in_progress": self.in_progress,
            "pending": self.pending,
        }


def ref_path(reference: str) -> str:
    """Return the relative path of a ``$ref:`` pointer, or ``""`` if malformed."""
    if not reference.startswith(REF_PREFIX):
        return ""
    return reference[len(REF_PREFIX):].strip()


def make_ref(relative_path: str) -> str:
    return f"{REF_PREFIX}{relative_path}"
