"""Error types raised by the conversion pipeline and the task file reader."""

from __future__ import annotations

from pathlib import Path


class TaskSyncError(Exception):
    """Base class for every error tasksync raises on purpose."""


class SourceNotFoundError(TaskSyncError):
    """The change directory or its markdown task source does not exist."""

    def __init__(self, path: Path, what: str = "tasks.md") -> None:
        self.path = path
        super().__init__(f"{what} not found: {path}")


class FormatMismatchError(TaskSyncError):
    """A non-empty markdown source produced no tasks at all."""

    def __init__(self, path: Path | None, line_count: int) -> None:
        self.path = path
        self.line_count = line_count
        where = f" in {path}" if path else ""
        super().__init__(
            f"No task lines recognised{where} ({line_count} non-blank lines). "
            "Expected checklist items like '- [ ] 1.1 Description'."
        )


class DuplicateTaskIdError(TaskSyncError):
    """Two task lines in the markdown source ended up with the same id."""

    def __init__(self, path: Path | None, duplicates: list[str]) -> None:
        self.path = path
        self.duplicates = duplicates
        where = f" in {path}" if path else ""
        super().__init__(
            f"duplicate task id(s){where}: {', '.join(duplicates)}. "
            "Give every section header a distinct number."
        )


class ValidationFailedError(TaskSyncError):
    """The pre-conversion validator rejected the change."""

    def __init__(self, issues: list[object]) -> None:
        self.issues = issues
        super().__init__(f"validation failed with {len(issues)} issue(s)")


class DependencyUnmetError(TaskSyncError):
    """One or more upstream prerequisites of the change are not satisfied."""

    def __init__(self, unmet: list[str]) -> None:
        self.unmet = unmet
        super().__init__(f"unmet dependencies: {', '.join(unmet) or '(unspecified)'}")


class DanglingReferenceError(TaskSyncError):
    """A ``$ref`` or include pattern points at no existing task file."""

    def __init__(self, reference: str, resolved: Path | None = None) -> None:
        self.reference = reference
        self.resolved = resolved
        target = f" ({resolved})" if resolved else ""
        super().__init__(f"dangling task reference: {reference}{target}")


class TaskFileError(TaskSyncError):
    """A task file exists but its content is not a valid task file."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"invalid task file {path}: {reason}")


class SerializationError(TaskSyncError):
    """Writing a task file could not be completed."""
