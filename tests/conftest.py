"""Shared fixtures for tasksync tests.

File handling in tests:
- Use tmp_path for any directory or file creation so tests are isolated and cleaned up.
- Use tasksync.io_utils.read_text and Path.write_text(..., encoding="utf-8") for UTF-8 I/O.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from tasksync import log
from tasksync.tasks.model import Task, TaskFile, TaskStatus


@pytest.fixture(autouse=True)
def _quiet_logs():
    """Reset the global verbose flag between tests."""
    log.set_verbose(False)
    yield
    log.set_verbose(False)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A project root holding an empty ``spectr/changes`` tree."""
    (tmp_path / "spectr" / "changes").mkdir(parents=True)
    return tmp_path


@pytest.fixture
def change_dir(project: Path) -> Path:
    """The directory of a change called ``add-auth``."""
    path = project / "spectr" / "changes" / "add-auth"
    path.mkdir()
    return path


@pytest.fixture
def write_tasks_md(change_dir: Path):
    """Write ``tasks.md`` into the change directory and return its path."""

    def _write(text: str) -> Path:
        path = change_dir / "tasks.md"
        path.write_text(text, encoding="utf-8")
        return path

    return _write


def _make_task(
    id: str,
    section: str = "",
    description: str = "",
    status: TaskStatus = TaskStatus.PENDING,
    children: str = "",
) -> Task:
    return Task(
        id=id,
        section=section,
        description=description or f"Task {id}",
        status=status,
        children=children,
    )


def _make_task_file(
    tasks: list[Task],
    version: int = 1,
    includes: list[str] | None = None,
    parent: str = "",
) -> TaskFile:
    return TaskFile(version=version, tasks=tasks, includes=includes or [], parent=parent)


@pytest.fixture
def make_task():
    """Factory fixture that creates Task instances."""
    return _make_task


@pytest.fixture
def make_task_file():
    """Factory fixture that creates TaskFile instances."""
    return _make_task_file


def _sections_markdown(sections: int, tasks_per_section: int) -> str:
    lines: list[str] = []
    for s in range(1, sections + 1):
        lines.append(f"## {s}. Section {s}")
        lines.extend(f"- [ ] {s}.{t} Task {s}.{t}" for t in range(1, tasks_per_section + 1))
        lines.append("")
    return "\n".join(lines)


@pytest.fixture
def sections_markdown():
    """Factory for markdown with N numbered sections of M unchecked tasks each."""
    return _sections_markdown
