"""Tests for writing task status changes back into task files."""

from __future__ import annotations

from pathlib import Path

import pytest

from tasksync.accept import convert_change
from tasksync.config import Config
from tasksync.errors import SourceNotFoundError, TaskSyncError
from tasksync.io_utils import read_text
from tasksync.tasks.io import load_task_file
from tasksync.tasks.model import TaskStatus
from tasksync.tasks.status import refresh_reference_statuses, update_task_status


@pytest.fixture
def split_change(change_dir: Path, project: Path, write_tasks_md, sections_markdown) -> Path:
    write_tasks_md(sections_markdown(3, 8))
    convert_change(change_dir, config=Config(project_root=str(project)))
    return change_dir


class TestUpdateTaskStatus:
    def test_flat_file(self, change_dir: Path, project: Path, write_tasks_md):
        write_tasks_md("## 1. A\n- [ ] 1.1 a\n- [ ] 1.2 b\n")
        convert_change(change_dir, config=Config(project_root=str(project)))

        path = update_task_status(change_dir, "1.2", TaskStatus.IN_PROGRESS)
        assert path == change_dir / "tasks.jsonc"
        assert load_task_file(path).get_task("1.2").status is TaskStatus.IN_PROGRESS
        assert read_text(path).startswith("// Tasks File (JSONC)")

    def test_child_file_and_root_aggregate(self, split_change: Path):
        path = update_task_status(split_change, "2.3", TaskStatus.COMPLETED)
        assert path == split_change / "tasks-2.jsonc"
        assert load_task_file(path).get_task("2.3").status is TaskStatus.COMPLETED

        root = load_task_file(split_change / "tasks.jsonc")
        assert root.get_task("2").status is TaskStatus.IN_PROGRESS
        assert root.get_task("1").status is TaskStatus.PENDING

    def test_child_header_is_kept(self, split_change: Path):
        update_task_status(split_change, "1.1", TaskStatus.COMPLETED)
        text = read_text(split_change / "tasks-1.jsonc")
        assert text.startswith("// Generated by: tasksync accept add-auth\n")

    def test_completing_every_child_completes_reference(self, split_change: Path):
        for i in range(1, 9):
            update_task_status(split_change, f"3.{i}", TaskStatus.COMPLETED)
        root = load_task_file(split_change / "tasks.jsonc")
        assert root.get_task("3").status is TaskStatus.COMPLETED

    def test_status_survives_reconversion(self, split_change: Path, project: Path):
        update_task_status(split_change, "1.4", TaskStatus.IN_PROGRESS)
        convert_change(split_change, config=Config(project_root=str(project)))
        child = load_task_file(split_change / "tasks-1.jsonc")
        assert child.get_task("1.4").status is TaskStatus.IN_PROGRESS

    def test_reference_task_is_rejected(self, split_change: Path):
        with pytest.raises(TaskSyncError) as exc:
            update_task_status(split_change, "2", TaskStatus.COMPLETED)
        assert "tasks-2.jsonc" in str(exc.value)

    def test_unknown_task(self, split_change: Path):
        with pytest.raises(TaskSyncError) as exc:
            update_task_status(split_change, "9.9", TaskStatus.COMPLETED)
        assert "not found" in str(exc.value)

    def test_missing_task_file(self, change_dir: Path):
        with pytest.raises(SourceNotFoundError):
            update_task_status(change_dir, "1.1", TaskStatus.COMPLETED)


class TestRefreshReferenceStatuses:
    def test_no_change_leaves_root_alone(self, split_change: Path):
        assert refresh_reference_statuses(split_change / "tasks.jsonc") is False
