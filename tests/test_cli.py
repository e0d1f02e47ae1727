"""CLI tests: every command runs in-process through Click's CliRunner."""

from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path

import pytest
from click.testing import CliRunner

from tasksync import __version__
from tasksync.cli import main
from tasksync.config import RootCache
from tasksync.tasks.io import load_task_file
from tasksync.tasks.model import TaskStatus


@pytest.fixture
def cli_runner():
    """Click CliRunner for invoking the CLI in-process."""
    return CliRunner()


@pytest.fixture
def in_project(project: Path, monkeypatch) -> Path:
    monkeypatch.delenv("TASKSYNC_ROOT", raising=False)
    monkeypatch.delenv("TASKSYNC_ROOT_DIR", raising=False)
    monkeypatch.chdir(project)
    return project


# ── Main entry and help ────────────────────────────────────────────────


class TestCliHelpAndVersion:
    def test_help_long(self, cli_runner):
        r = cli_runner.invoke(main, ["--help"])
        assert r.exit_code == 0
        assert "accept" in r.output
        assert "status" in r.output

    def test_help_short(self, cli_runner):
        r = cli_runner.invoke(main, ["-h"])
        assert r.exit_code == 0
        assert "tasksync" in r.output

    def test_version(self, cli_runner):
        r = cli_runner.invoke(main, ["--version"])
        assert r.exit_code == 0
        assert __version__ in r.output

    def test_module_entry_point(self):
        r = subprocess.run(
            [sys.executable, "-m", "tasksync", "--version"],
            capture_output=True,
            text=True,
            encoding="utf-8",
            timeout=30,
        )
        assert r.returncode == 0
        assert __version__ in r.stdout

    @pytest.mark.parametrize("command", ["accept", "tasks", "status", "sync"])
    def test_subcommand_help(self, cli_runner, command):
        r = cli_runner.invoke(main, [command, "--help"])
        assert r.exit_code == 0


# ── accept ─────────────────────────────────────────────────────────────


class TestCliAccept:
    def test_converts(self, cli_runner, in_project, change_dir, write_tasks_md):
        write_tasks_md("## 1. Setup\n- [ ] 1.1 One\n")
        r = cli_runner.invoke(main, ["accept", "add-auth"])
        assert r.exit_code == 0, r.output
        assert (change_dir / "tasks.jsonc").exists()

    def test_dry_run(self, cli_runner, in_project, change_dir, write_tasks_md):
        write_tasks_md("## 1. Setup\n- [ ] 1.1 One\n")
        r = cli_runner.invoke(main, ["accept", "add-auth", "--dry-run"])
        assert r.exit_code == 0, r.output
        assert not (change_dir / "tasks.jsonc").exists()

    def test_unknown_change(self, cli_runner, in_project):
        r = cli_runner.invoke(main, ["accept", "nope"])
        assert r.exit_code == 1

    def test_format_mismatch(self, cli_runner, in_project, change_dir, write_tasks_md):
        write_tasks_md("nothing to do here\n")
        r = cli_runner.invoke(main, ["accept", "add-auth"])
        assert r.exit_code == 1

    def test_verbose(self, cli_runner, in_project, change_dir, write_tasks_md):
        write_tasks_md("## 1. Setup\n- [ ] 1.1 One\n")
        r = cli_runner.invoke(main, ["-v", "accept", "add-auth"])
        assert r.exit_code == 0, r.output


# ── tasks / status ─────────────────────────────────────────────────────


class TestCliTasks:
    def test_summary(self, cli_runner, in_project, change_dir, write_tasks_md):
        write_tasks_md("## 1. Setup\n- [x] 1.1 One\n- [ ] 1.2 Two\n")
        cli_runner.invoke(main, ["accept", "add-auth"])
        r = cli_runner.invoke(main, ["tasks", "add-auth"])
        assert r.exit_code == 0, r.output
        assert "Setup" in r.output
        assert "1/2" in r.output

    def test_flatten(self, cli_runner, in_project, change_dir, write_tasks_md):
        write_tasks_md("## 1. Setup\n- [ ] 1.1 Create schema\n")
        cli_runner.invoke(main, ["accept", "add-auth"])
        r = cli_runner.invoke(main, ["tasks", "add-auth", "--flatten"])
        assert r.exit_code == 0, r.output
        assert "Create schema" in r.output

    def test_json(self, cli_runner, in_project, change_dir, write_tasks_md):
        write_tasks_md("## 1. Setup\n- [x] 1.1 One\n")
        cli_runner.invoke(main, ["accept", "add-auth"])
        r = cli_runner.invoke(main, ["tasks", "add-auth", "--json"])
        assert r.exit_code == 0, r.output
        data = json.loads(r.output)
        assert data["hierarchical"] is False
        assert data["summary"]["completed"] == 1
        assert data["tasks"][0]["id"] == "1.1"

    def test_not_accepted_yet(self, cli_runner, in_project, change_dir):
        r = cli_runner.invoke(main, ["tasks", "add-auth"])
        assert r.exit_code == 1


class TestCliStatus:
    def test_sets_status(self, cli_runner, in_project, change_dir, write_tasks_md):
        write_tasks_md("## 1. Setup\n- [ ] 1.1 One\n")
        cli_runner.invoke(main, ["accept", "add-auth"])
        r = cli_runner.invoke(main, ["status", "add-auth", "1.1", "in_progress"])
        assert r.exit_code == 0, r.output
        tf = load_task_file(change_dir / "tasks.jsonc")
        assert tf.get_task("1.1").status is TaskStatus.IN_PROGRESS

    def test_rejects_unknown_status(self, cli_runner, in_project, change_dir):
        r = cli_runner.invoke(main, ["status", "add-auth", "1.1", "blocked"])
        assert r.exit_code == 2


class TestCliRootCache:
    def test_cache_passed_as_context_object(self, cli_runner, in_project, change_dir, write_tasks_md):
        write_tasks_md("## 1. Setup\n- [ ] 1.1 One\n")
        cache = RootCache()
        r = cli_runner.invoke(main, ["accept", "add-auth"], obj=cache)
        assert r.exit_code == 0, r.output
        assert cache.root == in_project.resolve()


class TestCliSync:
    def test_sync_one_change(self, cli_runner, in_project, change_dir, write_tasks_md):
        md = write_tasks_md("## 1. Setup\n- [ ] 1.1 One\n")
        cli_runner.invoke(main, ["accept", "add-auth"])
        cli_runner.invoke(main, ["status", "add-auth", "1.1", "completed"])
        r = cli_runner.invoke(main, ["sync", "add-auth"])
        assert r.exit_code == 0, r.output
        assert md.read_text(encoding="utf-8") == "## 1. Setup\n- [x] 1.1 One\n"

    def test_sync_all_changes(self, cli_runner, in_project, change_dir, write_tasks_md):
        md = write_tasks_md("## 1. Setup\n- [ ] 1.1 One\n")
        cli_runner.invoke(main, ["accept", "add-auth"])
        cli_runner.invoke(main, ["status", "add-auth", "1.1", "completed"])
        r = cli_runner.invoke(main, ["sync"])
        assert r.exit_code == 0, r.output
        assert "- [x] 1.1 One" in md.read_text(encoding="utf-8")

    def test_sync_unknown_change(self, cli_runner, in_project):
        r = cli_runner.invoke(main, ["sync", "nope"])
        assert r.exit_code == 1
