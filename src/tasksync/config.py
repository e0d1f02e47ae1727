"""Configuration defaults, env vars, project file and project-root discovery."""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from tasksync.errors import TaskSyncError
from tasksync.io_utils import read_text


CONFIG_FILE_NAME = "tasksync.yaml"
DEFAULT_ROOT_DIR = "spectr"
DEFAULT_SPLIT_THRESHOLD = 20
DEFAULT_APPEND_SECTION = "Automated Tasks"


@dataclass
class AppendTasksConfig:
    """Extra fixed tasks appended after the markdown has been parsed."""

    section: str = DEFAULT_APPEND_SECTION
    tasks: list[str] = field(default_factory=list)


@dataclass
class Config:
    """Runtime configuration for a conversion or read."""

    # Layout
    root_dir: str = ""
    project_root: str = ""

    # Grouping
    split_threshold: int = DEFAULT_SPLIT_THRESHOLD

    # Extra tasks
    append_tasks: AppendTasksConfig | None = None

    def __post_init__(self) -> None:
        if not self.root_dir:
            self.root_dir = os.environ.get("TASKSYNC_ROOT_DIR") or DEFAULT_ROOT_DIR
        if not self.project_root:
            self.project_root = str(Path.cwd())

    def validate(self) -> None:
        if not self.root_dir:
            raise TaskSyncError("root_dir cannot be empty")
        invalid = [c for c in ("/", "\\", "..", "*") if c in self.root_dir]
        if invalid:
            raise TaskSyncError(
                "root_dir must be a simple directory name "
                f"(found invalid characters: {', '.join(invalid)})"
            )
        if self.root_dir.startswith("."):
            raise TaskSyncError("root_dir cannot start with '.' (hidden directories not allowed)")
        if self.split_threshold < 0:
            raise TaskSyncError("split_threshold must be zero or positive")

    @property
    def root_path(self) -> Path:
        return Path(self.project_root) / self.root_dir

    @property
    def changes_path(self) -> Path:
        return self.root_path / "changes"

    def change_dir(self, change_id: str) -> Path:
        return self.changes_path / change_id


def resolve_repo_root(cwd: Path | None = None) -> Path | None:
    """Return the git repository root, or ``None`` outside a repository."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            capture_output=True,
            text=True,
            check=True,
            cwd=cwd,
        )
        return Path(result.stdout.strip())
    except (subprocess.CalledProcessError, FileNotFoundError):
        return None


def _find_upward(start: Path, name: str) -> Path | None:
    for directory in (start, *start.parents):
        candidate = directory / name
        if candidate.exists():
            return candidate
    return None


def find_project_root(cwd: Path) -> Path:
    """Locate the project root for *cwd*.

    Order: ``TASKSYNC_ROOT``, the nearest directory holding ``tasksync.yaml``,
    the nearest directory holding the default root dir, the git root, *cwd*.
    """
    env_root = os.environ.get("TASKSYNC_ROOT")
    if env_root:
        root = Path(env_root)
        return (root if root.is_absolute() else cwd / root).resolve()

    config_file = _find_upward(cwd, CONFIG_FILE_NAME)
    if config_file is not None:
        return config_file.parent

    root_dir = _find_upward(cwd, DEFAULT_ROOT_DIR)
    if root_dir is not None and root_dir.is_dir():
        return root_dir.parent

    return resolve_repo_root(cwd) or cwd


@dataclass
class RootCache:
    """Project-root lookup memoised for a single working directory.

    Usage::

        cache = RootCache()
        root = cache.resolve(Path.cwd())   # walks the filesystem
        root = cache.resolve(Path.cwd())   # cached
    """

    cwd: Path | None = None
    root: Path | None = None

    def resolve(self, cwd: Path) -> Path:
        cwd = cwd.resolve()
        if self.root is None or self.cwd != cwd:
            self.cwd = cwd
            self.root = find_project_root(cwd)
        return self.root


def _parse_append_tasks(raw: object, path: Path) -> AppendTasksConfig | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise TaskSyncError(f"{path}: append_tasks must be a mapping")
    tasks = raw.get("tasks") or []
    if not isinstance(tasks, list) or not all(isinstance(t, str) for t in tasks):
        raise TaskSyncError(f"{path}: append_tasks.tasks must be a list of strings")
    section = raw.get("section") or DEFAULT_APPEND_SECTION
    return AppendTasksConfig(section=str(section), tasks=[t.strip() for t in tasks if t.strip()])


def parse_config_file(path: Path) -> Config:
    """Read a ``tasksync.yaml`` file. Its directory becomes the project root."""
    try:
        data = yaml.safe_load(read_text(path)) or {}
    except yaml.YAMLError as err:
        raise TaskSyncError(f"invalid YAML in {path}: {err}") from err
    if not isinstance(data, dict):
        raise TaskSyncError(f"{path}: top level must be a mapping")

    try:
        threshold = int(data.get("split_threshold", DEFAULT_SPLIT_THRESHOLD))
    except (TypeError, ValueError) as err:
        raise TaskSyncError(f"{path}: split_threshold must be an integer") from err

    cfg = Config(
        root_dir=str(data.get("root_dir") or ""),
        project_root=str(path.parent),
        split_threshold=threshold,
        append_tasks=_parse_append_tasks(data.get("append_tasks"), path),
    )
    cfg.validate()
    return cfg


def load_config(project_root: Path) -> Config:
    """Load configuration for *project_root*, falling back to defaults."""
    config_path = project_root / CONFIG_FILE_NAME
    if config_path.is_file():
        return parse_config_file(config_path)
    cfg = Config(project_root=str(project_root))
    cfg.validate()
    return cfg
