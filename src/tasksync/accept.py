"""Conversion pipeline: ``tasks.md`` -> reconciled ``tasks.jsonc`` file set.

Steps, in order::

    validate -> check dependencies -> parse -> append extra tasks
             -> choose split strategy -> reconcile statuses -> plan -> write

Nothing is written until every check has passed.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from tasksync import log
from tasksync.config import AppendTasksConfig, Config
from tasksync.errors import (
    DependencyUnmetError,
    DuplicateTaskIdError,
    SourceNotFoundError,
    ValidationFailedError,
)
from tasksync.tasks.grouping import (
    LayoutPlan,
    plan_layout,
    resolve_split_strategy,
    section_number,
)
from tasksync.tasks.model import Task, TaskStatus
from tasksync.tasks.parser import parse_tasks_file
from tasksync.tasks.reconcile import apply_statuses, load_existing_statuses
from tasksync.tasks.writer import write_layout

TASKS_MD = "tasks.md"


# ── Collaborator seams ───────────────────────────────────────────────


@dataclass
class ValidationIssue:
    level: str
    path: str
    message: str


@dataclass
class ValidationReport:
    valid: bool = True
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.level.lower() == "warning"]


@dataclass
class DependencyReport:
    satisfied: bool = True
    unmet: list[str] = field(default_factory=list)


Validator = Callable[[Path], ValidationReport]
DependencyChecker = Callable[[Path], DependencyReport]


@dataclass
class ConversionResult:
    change_dir: Path
    task_count: int = 0
    hierarchical: bool = False
    written: list[Path] = field(default_factory=list)
    removed: list[Path] = field(default_factory=list)
    dry_run: bool = False


# ── Extra tasks ──────────────────────────────────────────────────────


def find_next_section_number(tasks: list[Task]) -> int:
    """One more than the highest section (or bare) number among *tasks*."""
    highest = 0
    for task in tasks:
        head = section_number(task.id) if "." in task.id else task.id
        if head.isdigit():
            highest = max(highest, int(head))
    return highest + 1


def create_appended_tasks(existing: list[Task], cfg: AppendTasksConfig | None) -> list[Task]:
    if cfg is None or not cfg.tasks:
        return []
    section = find_next_section_number(existing)
    return [
        Task(
            id=f"{section}.{i}",
            section=cfg.section,
            description=description,
            status=TaskStatus.PENDING,
        )
        for i, description in enumerate(cfg.tasks, 1)
    ]


# ── Pipeline ─────────────────────────────────────────────────────────


def _run_validation(change_dir: Path, validator: Validator | None) -> None:
    if validator is None:
        return
    log.info("Validating change…")
    report = validator(change_dir)
    if not report.valid:
        for issue in report.issues:
            log.error(f"{issue.level} {issue.path}: {issue.message}")
        raise ValidationFailedError(list(report.issues))
    if report.warnings:
        log.warn(f"Validation passed with {len(report.warnings)} warning(s)")
    else:
        log.success("Validation passed")


def _run_dependency_check(change_dir: Path, checker: DependencyChecker | None) -> None:
    if checker is None:
        return
    report = checker(change_dir)
    if not report.satisfied:
        raise DependencyUnmetError(list(report.unmet))


def find_duplicate_ids(tasks: list[Task]) -> list[str]:
    """Ids used by more than one task, in order of first repeat."""
    seen: set[str] = set()
    duplicates: list[str] = []
    for task in tasks:
        if task.id in seen and task.id not in duplicates:
            duplicates.append(task.id)
        seen.add(task.id)
    return duplicates


def build_plan(change_dir: Path, config: Config) -> tuple[list[Task], LayoutPlan]:
    """Parse, extend and reconcile the tasks of *change_dir* and plan their layout."""
    source = change_dir / TASKS_MD
    tasks = parse_tasks_file(source)
    if not tasks:
        log.warn(f"{TASKS_MD} in {change_dir.name} is empty; nothing to convert")

    tasks = tasks + create_appended_tasks(tasks, config.append_tasks)
    duplicates = find_duplicate_ids(tasks)
    if duplicates:
        raise DuplicateTaskIdError(source, duplicates)
    strategy = resolve_split_strategy(change_dir, config.split_threshold)
    tasks = apply_statuses(tasks, load_existing_statuses(change_dir))
    return tasks, plan_layout(tasks, strategy)


def convert_change(
    change_dir: Path,
    *,
    config: Config,
    validator: Validator | None = None,
    dependency_checker: DependencyChecker | None = None,
    dry_run: bool = False,
) -> ConversionResult:
    """Convert ``<change_dir>/tasks.md`` into the task file set."""
    if not change_dir.is_dir():
        raise SourceNotFoundError(change_dir, what="change directory")
    if not (change_dir / TASKS_MD).is_file():
        raise SourceNotFoundError(change_dir / TASKS_MD)

    _run_validation(change_dir, validator)
    _run_dependency_check(change_dir, dependency_checker)

    tasks, plan = build_plan(change_dir, config)
    result = ConversionResult(
        change_dir=change_dir,
        task_count=len(tasks),
        hierarchical=plan.hierarchical,
        dry_run=dry_run,
    )

    if dry_run:
        layout = f"{len(plan.children)} child file(s)" if plan.hierarchical else "a single flat file"
        log.info(f"Would write {len(tasks)} task(s) for {change_dir.name} as {layout}")
        for path in plan.child_paths:
            log.item(path)
        return result

    written = write_layout(change_dir, change_dir.name, plan)
    result.written = written.written
    result.removed = written.removed
    return result
