"""Section grouping and the flat-vs-hierarchical layout decision."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from tasksync import log
from tasksync.tasks.model import Task

NO_SECTION = ""
UNSECTIONED_ID = "unsectioned"
ROOT_FILE_NAME = "tasks.jsonc"
CHILD_FILE_GLOB = "tasks-*.jsonc"
CAPABILITY_FILE_GLOB = "specs/*/tasks.jsonc"


def child_file_name(section_num: str) -> str:
    return f"tasks-{section_num}.jsonc"


def capability_file_path(capability: str) -> str:
    return f"specs/{capability}/tasks.jsonc"


def section_number(task_id: str) -> str:
    """Section of a task id: the part before the first dot.

    Bare ids have no section and map to :data:`NO_SECTION`, which no
    numbered header can produce, so ``## 0. Prep`` stays a section of its own.
    """
    if "." not in task_id:
        return NO_SECTION
    return task_id.split(".", 1)[0]


@dataclass
class SectionGroup:
    number: str
    name: str
    tasks: list[Task] = field(default_factory=list)


def group_by_section(tasks: list[Task]) -> list[SectionGroup]:
    """Group tasks by section number, in order of first appearance."""
    groups: dict[str, SectionGroup] = {}
    for task in tasks:
        num = section_number(task.id)
        group = groups.get(num)
        if group is None:
            group = groups[num] = SectionGroup(number=num, name=task.section)
        group.tasks.append(task)
    return list(groups.values())


def distinct_sections(tasks: list[Task]) -> set[str]:
    return {section_number(t.id) for t in tasks} - {NO_SECTION}


def should_split(tasks: list[Task], threshold: int) -> bool:
    """Size heuristic: more than *threshold* tasks across at least two sections."""
    return len(tasks) > threshold and len(distinct_sections(tasks)) > 1


# ── Capability names ─────────────────────────────────────────────────

_LEADING_NOISE = re.compile(r"^[^A-Za-z]+")
_LOWER_UPPER = re.compile(r"([a-z0-9])([A-Z])")
_ACRONYM_WORD = re.compile(r"([A-Z]+)([A-Z][a-z])")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize_section_name(name: str) -> str:
    """Turn a section title into a kebab-case capability name.

    ``"2. User Authentication"`` -> ``"user-authentication"``,
    ``"APIHandlers"`` -> ``"api-handlers"``.
    """
    text = _LEADING_NOISE.sub("", name)
    text = _ACRONYM_WORD.sub(r"\1-\2", text)
    text = _LOWER_UPPER.sub(r"\1-\2", text)
    return _NON_ALNUM.sub("-", text.lower()).strip("-")


def discover_capabilities(change_dir: Path) -> tuple[str, ...]:
    """Names of the delta-spec directories under ``<change>/specs``."""
    specs_dir = change_dir / "specs"
    if not specs_dir.is_dir():
        return ()
    return tuple(
        sorted(p.name for p in specs_dir.iterdir() if p.is_dir() and not p.name.startswith("."))
    )


# ── Split strategy ───────────────────────────────────────────────────


@dataclass(frozen=True)
class BySize:
    threshold: int = 20


@dataclass(frozen=True)
class ByCapability:
    capabilities: tuple[str, ...]


SplitStrategy = BySize | ByCapability


def resolve_split_strategy(change_dir: Path, threshold: int = 20) -> SplitStrategy:
    """Pick the strategy once per run: capabilities win whenever any exist."""
    capabilities = discover_capabilities(change_dir)
    if capabilities:
        log.debug(f"Split strategy: by capability ({', '.join(capabilities)})")
        return ByCapability(capabilities)
    log.debug(f"Split strategy: by size (threshold {threshold})")
    return BySize(threshold)


# ── Layout plan ──────────────────────────────────────────────────────


@dataclass
class ChildPlan:
    """One child file: the tasks it holds and the root task that points at it."""

    parent_id: str
    section: str
    path: str
    tasks: list[Task] = field(default_factory=list)
    capability: str = ""


@dataclass
class LayoutPlan:
    """Where every task goes.

    ``entries`` is the root file in order: plain tasks stay as they are and
    each :class:`ChildPlan` becomes one reference task.
    """

    hierarchical: bool
    entries: list[Task | ChildPlan] = field(default_factory=list)
    includes: list[str] = field(default_factory=list)

    @property
    def children(self) -> list[ChildPlan]:
        return [e for e in self.entries if isinstance(e, ChildPlan)]

    @property
    def root_tasks(self) -> list[Task]:
        return [e for e in self.entries if isinstance(e, Task)]

    @property
    def child_paths(self) -> list[str]:
        return [c.path for c in self.children]


def _flat(tasks: list[Task]) -> LayoutPlan:
    return LayoutPlan(hierarchical=False, entries=list(tasks))


def _unsectioned_child(group: SectionGroup) -> ChildPlan:
    return ChildPlan(
        parent_id=UNSECTIONED_ID,
        section=group.name,
        path=child_file_name(UNSECTIONED_ID),
        tasks=list(group.tasks),
    )


def _plan_by_size(groups: list[SectionGroup]) -> LayoutPlan:
    children = [
        _unsectioned_child(g)
        if g.number == NO_SECTION
        else ChildPlan(
            parent_id=g.number,
            section=g.name,
            path=child_file_name(g.number),
            tasks=list(g.tasks),
        )
        for g in groups
    ]
    return LayoutPlan(hierarchical=True, entries=list(children), includes=[CHILD_FILE_GLOB])


def _plan_by_capability(groups: list[SectionGroup], capabilities: tuple[str, ...]) -> LayoutPlan:
    entries: list[Task | ChildPlan] = []
    by_capability: dict[str, ChildPlan] = {}
    unsectioned: ChildPlan | None = None

    for group in groups:
        if group.number == NO_SECTION:
            unsectioned = _unsectioned_child(group)
            entries.append(unsectioned)
            continue
        capability = normalize_section_name(group.name)
        if capability not in capabilities:
            entries.extend(group.tasks)
            continue
        existing = by_capability.get(capability)
        if existing is not None:
            # Two sections naming the same capability share one child file.
            existing.tasks.extend(group.tasks)
            continue
        child = ChildPlan(
            parent_id=group.number,
            section=group.name,
            path=capability_file_path(capability),
            tasks=list(group.tasks),
            capability=capability,
        )
        by_capability[capability] = child
        entries.append(child)
        log.debug(f"Section '{group.name}' matched capability '{capability}'")

    if not by_capability:
        return _flat([t for g in groups for t in g.tasks])

    includes = [CAPABILITY_FILE_GLOB]
    if unsectioned is not None:
        includes.append(CHILD_FILE_GLOB)
    return LayoutPlan(hierarchical=True, entries=entries, includes=includes)


def plan_layout(tasks: list[Task], strategy: SplitStrategy) -> LayoutPlan:
    """Decide the file layout for *tasks* under *strategy*."""
    groups = group_by_section(tasks)
    if isinstance(strategy, ByCapability):
        return _plan_by_capability(groups, strategy.capabilities)
    if should_split(tasks, strategy.threshold):
        return _plan_by_size(groups)
    return _flat(tasks)
