"""Markdown task list parser.

The accepted dialect::

    ## 1. Setup
    - [ ] 1.1 Create the schema
    - [x] 1.2 Wire the handlers
    ## Testing                     <- unnumbered, becomes section 2
    - [ ] Write unit tests         <- id assigned: 2.1

Parsing is a left fold of :func:`step` over the source lines. Every bit of
numbering state lives in an immutable :class:`ParseState`, so a single line
can be fed through :func:`step` on its own in tests.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from pathlib import Path

from tasksync import log
from tasksync.errors import FormatMismatchError, SourceNotFoundError
from tasksync.io_utils import read_text
from tasksync.tasks.model import Task, TaskStatus

SECTION_NUMBERED = re.compile(r"^##\s+(\d+)\.\s+(.+?)\s*$")
SECTION_PLAIN = re.compile(r"^##\s+(.+?)\s*$")
TASK_LINE = re.compile(
    r"^\s*-\s+\[([ xX])\]\s+(?:(\d+(?:\.\d+)*)\.?\s+)?(.*\S)\s*$"
)


@dataclass(frozen=True)
class ParseState:
    """Numbering accumulator threaded through the fold."""

    last_section_num: int = 0
    section_num: int | None = None
    section_name: str = ""
    task_seq: int = 0
    global_seq: int = 0


def match_section(line: str, last_section_num: int) -> tuple[int, str] | None:
    """Return ``(number, name)`` for a section header line, else ``None``."""
    m = SECTION_NUMBERED.match(line)
    if m:
        return int(m.group(1)), m.group(2).strip()
    m = SECTION_PLAIN.match(line)
    if m:
        return last_section_num + 1, m.group(1).strip()
    return None


def assign_task_id(literal: str, section_num: int | None, seq: int, global_seq: int) -> str:
    """Compute the id for the *seq*-th task of a section.

    Ids are positional: a literal id in the source is kept only when it
    already equals the positional one.
    """
    if section_num is None:
        expected = str(global_seq)
    else:
        expected = f"{section_num}.{seq}"
    return literal if literal == expected else expected


def step(state: ParseState, line: str) -> tuple[ParseState, Task | None]:
    """Consume one source line. Returns the new state and the task it produced."""
    header = match_section(line, state.last_section_num)
    if header is not None:
        number, name = header
        return (
            replace(
                state,
                last_section_num=number,
                section_num=number,
                section_name=name,
                task_seq=0,
            ),
            None,
        )

    m = TASK_LINE.match(line)
    if m is None:
        return state, None

    marker, literal, text = m.group(1), m.group(2) or "", m.group(3)
    state = replace(state, task_seq=state.task_seq + 1, global_seq=state.global_seq + 1)
    task = Task(
        id=assign_task_id(literal, state.section_num, state.task_seq, state.global_seq),
        section=state.section_name,
        description=text.strip(),
        status=TaskStatus.COMPLETED if marker in "xX" else TaskStatus.PENDING,
    )
    if literal and literal != task.id:
        log.debug(f"Renumbered task '{literal}' -> '{task.id}'")
    return state, task


def parse_tasks(text: str, source: Path | None = None) -> list[Task]:
    """Parse markdown *text* into tasks in source order.

    Blank input yields ``[]``. Non-blank input without a single task line
    raises :class:`FormatMismatchError`.
    """
    state = ParseState()
    tasks: list[Task] = []
    lines = text.splitlines()
    for line in lines:
        state, task = step(state, line)
        if task is not None:
            tasks.append(task)

    if not tasks:
        non_blank = sum(1 for line in lines if line.strip())
        if non_blank:
            raise FormatMismatchError(source, non_blank)
    return tasks


def parse_tasks_file(path: Path) -> list[Task]:
    if not path.is_file():
        raise SourceNotFoundError(path)
    return parse_tasks(read_text(path), source=path)
