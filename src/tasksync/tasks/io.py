"""Loading and saving individual task files."""

from __future__ import annotations

import json
from pathlib import Path

from tasksync.errors import SerializationError, SourceNotFoundError, TaskFileError
from tasksync.io_utils import read_text, write_text_atomic
from tasksync.tasks import jsonc
from tasksync.tasks.model import TaskFile


def load_task_file(path: Path) -> TaskFile:
    """Read and validate a ``.jsonc`` task file."""
    if not path.is_file():
        raise SourceNotFoundError(path, what="task file")
    try:
        data = jsonc.loads(read_text(path))
    except json.JSONDecodeError as err:
        raise TaskFileError(path, f"line {err.lineno} column {err.colno}: {err.msg}") from err
    except UnicodeDecodeError as err:
        raise TaskFileError(path, f"not valid UTF-8 ({err.reason})") from err

    try:
        tf = TaskFile.from_dict(data)
    except ValueError as err:
        raise TaskFileError(path, str(err)) from err

    dupes = tf.duplicate_ids()
    if dupes:
        raise TaskFileError(path, f"duplicate task id(s): {', '.join(dupes)}")
    return tf


def render_task_file(tf: TaskFile, header: str = "") -> str:
    return header + jsonc.dumps(tf.to_dict())


def save_task_file(path: Path, tf: TaskFile, header: str = "") -> None:
    """Replace *path* with *tf*, prefixed by the comment *header*."""
    text = render_task_file(tf, header)
    try:
        write_text_atomic(path, text)
    except OSError as err:
        raise SerializationError(f"failed to write {path}: {err}") from err


def read_header(path: Path) -> str:
    """Return the leading ``//`` comment block of a task file, blank line included."""
    lines: list[str] = []
    for line in read_text(path).splitlines(keepends=True):
        stripped = line.strip()
        if stripped.startswith("//") or (not stripped and lines):
            lines.append(line)
            continue
        break
    return "".join(lines)
