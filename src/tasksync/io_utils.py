"""Wrappers for text file I/O with consistent encoding (UTF-8)."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any

PathLike = Path | str


def read_text(path: PathLike, errors: str = "strict", **kwargs: Any) -> str:
    """Read path as text with UTF-8 encoding. Forwards extra kwargs to Path.read_text."""
    p = path if isinstance(path, Path) else Path(path)
    return p.read_text(encoding="utf-8", errors=errors, **kwargs)


def write_text_atomic(path: PathLike, text: str) -> None:
    """Replace *path* with *text* in one step.

    The content goes to a sibling temp file first and is then renamed over
    the target, so readers see either the old file or the complete new one.
    """
    p = path if isinstance(path, Path) else Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{p.name}.", suffix=".tmp", dir=p.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as fh:
            fh.write(text)
        os.replace(tmp_name, p)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
