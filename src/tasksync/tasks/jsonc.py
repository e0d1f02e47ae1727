"""JSONC support: strip ``//`` and ``/* */`` comments plus trailing commas.

Stripping keeps every newline at its original offset so that
:class:`json.JSONDecodeError` line/column numbers still point into the
original file.
"""

from __future__ import annotations

import json
from typing import Any


def strip_jsonc(src: str) -> str:
    """Return *src* as plain JSON with comments and trailing commas blanked out."""
    out: list[str] = []
    i = 0
    n = len(src)
    while i < n:
        ch = src[i]

        if ch == "/" and i + 1 < n and src[i + 1] == "/":
            out.append("  ")
            i += 2
            while i < n and src[i] != "\n":
                out.append(src[i] if src[i] in "\t\r" else " ")
                i += 1
            continue

        if ch == "/" and i + 1 < n and src[i + 1] == "*":
            out.append("  ")
            i += 2
            while i < n and not (src[i] == "*" and i + 1 < n and src[i + 1] == "/"):
                out.append(src[i] if src[i] in "\n\t\r" else " ")
                i += 1
            if i < n:
                out.append("  ")
                i += 2
            continue

        out.append(ch)
        i += 1

        if ch == '"':
            # Copy the string literal verbatim, honouring backslash escapes.
            while i < n:
                c = src[i]
                out.append(c)
                i += 1
                if c == "\\" and i < n:
                    out.append(src[i])
                    i += 1
                elif c == '"':
                    break
        elif ch in "}]":
            _blank_trailing_comma(out)

    return "".join(out)


def _blank_trailing_comma(out: list[str]) -> None:
    """Replace a comma directly before the closing bracket at ``out[-1]``."""
    for j in range(len(out) - 2, -1, -1):
        if out[j].isspace():
            continue
        if out[j] == ",":
            out[j] = " "
        return


def loads(text: str) -> Any:
    """Parse JSONC text. Raises :class:`json.JSONDecodeError` on bad input."""
    return json.loads(strip_jsonc(text))


def dumps(data: Any) -> str:
    """Serialise *data* as indented JSON with a trailing newline.

    ``json`` escapes quotes, backslashes and all control characters, so any
    description survives a dump/load cycle unchanged.
    """
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"
