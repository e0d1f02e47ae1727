"""Console output via Rich.

Results go to stdout; warnings, errors and debug chatter go to stderr so
that ``tasksync tasks --json`` stays machine readable.
"""

from __future__ import annotations

from rich.console import Console

console = Console(highlight=False)
_err_console = Console(highlight=False, stderr=True)

_verbose = False


def set_verbose(enabled: bool) -> None:
    global _verbose
    _verbose = enabled


def is_verbose() -> bool:
    return _verbose


def info(msg: str) -> None:
    console.print(f"[blue]\\[INFO][/blue] {msg}")


def success(msg: str) -> None:
    console.print(f"[green]\\[OK][/green] {msg}")


def item(msg: str) -> None:
    """One indented entry under a preceding info line."""
    console.print(f"  [dim]-[/dim] {msg}")


def warn(msg: str) -> None:
    _err_console.print(f"[yellow]\\[WARN][/yellow] {msg}")


def error(msg: str) -> None:
    _err_console.print(f"[red]\\[ERROR][/red] {msg}")


def debug(msg: str) -> None:
    if _verbose:
        _err_console.print(f"[dim]\\[DEBUG] {msg}[/dim]")
