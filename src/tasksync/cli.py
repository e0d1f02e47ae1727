"""tasksync CLI.

Installed as the ``tasksync`` console_script.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from tasksync import __version__
from tasksync.config import Config, RootCache, load_config
from tasksync.errors import TaskSyncError
from tasksync.tasks.model import TaskStatus

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])


def _load_config(cache: RootCache) -> Config:
    return load_config(cache.resolve(Path.cwd()))


def _change_dir(cfg: Config, change_id: str) -> Path:
    change_dir = cfg.change_dir(change_id)
    if not change_dir.is_dir():
        raise TaskSyncError(f"change '{change_id}' not found in {cfg.changes_path}")
    return change_dir


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option("-v", "--verbose", is_flag=True, help="Show debug output")
@click.version_option(__version__, prog_name="tasksync")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """tasksync: turn a change's tasks.md into trackable JSONC task files.

    \b
    EXAMPLES:
      tasksync accept add-auth              # Write tasks.jsonc for a change
      tasksync accept add-auth --dry-run    # Show the layout, write nothing
      tasksync tasks add-auth               # Progress per section
      tasksync status add-auth 1.2 completed
      tasksync sync add-auth                # Tick tasks.md from tasks.jsonc
    """
    from tasksync import log

    log.set_verbose(verbose)
    ctx.ensure_object(RootCache)


# ── Subcommand: accept ───────────────────────────────────────────


@main.command()
@click.argument("change_id")
@click.option("--dry-run", is_flag=True, help="Show the planned files without writing them")
@click.pass_obj
def accept(cache: RootCache, change_id: str, dry_run: bool) -> None:
    """Convert tasks.md of CHANGE_ID into tasks.jsonc.

    Statuses already recorded in existing task files are carried forward,
    so the command can be re-run after editing tasks.md.
    """
    from tasksync import log
    from tasksync.accept import convert_change

    try:
        cfg = _load_config(cache)
        result = convert_change(_change_dir(cfg, change_id), config=cfg, dry_run=dry_run)
    except TaskSyncError as err:
        log.error(str(err))
        sys.exit(1)

    if result.dry_run:
        return
    layout = f"{len(result.written) - 1} child file(s)" if result.hierarchical else "flat"
    log.success(f"Converted {result.task_count} task(s) for {change_id} ({layout})")
    if log.is_verbose():
        for path in result.written:
            log.item(f"wrote {path}")
        for path in result.removed:
            log.item(f"removed {path}")


# ── Subcommand: tasks ────────────────────────────────────────────


@main.command()
@click.argument("change_id")
@click.option("--flatten", is_flag=True, help="List every task instead of section progress")
@click.option("--json", "as_json", is_flag=True, help="Print the merged task list as JSON")
@click.pass_obj
def tasks(cache: RootCache, change_id: str, flatten: bool, as_json: bool) -> None:
    """Show the tasks of CHANGE_ID, following child task files."""
    from tasksync import log
    from tasksync.display import graph_to_json, show_flattened, show_summary
    from tasksync.tasks.grouping import ROOT_FILE_NAME
    from tasksync.tasks.reader import read_task_graph

    try:
        cfg = _load_config(cache)
        graph = read_task_graph(_change_dir(cfg, change_id) / ROOT_FILE_NAME)
    except TaskSyncError as err:
        log.error(str(err))
        sys.exit(1)

    if as_json:
        click.echo(graph_to_json(graph))
    elif flatten:
        show_flattened(graph)
    else:
        show_summary(graph)


# ── Subcommand: status ───────────────────────────────────────────


@main.command()
@click.argument("change_id")
@click.argument("task_id")
@click.argument("status", type=click.Choice([s.value for s in TaskStatus]))
@click.pass_obj
def status(cache: RootCache, change_id: str, task_id: str, status: str) -> None:
    """Set TASK_ID of CHANGE_ID to STATUS."""
    from tasksync import log
    from tasksync.tasks.status import update_task_status

    try:
        cfg = _load_config(cache)
        path = update_task_status(_change_dir(cfg, change_id), task_id, TaskStatus(status))
    except TaskSyncError as err:
        log.error(str(err))
        sys.exit(1)

    log.success(f"Task {task_id} is now {status} ({path.name})")


# ── Subcommand: sync ─────────────────────────────────────────────


@main.command()
@click.argument("change_id", required=False)
@click.pass_obj
def sync(cache: RootCache, change_id: str | None) -> None:
    """Copy recorded statuses back into the tasks.md checkboxes.

    Without CHANGE_ID every active change is synced.
    """
    from tasksync import log
    from tasksync.tasks.sync import sync_all_changes, sync_tasks_to_markdown

    try:
        cfg = _load_config(cache)
        if change_id:
            results = {change_id: sync_tasks_to_markdown(_change_dir(cfg, change_id))}
        else:
            results = sync_all_changes(cfg)
    except TaskSyncError as err:
        log.error(str(err))
        sys.exit(1)

    for cid, count in results.items():
        if count:
            log.item(f"{cid}: {count} checkbox(es) updated")
    log.success(f"Synced {sum(results.values())} task status(es) into tasks.md")


if __name__ == "__main__":
    main()
