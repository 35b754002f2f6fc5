"""Target commands -- manage the tsuru API endpoints the client talks to.

Targets are labelled URLs kept in ``~/.tsuru/targets``; the current one is
recorded in ``~/.tsuru/target`` and can be overridden per invocation with
the ``TSURU_TARGET`` environment variable.

Typical workflow::

    tsuru target-add prod https://tsuru.example.com --set-current
    tsuru target-list
    tsuru target-set staging
    tsuru target-remove prod
"""

from __future__ import annotations

import typer

from tsuru_client.hooks import CommandInfo
from tsuru_client.output import print_table, success


TARGET_ADD = CommandInfo(
    name="target-add",
    usage="target-add <label> <target> [--set-current|-s]",
    desc="Adds a new entry to the list of available targets.",
    min_args=2,
)

TARGET_LIST = CommandInfo(
    name="target-list",
    usage="target-list",
    desc="Displays the list of targets, marking the current one with *.",
    min_args=0,
)

TARGET_SET = CommandInfo(
    name="target-set",
    usage="target-set <label>",
    desc="Change current target (tsuru server).",
    min_args=1,
)

TARGET_REMOVE = CommandInfo(
    name="target-remove",
    usage="target-remove <label>",
    desc="Remove a target from target-list (tsuru server).",
    min_args=1,
)


def target_add(
    label: str = typer.Argument(help="Label identifying the target."),
    url: str = typer.Argument(help="Address of the tsuru server."),
    set_current: bool = typer.Option(
        False, "--set-current", "-s", help="Make the new target the current one."
    ),
) -> None:
    """Add a new target."""
    from tsuru_client.config import add_target

    target = add_target(label, url, set_current=set_current)
    success(f"New target {target.label} -> {target.url} added to target list")
    if set_current:
        success(f"New target is {target.label} -> {target.url}")


def target_list() -> None:
    """List the known targets."""
    from tsuru_client.config import current_target_url, list_targets, normalize_target

    current = current_target_url()
    rows = [
        ["*" if normalize_target(t.url) == current else "", t.label, t.url]
        for t in list_targets()
    ]
    print_table(["", "Label", "URL"], rows, title="Targets")


def target_set(
    label: str = typer.Argument(help="Label of the target to use."),
) -> None:
    """Change the current target."""
    from tsuru_client.config import set_current_target

    target = set_current_target(label)
    success(f"New target is {target.label} -> {target.url}")


def target_remove(
    label: str = typer.Argument(help="Label of the target to remove."),
) -> None:
    """Remove a target."""
    from tsuru_client.config import remove_target

    remove_target(label)
    success(f'Target "{label}" removed.')
