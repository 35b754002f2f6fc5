"""The ``app-swap`` command -- swap routing between two applications.

The API refuses to swap apps that have a different number of units or run
on different platforms, answering ``412 Precondition Failed``. The command
then shows the server's warning and asks whether to swap anyway; a ``y`` or
``yes`` answer reissues the request with ``force=true``.

The prompt and the outcome of the exchange are written to stdout together.
"""

from __future__ import annotations

from http import HTTPStatus

import click
import typer

from tsuru_client.client import TsuruClient
from tsuru_client.exceptions import HTTPError
from tsuru_client.hooks import CommandInfo


APP_SWAP = CommandInfo(
    name="app-swap",
    usage="app-swap <app1-name> <app2-name> [-f/--force] [-c/--cname-only]",
    desc=(
        "Swaps routing between two apps. This allows zero downtime and makes "
        "rollback as simple as swapping the applications back.\n\n"
        "Use --force if you want to swap applications with a different number "
        "of units or different platform without confirmation.\n\n"
        "Use --cname-only if you want to swap all cnames except the default "
        "cname of application."
    ),
    min_args=2,
)

_AFFIRMATIVE = ("y", "yes")


def _format_bool(value: bool) -> str:
    return "true" if value else "false"


def swap_apps(
    client: TsuruClient,
    app1: str,
    app2: str,
    force: bool = False,
    cname_only: bool = False,
) -> None:
    """Issue ``PUT /swap`` for *app1* and *app2*.

    Raises:
        HTTPError: If the API refuses the swap (412 when confirmation is
            needed).
        NetworkError: If the API cannot be reached.
    """
    client.put(
        "/swap",
        params={
            "app1": app1,
            "app2": app2,
            "force": _format_bool(force),
            "cnameOnly": _format_bool(cname_only),
        },
    )


def _read_answer() -> str:
    """Read the first word typed on stdin, or ``""`` at end of input."""
    line = click.get_text_stream("stdin").readline()
    words = line.split()
    return words[0] if words else ""


def app_swap(
    app1: str = typer.Argument(help="First application."),
    app2: str = typer.Argument(help="Second application."),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Force Swap among apps with different number of units or different platform.",
    ),
    cname_only: bool = typer.Option(
        False,
        "--cname-only",
        "-c",
        help="Swap all cnames except the default cname.",
    ),
) -> None:
    """Swap routing between two apps.

    Example::

        tsuru app-swap blue green
        tsuru app-swap blue green --force --cname-only
    """
    from tsuru_client.client import create_client

    with create_client() as client:
        try:
            swap_apps(client, app1, app2, force=force, cname_only=cname_only)
        except HTTPError as exc:
            if exc.status_code != HTTPStatus.PRECONDITION_FAILED:
                raise
            typer.echo(
                f"WARNING: {exc.message.rstrip(chr(10))}.\nSwap anyway? (y/n) ",
                nl=False,
            )
            if _read_answer() not in _AFFIRMATIVE:
                typer.echo("swap aborted.")
                return
            swap_apps(client, app1, app2, force=True, cname_only=cname_only)

    typer.echo("Apps successfully swapped!")
