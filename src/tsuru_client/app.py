"""Typer application and CLI entry point for tsuru_client.

This module wires the root Typer application, registers the built-in
commands, and implements the plugin-run path.

:func:`main` is the console-script entry point declared in
``pyproject.toml``. Before handing over to Typer it checks whether the
first argument names a built-in command. If not, it tries to run an
installed plugin of that name; a
:class:`~tsuru_client.exceptions.CommandLookupError` means "no such plugin"
and falls through to Typer, which reports the unknown command.

The plugin-run path bypasses Typer's callback, so it forces the pre-run
hook :data:`PLUGIN_NODE` inherits from :data:`ROOT_NODE` (see
:mod:`tsuru_client.hooks`) to get the same output and logging setup.
Unhandled exceptions are written to a crash log under ``~/.tsuru/logs``.
"""

from __future__ import annotations

import os
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Callable, Mapping, Optional

import typer

from tsuru_client import __version__
from tsuru_client.commands.plugin import (
    PLUGIN_INSTALL,
    PLUGIN_LIST,
    PLUGIN_REMOVE,
    PLUGIN_RUN,
    plugin_install,
    plugin_list,
    plugin_remove,
)
from tsuru_client.commands.swap import APP_SWAP, app_swap
from tsuru_client.commands.target import (
    TARGET_ADD,
    TARGET_LIST,
    TARGET_REMOVE,
    TARGET_SET,
    target_add,
    target_list,
    target_remove,
    target_set,
)
from tsuru_client.exit_codes import EXIT_GENERIC_FAILURE
from tsuru_client.hooks import CommandInfo, CommandNode, force_call_pre_run, select_hook


app = typer.Typer(
    name="tsuru",
    help="Command-line client for the tsuru platform-as-a-service.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

_BUILTINS: list[tuple[CommandInfo, Callable[..., None]]] = [
    (APP_SWAP, app_swap),
    (PLUGIN_INSTALL, plugin_install),
    (PLUGIN_REMOVE, plugin_remove),
    (PLUGIN_LIST, plugin_list),
    (TARGET_ADD, target_add),
    (TARGET_LIST, target_list),
    (TARGET_SET, target_set),
    (TARGET_REMOVE, target_remove),
]

for _info, _callback in _BUILTINS:
    app.command(_info.name, help=_info.desc)(_callback)

BUILTIN_COMMANDS = frozenset(info.name for info, _ in _BUILTINS)
"""Names handled by Typer; anything else is tried as a plugin first."""


# ------------------------------------------------------------------ #
# Session setup shared by the Typer callback and the plugin-run path
# ------------------------------------------------------------------ #


def _env_flag(name: str, environ: Optional[Mapping[str, str]] = None) -> bool:
    value = (environ if environ is not None else os.environ).get(name, "")
    return value.lower() in ("1", "true", "yes")


def configure_session(
    verbose: bool = False,
    no_color: bool = False,
    json_output: bool = False,
    quiet: bool = False,
) -> None:
    """Install the global output manager and logging for this invocation."""
    from tsuru_client.output import OutputFormat, OutputManager, configure_logging, set_output

    fmt = OutputFormat.JSON if json_output else OutputFormat.AUTO
    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    configure_logging(verbose)


def _root_pre_run(command: CommandNode, args: list[str]) -> None:
    """Persistent pre-run hook of the root command.

    Plugin arguments belong to the plugin, so settings come from the
    environment (``TSURU_VERBOSE``) rather than from flags.
    """
    configure_session(verbose=_env_flag("TSURU_VERBOSE"))


ROOT_NODE = CommandNode(
    CommandInfo(
        name="tsuru",
        usage="<command> [args...]",
        desc="Command-line client for the tsuru platform-as-a-service.",
    ),
    hook=select_hook(persistent_pre_run=_root_pre_run),
)
PLUGIN_NODE = CommandNode(PLUGIN_RUN, parent=ROOT_NODE)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"tsuru version {__version__}.")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output (also TSURU_VERBOSE=1)."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output for tabular data."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress confirmation messages."
    ),
) -> None:
    """Root callback executed before every built-in command."""
    configure_session(
        verbose=verbose or _env_flag("TSURU_VERBOSE"),
        no_color=no_color,
        json_output=json_output,
        quiet=quiet,
    )


# ------------------------------------------------------------------ #
# Plugin-run path
# ------------------------------------------------------------------ #


def is_plugin_invocation(args: list[str]) -> bool:
    """Return True if *args* should be tried as ``<plugin-name> [args...]``."""
    return bool(args) and not args[0].startswith("-") and args[0] not in BUILTIN_COMMANDS


def run_plugin(args: list[str], environ: Optional[Mapping[str, str]] = None) -> int:
    """Run the plugin named by ``args[0]`` and return its exit status.

    Raises:
        CommandLookupError: If no plugin resolves for the name.
    """
    from tsuru_client.commands.plugin import make_store
    from tsuru_client.config import load_global_config, load_session
    from tsuru_client.plugins.runner import PluginRunner

    config = load_global_config()
    force_call_pre_run(PLUGIN_NODE, args, suppress_errors=config.hooks.suppress_errors)
    PLUGIN_RUN.check_args(args)

    runner = PluginRunner(make_store(), environ=environ)
    return runner.run(args, session_loader=load_session)


# ------------------------------------------------------------------ #
# Entry point
# ------------------------------------------------------------------ #


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to ``~/.tsuru/logs`` and return the log path."""
    from tsuru_client.config import get_logs_dir

    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = get_logs_dir() / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``tsuru`` console script.

    1. Install signal handlers for clean Ctrl-C behaviour.
    2. If the first argument is not a built-in command, try to run it as a
       plugin and exit with the plugin's status.
    3. Otherwise (or if no plugin matched) invoke the Typer application.

    :class:`~tsuru_client.exceptions.TsuruError` instances cause a clean
    exit with the error's ``exit_code``. All other exceptions produce a
    crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    from tsuru_client.exceptions import CommandLookupError

    _setup_signal_handlers()
    try:
        args = sys.argv[1:]
        if is_plugin_invocation(args):
            try:
                sys.exit(run_plugin(args))
            except CommandLookupError as exc:
                from tsuru_client.output import debug

                debug(f"{exc} Falling back to built-in commands.")

        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from tsuru_client.exceptions import TsuruError
        from tsuru_client.output import error

        if isinstance(exc, TsuruError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
