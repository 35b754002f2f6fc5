"""Resolve and execute a plugin as a child process.

``tsuru <name> [args...]`` runs the plugin *name* with the remaining
arguments. The child inherits the parent's environment plus three entries
describing the current session::

    TSURU_TARGET       URL of the current target
    TSURU_TOKEN        session token
    TSURU_PLUGIN_NAME  name the plugin was invoked as

and is wired straight to the caller's stdin, stdout and stderr; its output
is not captured or post-processed.

``TSURU_PLUGIN_NAME`` doubles as a recursion guard: a plugin that calls
``tsuru <its-own-name>`` must reach a built-in command rather than start
itself again, so a name equal to the marker never resolves.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
from pathlib import Path
from typing import IO, Any, Callable, Mapping, Optional

from tsuru_client.exceptions import CommandLookupError, InvalidUsageError, PluginError
from tsuru_client.models import Session
from tsuru_client.plugins.store import PluginStore

logger = logging.getLogger(__name__)

PLUGIN_NAME_ENV = "TSURU_PLUGIN_NAME"
TARGET_ENV = "TSURU_TARGET"
TOKEN_ENV = "TSURU_TOKEN"

Launcher = Callable[..., int]
"""``launcher(argv, env=..., stdin=..., stdout=..., stderr=...) -> exit status``."""


def _wait_through_interrupts(signum: int, frame: Any) -> None:  # noqa: ANN401
    """SIGINT handler installed while a plugin runs; the plugin handles Ctrl-C."""


def subprocess_launcher(
    argv: list[str],
    env: dict[str, str],
    stdin: Optional[IO[Any]] = None,
    stdout: Optional[IO[Any]] = None,
    stderr: Optional[IO[Any]] = None,
) -> int:
    """Run *argv* to completion and return its exit status.

    ``None`` streams are inherited from the current process. A child killed
    by a signal reports ``128 + signal``, as a shell would.

    While the child runs, SIGINT in this process is absorbed by a no-op
    handler, so Ctrl-C reaches only the plugin and the plugin decides how to
    exit. The previous handler is restored afterwards. Python-level handlers
    are reset by ``exec``, so the child still gets the default disposition.
    """
    in_main_thread = threading.current_thread() is threading.main_thread()
    if in_main_thread:
        previous = signal.signal(signal.SIGINT, _wait_through_interrupts)
    try:
        completed = subprocess.run(
            argv,
            env=env,
            stdin=stdin,
            stdout=stdout,
            stderr=stderr,
            check=False,
        )
    finally:
        if in_main_thread:
            signal.signal(signal.SIGINT, previous if previous is not None else signal.SIG_DFL)
    if completed.returncode < 0:
        return 128 - completed.returncode
    return completed.returncode


class PluginRunner:
    """Resolves plugin names and executes them with the session injected.

    Args:
        store: Where plugins are looked up.
        environ: The parent environment. Defaults to :data:`os.environ`;
            read for the recursion marker and copied into the child.
        launcher: Callable that starts the child and returns its exit
            status. Defaults to :func:`subprocess_launcher`.
        stdin: Stream for the child's stdin (``None`` inherits).
        stdout: Stream for the child's stdout (``None`` inherits).
        stderr: Stream for the child's stderr (``None`` inherits).
    """

    def __init__(
        self,
        store: PluginStore,
        environ: Optional[Mapping[str, str]] = None,
        launcher: Optional[Launcher] = None,
        stdin: Optional[IO[Any]] = None,
        stdout: Optional[IO[Any]] = None,
        stderr: Optional[IO[Any]] = None,
    ) -> None:
        self._store = store
        self._environ = dict(os.environ if environ is None else environ)
        self._launcher = launcher or subprocess_launcher
        self._stdin = stdin
        self._stdout = stdout
        self._stderr = stderr

    def resolve(self, name: str) -> Path:
        """Return the executable for *name*.

        Raises:
            CommandLookupError: If *name* is the plugin currently running
                (checked before touching the filesystem) or does not
                resolve in the store.
        """
        if self._environ.get(PLUGIN_NAME_ENV) == name:
            raise CommandLookupError(f'Plugin "{name}" is already running.')
        return self._store.resolve(name)

    def build_env(self, name: str, session: Session) -> dict[str, str]:
        """Return the child environment: the parent's plus the session entries."""
        env = dict(self._environ)
        env.update(
            {
                TARGET_ENV: session.target,
                TOKEN_ENV: session.token,
                PLUGIN_NAME_ENV: name,
            }
        )
        return env

    def run(self, args: list[str], session_loader: Callable[[], Session]) -> int:
        """Run the plugin named by ``args[0]`` with ``args[1:]``.

        Args:
            args: Command-line arguments; the first is the plugin name.
            session_loader: Called once the plugin resolved, to obtain the
                target and token to inject.

        Returns:
            The plugin's exit status.

        Raises:
            InvalidUsageError: If *args* is empty.
            CommandLookupError: If the name does not resolve to a plugin.
            TargetError: If the session has no target.
            AuthError: If the session has no token.
            PluginError: If the executable cannot be started.
        """
        if not args:
            raise InvalidUsageError("A plugin name is required.")

        name = args[0]
        path = self.resolve(name)
        session = session_loader()
        env = self.build_env(name, session)
        argv = [str(path), *args[1:]]

        logger.debug("Running plugin '%s': %s", name, argv)
        try:
            return self._launcher(
                argv,
                env=env,
                stdin=self._stdin,
                stdout=self._stdout,
                stderr=self._stderr,
            )
        except OSError as exc:
            raise PluginError(f'Failed to run plugin "{name}": {exc}') from exc
