"""Exception hierarchy for tsuru_client.

All exceptions inherit from :class:`TsuruError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`tsuru_client.exit_codes`. The top-level error handler in
:func:`tsuru_client.app.main` catches ``TsuruError`` and exits with the
appropriate code, while unexpected exceptions produce a crash log and exit
with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    TsuruError (exit 1)
    +-- InvalidUsageError    (exit 2)
    +-- AuthError            (exit 3)
    +-- NotFoundError        (exit 4)
    +-- HTTPError            (exit 5)
    +-- NetworkError         (exit 6)
    +-- PluginError          (exit 10)
    |   +-- PluginInstallError
    +-- CommandLookupError   (exit 127)
    +-- TargetError          (exit 1)
    +-- FilesystemError      (exit 1)
    +-- HookError            (exit 1)
    +-- ConfigError          (exit 1)
"""

from __future__ import annotations

from tsuru_client.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_COMMAND_NOT_FOUND,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_PLUGIN_ERROR,
    EXIT_SERVER_ERROR,
)


class TsuruError(Exception):
    """Base exception for all tsuru_client errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`tsuru_client.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(TsuruError):
    """Raised for invalid CLI arguments or too few positional arguments."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(TsuruError):
    """Raised when no session token is available."""

    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(TsuruError):
    """Raised when a named resource (e.g. an installed plugin) does not exist."""

    exit_code = EXIT_NOT_FOUND


class HTTPError(TsuruError):
    """Raised when the API answers with a status code of 400 or above.

    Attributes:
        status_code: The HTTP status code of the response.
        message: The response body as text, as sent by the API.
    """

    exit_code = EXIT_SERVER_ERROR

    def __init__(self, status_code: int, message: str = ""):
        self.status_code = status_code
        self.message = message
        text = message.rstrip("\n")
        super().__init__(f"HTTP {status_code}: {text}" if text else f"HTTP {status_code}")


class NetworkError(TsuruError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused)."""

    exit_code = EXIT_CONNECTION_ERROR


class PluginError(TsuruError):
    """Raised when a plugin cannot be stored, read, or launched."""

    exit_code = EXIT_PLUGIN_ERROR


class PluginInstallError(PluginError):
    """Raised when a plugin download is rejected or only partially written."""


class CommandLookupError(TsuruError):
    """No plugin could be resolved for the requested command name.

    This is a sentinel rather than a hard failure: the entry point treats it
    as "try the next resolution strategy" and falls through to the built-in
    command dispatcher, which reports the unknown command itself.
    """

    exit_code = EXIT_COMMAND_NOT_FOUND


class TargetError(TsuruError):
    """Raised when no target is defined or a target label is unknown."""


class FilesystemError(TsuruError):
    """Raised when a file or directory under the tsuru home cannot be accessed."""


class HookError(TsuruError):
    """Raised by the pre-run hook forcer when hook errors are not suppressed."""


class ConfigError(TsuruError):
    """Raised for configuration problems (invalid JSON, failed validation)."""
