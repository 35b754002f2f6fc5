"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~tsuru_client.exceptions.TsuruError` subclass.
Shell scripts wrapping ``tsuru`` can inspect the exit code to tell a refused
token apart from an unreachable target without parsing stderr.

Example::

    $ tsuru app-swap blue green
    $ echo $?
    6   # EXIT_CONNECTION_ERROR -- the target did not answer
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""No token is available, or the API rejected it."""

EXIT_NOT_FOUND = 4
"""The requested resource (API object or installed plugin) was not found."""

EXIT_SERVER_ERROR = 5
"""The API answered with an HTTP error status."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_PLUGIN_ERROR = 10
"""A plugin failed to install or could not be launched."""

EXIT_COMMAND_NOT_FOUND = 127
"""No built-in command or installed plugin matches the requested name."""
