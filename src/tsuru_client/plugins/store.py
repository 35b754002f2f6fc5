"""On-disk store of executable plugins.

A plugin is a single executable file directly under the plugins directory
(``~/.tsuru/plugins/<name>``). There is no manifest, no versioning and no
integrity check: the file's existence *is* the installation.

:class:`PluginStore` implements the four storage operations:

* :meth:`~PluginStore.install` -- download a URL into ``<dir>/<name>``.
* :meth:`~PluginStore.remove` -- delete ``<dir>/<name>``.
* :meth:`~PluginStore.list_plugins` -- names of the installed plugins.
* :meth:`~PluginStore.resolve` -- find the file to execute for a name,
  either ``<name>`` itself or the single ``<name>.*`` match.

Installs are not atomic. The target file is truncated before the download
starts, so a failed download leaves an empty (or partial) plugin behind.
"""

from __future__ import annotations

import glob
import json
import logging
import os
from pathlib import Path
from typing import Optional

import httpx

from tsuru_client.exceptions import (
    CommandLookupError,
    FilesystemError,
    InvalidUsageError,
    NetworkError,
    NotFoundError,
    PluginInstallError,
)

logger = logging.getLogger(__name__)

_DIR_MODE = 0o755
_PLUGIN_MODE = 0o755


def _is_valid_name(name: str) -> bool:
    return bool(name) and name not in (".", "..") and "/" not in name and os.sep not in name


class PluginStore:
    """Install, remove, list and resolve plugins in a directory.

    Args:
        directory: Where plugins live. Defaults to
            :func:`~tsuru_client.config.get_plugins_dir`.
        ignore_list_errors: When true, :meth:`list_plugins` treats an
            unreadable or missing directory as "no plugins"; otherwise the
            error is raised as :class:`FilesystemError`.
        transport: Optional :mod:`httpx` transport used for downloads.
        timeout: Download timeout in seconds.

    Example::

        store = PluginStore()
        store.install("rpaasv2", "https://example.com/rpaasv2")
        assert "rpaasv2" in store.list_plugins()
    """

    def __init__(
        self,
        directory: Optional[Path] = None,
        ignore_list_errors: bool = True,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = 60,
    ) -> None:
        if directory is None:
            from tsuru_client.config import get_plugins_dir

            directory = get_plugins_dir()
        self._directory = Path(directory)
        self._ignore_list_errors = ignore_list_errors
        self._transport = transport
        self._timeout = timeout

    @property
    def directory(self) -> Path:
        """The directory holding the plugin files."""
        return self._directory

    def path_for(self, name: str) -> Path:
        """Return the file path a plugin called *name* is stored at.

        Raises:
            InvalidUsageError: If *name* is empty or contains a path separator.
        """
        if not _is_valid_name(name):
            raise InvalidUsageError(f'Invalid plugin name "{name}".')
        return self._directory / name

    # ------------------------------------------------------------------ #
    # Install / remove
    # ------------------------------------------------------------------ #

    def install(self, name: str, url: str) -> Path:
        """Download *url* and store it as the executable plugin *name*.

        Any existing plugin with the same name is truncated before the
        download begins and overwritten afterwards.

        Args:
            name: Plugin name (file name inside the plugins directory).
            url: Where to download the plugin from. Fetched with an
                unauthenticated GET that follows redirects.

        Returns:
            Path of the installed plugin file.

        Raises:
            FilesystemError: If the directory or file cannot be created or
                written.
            NetworkError: If the download fails at the transport level.
            PluginInstallError: If the server answers outside ``[200, 400)``
                or fewer bytes were written than downloaded.
        """
        path = self.path_for(name)
        try:
            self._directory.mkdir(mode=_DIR_MODE, parents=True, exist_ok=True)
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, _PLUGIN_MODE)
        except OSError as exc:
            raise FilesystemError(f"Cannot create plugin file {path}: {exc}") from exc

        with os.fdopen(fd, "wb") as plugin_file:
            data = self._download(url)
            try:
                written = plugin_file.write(data)
                plugin_file.flush()
            except OSError as exc:
                raise FilesystemError(f"Cannot write plugin file {path}: {exc}") from exc
            if written != len(data):
                raise PluginInstallError("Failed to install plugin.")

        logger.debug("Installed plugin '%s' from %s (%d bytes)", name, url, len(data))
        return path

    def _download(self, url: str) -> bytes:
        try:
            with httpx.Client(
                transport=self._transport,
                follow_redirects=True,
                timeout=self._timeout,
            ) as client:
                response = client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise NetworkError(f"Failed to download plugin from {url}: {exc}") from exc

        if response.status_code < 200 or response.status_code >= 400:
            raise PluginInstallError(
                f"Invalid status code reading plugin: {response.status_code} - "
                f"{json.dumps(response.text, ensure_ascii=False)}"
            )
        return response.content

    def remove(self, name: str) -> None:
        """Delete the plugin *name*.

        Raises:
            NotFoundError: If no such plugin is installed.
            FilesystemError: If the file cannot be deleted.
        """
        path = self.path_for(name)
        try:
            path.unlink()
        except FileNotFoundError as exc:
            raise NotFoundError(f'Plugin "{name}" is not installed.') from exc
        except OSError as exc:
            raise FilesystemError(f"Cannot remove plugin file {path}: {exc}") from exc
        logger.debug("Removed plugin '%s'", name)

    # ------------------------------------------------------------------ #
    # Querying
    # ------------------------------------------------------------------ #

    def list_plugins(self) -> list[str]:
        """Return the names of the installed plugins, sorted by name.

        Raises:
            FilesystemError: If the directory cannot be read and
                ``ignore_list_errors`` is false.
        """
        try:
            return sorted(entry.name for entry in self._directory.iterdir())
        except OSError as exc:
            if not self._ignore_list_errors:
                raise FilesystemError(
                    f"Cannot read plugins directory {self._directory}: {exc}"
                ) from exc
            logger.debug("Ignoring unreadable plugins directory %s: %s", self._directory, exc)
            return []

    def resolve(self, name: str) -> Path:
        """Find the file to execute for the plugin *name*.

        ``<dir>/<name>`` wins when it exists. Otherwise exactly one file
        must match ``<dir>/<name>.*`` (``bar`` finds ``bar.sh``); zero or
        several matches mean the name does not resolve.

        Raises:
            CommandLookupError: If the name does not resolve to one file.
        """
        if not _is_valid_name(name):
            raise CommandLookupError(f'"{name}" is not a plugin name.')

        path = self._directory / name
        if path.exists():
            return path

        pattern = os.path.join(glob.escape(str(self._directory)), glob.escape(name) + ".*")
        matches = glob.glob(pattern)
        if len(matches) != 1:
            logger.debug("Plugin '%s' matched %d candidate files", name, len(matches))
            raise CommandLookupError(f'Plugin "{name}" not found.')
        return Path(matches[0])
