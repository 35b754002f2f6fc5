"""Plugin commands -- install, remove, and list executable plugins.

Provides ``plugin-install``, ``plugin-remove`` and ``plugin-list``. Running
a plugin has no command of its own: ``tsuru <plugin-name> [args...]`` is
handled by :func:`tsuru_client.app.main` before regular dispatch, using the
:data:`PLUGIN_RUN` descriptor below.

Typical workflow::

    tsuru plugin-install rpaasv2 https://example.com/rpaasv2
    tsuru plugin-list
    tsuru rpaasv2 --help
    tsuru plugin-remove rpaasv2
"""

from __future__ import annotations

import typer

from tsuru_client.hooks import CommandInfo
from tsuru_client.output import print_data, success
from tsuru_client.plugins.store import PluginStore


PLUGIN_INSTALL = CommandInfo(
    name="plugin-install",
    usage="plugin-install <plugin-name> <plugin-url>",
    desc="Downloads the plugin file. It will be copied to $HOME/.tsuru/plugins.",
    min_args=2,
)

PLUGIN_REMOVE = CommandInfo(
    name="plugin-remove",
    usage="plugin-remove <plugin-name>",
    desc="Removes a previously installed tsuru plugin.",
    min_args=1,
)

PLUGIN_LIST = CommandInfo(
    name="plugin-list",
    usage="plugin-list",
    desc="List installed tsuru plugins.",
    min_args=0,
)

PLUGIN_RUN = CommandInfo(
    name="plugin",
    usage="<plugin-name> [args...]",
    desc="Runs an installed plugin with the current target and token in its environment.",
    min_args=1,
)


def make_store() -> PluginStore:
    """Build the :class:`PluginStore` for ``~/.tsuru/plugins`` using the global config."""
    from tsuru_client.config import load_global_config

    config = load_global_config()
    return PluginStore(
        ignore_list_errors=config.plugins.ignore_list_errors,
        timeout=config.request.timeout,
    )


def plugin_install(
    name: str = typer.Argument(help="Name the plugin is installed and invoked as."),
    url: str = typer.Argument(help="URL to download the plugin executable from."),
) -> None:
    """Download a plugin into ``~/.tsuru/plugins``.

    An installed plugin with the same name is replaced.

    Example::

        tsuru plugin-install rpaasv2 https://example.com/rpaasv2
    """
    make_store().install(name, url)
    success(f'Plugin "{name}" successfully installed!')


def plugin_remove(
    name: str = typer.Argument(help="Name of the plugin to remove."),
) -> None:
    """Remove an installed plugin."""
    make_store().remove(name)
    success(f'Plugin "{name}" successfully removed!')


def plugin_list() -> None:
    """List installed plugins, one name per line."""
    for name in make_store().list_plugins():
        print_data(name)
