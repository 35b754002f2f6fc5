"""Executable plugins for tsuru_client -- storage, resolution, and execution.

Plugins extend the CLI with standalone executables. ``tsuru plugin-install``
downloads one into ``~/.tsuru/plugins``; afterwards ``tsuru <name> ...``
runs it with the current target and token in its environment.

Key classes:

* :class:`PluginStore` -- installs, removes, lists and resolves plugin files.
* :class:`PluginRunner` -- resolves a name and runs the plugin as a child
  process.

Example::

    from tsuru_client.config import load_session
    from tsuru_client.plugins import PluginRunner, PluginStore

    runner = PluginRunner(PluginStore())
    exit_status = runner.run(["rpaasv2", "info"], session_loader=load_session)
"""

from tsuru_client.plugins.runner import PluginRunner, subprocess_launcher
from tsuru_client.plugins.store import PluginStore

__all__ = ["PluginStore", "PluginRunner", "subprocess_launcher"]
