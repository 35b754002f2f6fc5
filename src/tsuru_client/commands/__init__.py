"""Built-in CLI commands for tsuru_client.

Each module exposes plain callback functions together with the
:class:`~tsuru_client.hooks.CommandInfo` describing them; they are
registered as top-level commands on the root app by
:mod:`tsuru_client.app`:

* :mod:`~tsuru_client.commands.plugin` -- ``plugin-install``,
  ``plugin-remove``, ``plugin-list`` (and the descriptor of the implicit
  plugin-run path).
* :mod:`~tsuru_client.commands.swap` -- ``app-swap``.
* :mod:`~tsuru_client.commands.target` -- ``target-add``, ``target-list``,
  ``target-set``, ``target-remove``.
"""
