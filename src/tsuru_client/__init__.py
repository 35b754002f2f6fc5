"""tsuru_client -- command-line client for the tsuru platform-as-a-service.

The client talks to a remote tsuru API (the *target*) on behalf of a user
session, and can be extended with *plugins*: standalone executables that are
downloaded into ``~/.tsuru/plugins`` and run as ``tsuru <plugin-name> ...``
with the session's target and token injected into their environment.

Typical workflow::

    tsuru target-add prod https://tsuru.example.com --set-current
    tsuru plugin-install rpaasv2 https://example.com/rpaasv2
    tsuru rpaasv2 info -i my-instance
    tsuru app-swap blue green

Modules:
    app: Typer application and CLI entry point (including the plugin-run path).
    hooks: Command tree and the inherited pre-run hook forcer.
    models: Pydantic models for configuration and targets.
    config: ``~/.tsuru`` layout, session loading, and settings persistence.
    client: Authenticated HTTP client for the tsuru API.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "1.0.0"
