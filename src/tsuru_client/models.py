"""Pydantic models shared across tsuru_client.

**Configuration models** -- serialised as JSON in ``~/.tsuru/config.json``:
    :class:`RequestConfig`, :class:`HooksConfig`, :class:`PluginsConfig`,
    and :class:`GlobalConfig`.

**Session models** -- built at runtime from the target and token files:
    :class:`Target` and :class:`Session`.

All models use Pydantic v2. :class:`GlobalConfig` accepts unknown keys so
that settings written by newer clients survive a load/save cycle.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


# --- Configuration ---


class RequestConfig(BaseModel):
    """HTTP settings applied to every call made by :class:`~tsuru_client.client.TsuruClient`."""

    timeout: int = Field(default=60, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class HooksConfig(BaseModel):
    """Behaviour of the inherited pre-run hook forcer."""

    suppress_errors: bool = Field(
        default=True,
        description="Discard errors raised by fallible pre-run hooks instead of failing the command",
    )


class PluginsConfig(BaseModel):
    """Behaviour of the executable plugin store."""

    ignore_list_errors: bool = Field(
        default=True,
        description="Treat an unreadable plugins directory as an empty plugin list",
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.tsuru/config.json``.

    Loaded by :func:`~tsuru_client.config.load_global_config`.
    """

    model_config = ConfigDict(extra="allow")

    api_version: str = Field(
        default="1.0", description="API version prefix prepended to request paths"
    )
    request: RequestConfig = Field(default_factory=RequestConfig)
    hooks: HooksConfig = Field(default_factory=HooksConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)


# --- Session ---


class Target(BaseModel):
    """A named tsuru API endpoint, stored as one line of ``~/.tsuru/targets``."""

    label: str
    url: str


class Session(BaseModel):
    """The target URL and token a command or plugin acts with.

    Passed explicitly to :class:`~tsuru_client.client.TsuruClient` and
    :class:`~tsuru_client.plugins.runner.PluginRunner` instead of being read
    from ambient process state.
    """

    model_config = ConfigDict(frozen=True)

    target: str
    token: str
