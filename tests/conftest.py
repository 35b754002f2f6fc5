"""Shared test fixtures for tsuru_client.

Provides reusable fixtures for isolating the ``~/.tsuru`` home, managing
output state, building sessions, and running CLI commands. These fixtures
are automatically discovered by pytest and available to all test modules
without explicit imports.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from tsuru_client.models import Session
from tsuru_client.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test."""
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Home isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def tsuru_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate ``~/.tsuru`` to a temporary directory.

    Points TSURU_HOME at ``tmp_path / ".tsuru"`` so that tests never touch
    real user state, and clears every environment variable the client
    reads so that the developer's own session does not leak in.

    Returns:
        The isolated tsuru home directory (not yet created).
    """
    home = tmp_path / ".tsuru"
    monkeypatch.setenv("TSURU_HOME", str(home))
    for var in [
        "TSURU_TARGET",
        "TSURU_TOKEN",
        "TSURU_PLUGIN_NAME",
        "TSURU_VERBOSE",
    ]:
        monkeypatch.delenv(var, raising=False)
    return home


@pytest.fixture
def plugins_dir(tsuru_home: Path) -> Path:
    """The plugins directory inside the isolated home, created."""
    path = tsuru_home / "plugins"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def session() -> Session:
    """A session against a fake target."""
    return Session(target="https://tsuru.example.com", token="abc123")


@pytest.fixture
def logged_in(tsuru_home: Path, session: Session) -> Session:
    """Write the target and token files for :func:`session` into the home."""
    tsuru_home.mkdir(parents=True, exist_ok=True)
    (tsuru_home / "target").write_text(session.target + "\n")
    (tsuru_home / "token").write_text(session.token + "\n")
    return session


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet, plain output manager for tests that don't check output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
