"""Tests for the root application: dispatch between built-ins and plugins."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from tsuru_client import __version__
from tsuru_client import app as app_module
from tsuru_client import output as output_module
from tsuru_client.app import BUILTIN_COMMANDS, app, is_plugin_invocation, main, run_plugin
from tsuru_client.exceptions import CommandLookupError
from tsuru_client.models import Session
from tsuru_client.output import get_output


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


class FakeLauncher:
    def __init__(self, status: int = 0) -> None:
        self.status = status
        self.calls: list[tuple[list[str], dict]] = []

    def __call__(self, argv, env, stdin=None, stdout=None, stderr=None) -> int:
        self.calls.append((argv, env))
        return self.status


@pytest.fixture
def launcher(monkeypatch: pytest.MonkeyPatch) -> FakeLauncher:
    fake = FakeLauncher(status=3)
    monkeypatch.setattr("tsuru_client.plugins.runner.subprocess_launcher", fake)
    return fake


@pytest.fixture
def installed(plugins_dir: Path) -> Path:
    path = plugins_dir / "myplugin"
    path.write_text("#!/bin/sh\n")
    path.chmod(0o755)
    return path


@pytest.fixture
def no_signals(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(app_module, "_setup_signal_handlers", lambda: None)


def _run_main(monkeypatch: pytest.MonkeyPatch, *args: str) -> int:
    monkeypatch.setattr(sys, "argv", ["tsuru", *args])
    with pytest.raises(SystemExit) as exc_info:
        main()
    return exc_info.value.code


# ---------------------------------------------------------------------------
# Dispatch decision
# ---------------------------------------------------------------------------


class TestIsPluginInvocation:
    def test_builtins_are_not_plugins(self) -> None:
        assert BUILTIN_COMMANDS >= {"app-swap", "plugin-install", "plugin-remove", "plugin-list"}
        for name in BUILTIN_COMMANDS:
            assert not is_plugin_invocation([name])

    @pytest.mark.parametrize("args", [[], ["--help"], ["-v", "myplugin"]])
    def test_flags_and_empty(self, args: list[str]) -> None:
        assert not is_plugin_invocation(args)

    def test_other_names_are_tried(self) -> None:
        assert is_plugin_invocation(["myplugin", "--flag"])


# ---------------------------------------------------------------------------
# run_plugin
# ---------------------------------------------------------------------------


class TestRunPlugin:
    def test_runs_with_session(self, logged_in: Session, installed: Path, launcher) -> None:
        status = run_plugin(["myplugin", "arg"], environ={})

        assert status == 3
        argv, env = launcher.calls[0]
        assert argv == [str(installed), "arg"]
        assert env["TSURU_TARGET"] == logged_in.target
        assert env["TSURU_TOKEN"] == logged_in.token

    def test_forces_root_pre_run(
        self, logged_in: Session, installed: Path, launcher, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        seen = []
        monkeypatch.setattr(app_module, "configure_session", lambda **kw: seen.append(kw))
        monkeypatch.setenv("TSURU_VERBOSE", "1")

        run_plugin(["myplugin"], environ={})

        assert seen == [{"verbose": True}]

    def test_root_pre_run_installs_output(self, logged_in: Session, installed: Path, launcher) -> None:
        assert output_module._output is None
        run_plugin(["myplugin"], environ={})
        assert output_module._output is not None
        assert get_output()._verbose is False

    def test_unknown_plugin(self, logged_in: Session, plugins_dir: Path, launcher) -> None:
        with pytest.raises(CommandLookupError):
            run_plugin(["ghost"], environ={})
        assert launcher.calls == []

    def test_recursion_guard(self, logged_in: Session, installed: Path, launcher) -> None:
        with pytest.raises(CommandLookupError):
            run_plugin(["myplugin"], environ={"TSURU_PLUGIN_NAME": "myplugin"})


# ---------------------------------------------------------------------------
# main
# ---------------------------------------------------------------------------


class TestMain:
    def test_exits_with_plugin_status(
        self, logged_in, installed, launcher, no_signals, monkeypatch
    ) -> None:
        assert _run_main(monkeypatch, "myplugin", "x") == 3
        assert launcher.calls[0][0] == [str(installed), "x"]

    def test_unknown_name_falls_through_to_typer(
        self, tsuru_home, launcher, no_signals, monkeypatch, capsys
    ) -> None:
        assert _run_main(monkeypatch, "ghost") == 2
        assert "ghost" in capsys.readouterr().err
        assert launcher.calls == []

    def test_tsuru_error_exit_code(self, tsuru_home, no_signals, monkeypatch, capsys) -> None:
        assert _run_main(monkeypatch, "target-set", "nope") == 1
        assert 'Target "nope" not found.' in capsys.readouterr().err

    def test_plugin_without_session(
        self, tsuru_home, installed, launcher, no_signals, monkeypatch, capsys
    ) -> None:
        assert _run_main(monkeypatch, "myplugin") == 1
        assert "No target defined" in capsys.readouterr().err
        assert launcher.calls == []

    def test_unexpected_error_writes_crash_log(
        self, tsuru_home, no_signals, monkeypatch, capsys
    ) -> None:
        def _boom(*args, **kwargs):
            raise RuntimeError("kaboom")

        monkeypatch.setattr(app_module, "app", _boom)

        assert _run_main(monkeypatch, "target-list") == 1
        assert "Unexpected error" in capsys.readouterr().err
        logs = list((tsuru_home / "logs").iterdir())
        assert len(logs) == 1
        assert "kaboom" in logs[0].read_text()


class TestRootCallback:
    def test_version(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert result.output == f"tsuru version {__version__}.\n"

    def test_help_lists_builtins(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for name in ["app-swap", "plugin-install", "target-list"]:
            assert name in result.output

    def test_quiet_hides_confirmations(self, cli_runner, tsuru_home: Path) -> None:
        result = cli_runner.invoke(app, ["--quiet", "target-add", "prod", "https://a.example.com"])

        assert result.exit_code == 0, result.output
        assert "added to target list" not in result.output
        assert (tsuru_home / "targets").exists()

    def test_quiet_keeps_data(self, cli_runner, tsuru_home: Path) -> None:
        cli_runner.invoke(app, ["target-add", "prod", "https://a.example.com"])
        result = cli_runner.invoke(app, ["-q", "target-list"])

        assert result.exit_code == 0, result.output
        assert "https://a.example.com" in result.output
