"""Tests for the on-disk plugin store: install, remove, list, resolve."""

from __future__ import annotations

import io
import os
import stat
from pathlib import Path

import httpx
import pytest

from tsuru_client.exceptions import (
    CommandLookupError,
    FilesystemError,
    InvalidUsageError,
    NetworkError,
    NotFoundError,
    PluginInstallError,
)
from tsuru_client.plugins.store import PluginStore


PLUGIN_URL = "https://plugins.example.com/myplugin"
PLUGIN_BODY = b"#!/bin/sh\necho hello\n"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _serving(body: bytes = PLUGIN_BODY, status_code: int = 200):
    """A MockTransport that answers every request with *body*."""
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(status_code, content=body)

    transport = httpx.MockTransport(handler)
    transport.requests = requests  # type: ignore[attr-defined]
    return transport


def _store(directory: Path, transport=None, **kwargs) -> PluginStore:
    return PluginStore(directory, transport=transport or _serving(), **kwargs)


# ---------------------------------------------------------------------------
# install
# ---------------------------------------------------------------------------


class TestInstall:
    def test_writes_executable_file(self, plugins_dir: Path) -> None:
        transport = _serving()
        path = _store(plugins_dir, transport).install("myplugin", PLUGIN_URL)

        assert path == plugins_dir / "myplugin"
        assert path.read_bytes() == PLUGIN_BODY
        assert stat.S_IMODE(path.stat().st_mode) & 0o111
        assert [str(r.url) for r in transport.requests] == [PLUGIN_URL]
        assert "authorization" not in transport.requests[0].headers

    def test_creates_missing_directory(self, tsuru_home: Path) -> None:
        directory = tsuru_home / "plugins"
        _store(directory).install("myplugin", PLUGIN_URL)
        assert (directory / "myplugin").read_bytes() == PLUGIN_BODY

    def test_overwrites_existing(self, plugins_dir: Path) -> None:
        (plugins_dir / "myplugin").write_bytes(b"old contents that are longer than new")
        _store(plugins_dir, _serving(b"new")).install("myplugin", PLUGIN_URL)
        assert (plugins_dir / "myplugin").read_bytes() == b"new"

    def test_follows_redirects(self, plugins_dir: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/old":
                return httpx.Response(302, headers={"Location": "https://plugins.example.com/new"})
            return httpx.Response(200, content=b"moved")

        store = _store(plugins_dir, httpx.MockTransport(handler))
        store.install("myplugin", "https://plugins.example.com/old")
        assert (plugins_dir / "myplugin").read_bytes() == b"moved"

    def test_redirect_status_without_location_is_accepted(self, plugins_dir: Path) -> None:
        _store(plugins_dir, _serving(b"", status_code=304)).install("myplugin", PLUGIN_URL)
        assert (plugins_dir / "myplugin").read_bytes() == b""

    @pytest.mark.parametrize("status_code", [404, 500])
    def test_bad_status_leaves_truncated_file(self, plugins_dir: Path, status_code: int) -> None:
        (plugins_dir / "myplugin").write_bytes(b"previous version")
        store = _store(plugins_dir, _serving(b"not found\n", status_code=status_code))

        with pytest.raises(PluginInstallError) as exc_info:
            store.install("myplugin", PLUGIN_URL)

        assert str(exc_info.value) == (
            f'Invalid status code reading plugin: {status_code} - "not found\\n"'
        )
        assert (plugins_dir / "myplugin").read_bytes() == b""

    def test_transport_error_is_network_error(self, plugins_dir: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        store = _store(plugins_dir, httpx.MockTransport(handler))
        with pytest.raises(NetworkError, match="connection refused"):
            store.install("myplugin", PLUGIN_URL)
        assert (plugins_dir / "myplugin").exists()

    def test_short_write_fails(self, plugins_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        real_fdopen = os.fdopen

        class ShortWriter:
            def __init__(self, fd, *args, **kwargs):
                self._file = real_fdopen(fd, *args, **kwargs)

            def write(self, data):
                return self._file.write(data[: len(data) // 2])

            def flush(self):
                self._file.flush()

            def __enter__(self):
                return self

            def __exit__(self, *exc):
                self._file.close()

        monkeypatch.setattr("tsuru_client.plugins.store.os.fdopen", ShortWriter)
        with pytest.raises(PluginInstallError, match="Failed to install plugin."):
            _store(plugins_dir).install("myplugin", PLUGIN_URL)

    def test_partial_os_writes_are_completed(
        self, plugins_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        class TrickleFileIO(io.FileIO):
            """Raw file that accepts at most 7 bytes per write call."""

            def write(self, data):
                return super().write(bytes(data[:7]))

        def fdopen(fd, mode="r", buffering=-1, **kwargs):
            raw = TrickleFileIO(fd, mode.replace("b", ""))
            return raw if buffering == 0 else io.BufferedWriter(raw)

        body = bytes(range(256)) * 80
        monkeypatch.setattr("tsuru_client.plugins.store.os.fdopen", fdopen)

        _store(plugins_dir, _serving(body)).install("myplugin", PLUGIN_URL)

        assert (plugins_dir / "myplugin").read_bytes() == body

    def test_invalid_url(self, plugins_dir: Path) -> None:
        store = PluginStore(plugins_dir)
        with pytest.raises(NetworkError):
            store.install("myplugin", "not a url")

    @pytest.mark.parametrize("name", ["", ".", "..", "../evil", "sub/dir"])
    def test_invalid_name(self, plugins_dir: Path, name: str) -> None:
        with pytest.raises(InvalidUsageError):
            _store(plugins_dir).install(name, PLUGIN_URL)


# ---------------------------------------------------------------------------
# remove
# ---------------------------------------------------------------------------


class TestRemove:
    def test_removes_file(self, plugins_dir: Path) -> None:
        (plugins_dir / "myplugin").write_bytes(PLUGIN_BODY)
        _store(plugins_dir).remove("myplugin")
        assert not (plugins_dir / "myplugin").exists()

    def test_missing_plugin(self, plugins_dir: Path) -> None:
        with pytest.raises(NotFoundError, match='"ghost"'):
            _store(plugins_dir).remove("ghost")

    def test_install_then_remove_round_trip(self, plugins_dir: Path) -> None:
        store = _store(plugins_dir)
        store.install("myplugin", PLUGIN_URL)
        assert store.list_plugins() == ["myplugin"]
        store.remove("myplugin")
        assert store.list_plugins() == []


# ---------------------------------------------------------------------------
# list_plugins
# ---------------------------------------------------------------------------


class TestListPlugins:
    def test_sorted_names(self, plugins_dir: Path) -> None:
        for name in ["zeta", "alpha", "mid.sh"]:
            (plugins_dir / name).write_bytes(b"")
        assert _store(plugins_dir).list_plugins() == ["alpha", "mid.sh", "zeta"]

    def test_empty_directory(self, plugins_dir: Path) -> None:
        assert _store(plugins_dir).list_plugins() == []

    def test_missing_directory_ignored(self, tsuru_home: Path) -> None:
        assert _store(tsuru_home / "plugins").list_plugins() == []

    def test_missing_directory_raises_when_not_ignoring(self, tsuru_home: Path) -> None:
        store = _store(tsuru_home / "plugins", ignore_list_errors=False)
        with pytest.raises(FilesystemError):
            store.list_plugins()


# ---------------------------------------------------------------------------
# resolve
# ---------------------------------------------------------------------------


class TestResolve:
    def test_exact_name(self, plugins_dir: Path) -> None:
        (plugins_dir / "foo").write_bytes(b"")
        (plugins_dir / "foo.sh").write_bytes(b"")
        assert _store(plugins_dir).resolve("foo") == plugins_dir / "foo"

    def test_single_extension_match(self, plugins_dir: Path) -> None:
        (plugins_dir / "bar.sh").write_bytes(b"")
        assert _store(plugins_dir).resolve("bar") == plugins_dir / "bar.sh"

    def test_no_match(self, plugins_dir: Path) -> None:
        with pytest.raises(CommandLookupError):
            _store(plugins_dir).resolve("baz")

    def test_ambiguous_match(self, plugins_dir: Path) -> None:
        (plugins_dir / "baz.sh").write_bytes(b"")
        (plugins_dir / "baz.py").write_bytes(b"")
        with pytest.raises(CommandLookupError):
            _store(plugins_dir).resolve("baz")

    def test_prefix_without_dot_does_not_match(self, plugins_dir: Path) -> None:
        (plugins_dir / "bazooka").write_bytes(b"")
        with pytest.raises(CommandLookupError):
            _store(plugins_dir).resolve("baz")

    def test_glob_characters_are_literal(self, plugins_dir: Path) -> None:
        (plugins_dir / "a.sh").write_bytes(b"")
        with pytest.raises(CommandLookupError):
            _store(plugins_dir).resolve("*")

    def test_missing_directory(self, tsuru_home: Path) -> None:
        with pytest.raises(CommandLookupError):
            _store(tsuru_home / "plugins").resolve("foo")

    def test_path_separator_is_not_a_plugin(self, plugins_dir: Path) -> None:
        with pytest.raises(CommandLookupError):
            _store(plugins_dir).resolve("../foo")
