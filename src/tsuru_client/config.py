"""The ``~/.tsuru`` directory: settings, targets, token, and plugin storage.

This module handles all persistent state of the client:

* **Directory layout** -- everything lives under :func:`get_home_dir`
  (``$TSURU_HOME`` or ``~/.tsuru``)::

      ~/.tsuru/
          config.json     settings (GlobalConfig)
          target          URL of the current target
          targets         one "label<TAB>url" line per known target
          token           session token
          plugins/        installed plugin executables
          logs/           crash logs

* **Global config** -- :func:`load_global_config`; the file is edited by hand.
* **Targets** -- :func:`list_targets`, :func:`add_target`,
  :func:`set_current_target`, :func:`remove_target`.
* **Session** -- :func:`load_target`, :func:`load_token` and
  :func:`load_session` resolve the environment variables ``TSURU_TARGET``
  and ``TSURU_TOKEN`` before falling back to the files above.

Target writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`).
"""

from __future__ import annotations

import json
import os
import re
import tempfile
from pathlib import Path
from typing import Optional

from tsuru_client.exceptions import AuthError, ConfigError, FilesystemError, TargetError
from tsuru_client.models import GlobalConfig, Session, Target

_HOME_DIRNAME = ".tsuru"
_CONFIG_FILENAME = "config.json"
_TARGET_FILENAME = "target"
_TARGETS_FILENAME = "targets"
_TOKEN_FILENAME = "token"

_SCHEME_RE = re.compile(r"^https?://")


# --- Paths ---


def get_home_dir() -> Path:
    """Return the tsuru home directory.

    ``$TSURU_HOME`` when set, otherwise ``~/.tsuru``. The directory is not
    created here; writers create what they need.
    """
    env_value = os.environ.get("TSURU_HOME", "")
    if env_value:
        return Path(env_value)
    return Path.home() / _HOME_DIRNAME


def get_plugins_dir() -> Path:
    """Return the directory holding installed plugin executables."""
    return get_home_dir() / "plugins"


def get_logs_dir() -> Path:
    """Return the crash log directory, creating it if necessary."""
    path = get_home_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is cleaned up.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    return get_home_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from ``~/.tsuru/config.json``.

    Returns:
        The deserialised :class:`~tsuru_client.models.GlobalConfig`. If the
        file does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


# --- Targets ---


def normalize_target(url: str) -> str:
    """Prefix *url* with ``http://`` when it has no scheme and drop trailing slashes."""
    url = url.strip()
    if not _SCHEME_RE.match(url):
        url = "http://" + url
    return url.rstrip("/")


def list_targets() -> list[Target]:
    """Return the targets saved in ``~/.tsuru/targets``, in file order.

    Blank and malformed lines are skipped. A missing file yields an empty
    list.
    """
    path = get_home_dir() / _TARGETS_FILENAME
    if not path.is_file():
        return []
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise FilesystemError(f"Cannot read targets file {path}: {exc}") from exc

    targets: list[Target] = []
    for line in text.splitlines():
        parts = line.split("\t")
        if len(parts) != 2 or not parts[0].strip():
            continue
        targets.append(Target(label=parts[0].strip(), url=parts[1].strip()))
    return targets


def _save_targets(targets: list[Target]) -> None:
    lines = "".join(f"{t.label}\t{t.url}\n" for t in targets)
    _atomic_write(get_home_dir() / _TARGETS_FILENAME, lines)


def find_target(label: str) -> Target:
    """Look up a saved target by label.

    Raises:
        TargetError: If no target has that label.
    """
    for target in list_targets():
        if target.label == label:
            return target
    raise TargetError(f'Target "{label}" not found.')


def add_target(label: str, url: str, set_current: bool = False) -> Target:
    """Save a new labelled target, optionally making it the current one.

    Raises:
        TargetError: If *label* is already taken.
    """
    targets = list_targets()
    if any(t.label == label for t in targets):
        raise TargetError(f'Target label "{label}" already exists.')
    target = Target(label=label, url=normalize_target(url))
    targets.append(target)
    _save_targets(targets)
    if set_current:
        set_current_target(label)
    return target


def set_current_target(label: str) -> Target:
    """Make the target named *label* the current one."""
    target = find_target(label)
    _atomic_write(get_home_dir() / _TARGET_FILENAME, target.url + "\n")
    return target


def remove_target(label: str) -> None:
    """Forget the target named *label*.

    When the removed target is the current one, the current target file is
    deleted too.
    """
    target = find_target(label)
    remaining = [t for t in list_targets() if t.label != label]
    _save_targets(remaining)
    if current_target_url() == normalize_target(target.url):
        (get_home_dir() / _TARGET_FILENAME).unlink()


def current_target_url() -> Optional[str]:
    """Return the normalised URL stored in ``~/.tsuru/target``, if any."""
    path = get_home_dir() / _TARGET_FILENAME
    if not path.is_file():
        return None
    try:
        value = path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise FilesystemError(f"Cannot read target file {path}: {exc}") from exc
    return normalize_target(value) if value else None


# --- Session ---


def load_target() -> str:
    """Resolve the URL of the current target.

    Precedence (high to low):
        1. ``TSURU_TARGET`` -- a URL, or the label of a saved target
        2. ``~/.tsuru/target``

    Returns:
        The normalised target URL (scheme included, no trailing slash).

    Raises:
        TargetError: If no target is defined.
    """
    env_target = os.environ.get("TSURU_TARGET", "").strip()
    if env_target:
        for target in list_targets():
            if target.label == env_target:
                return normalize_target(target.url)
        return normalize_target(env_target)

    current = current_target_url()
    if current is None:
        raise TargetError(
            "No target defined. Please use target-add/target-set to define a target."
        )
    return current


def load_token() -> str:
    """Resolve the session token from ``TSURU_TOKEN`` or ``~/.tsuru/token``.

    Raises:
        AuthError: If neither holds a non-empty token.
    """
    env_token = os.environ.get("TSURU_TOKEN", "").strip()
    if env_token:
        return env_token

    path = get_home_dir() / _TOKEN_FILENAME
    token = ""
    if path.is_file():
        try:
            token = path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise FilesystemError(f"Cannot read token file {path}: {exc}") from exc
    if not token:
        raise AuthError(f"You're not authenticated: no token found in TSURU_TOKEN or {path}.")
    return token


def load_session() -> Session:
    """Return the current :class:`~tsuru_client.models.Session`.

    Raises:
        TargetError: If no target is defined.
        AuthError: If no token is available.
    """
    return Session(target=load_target(), token=load_token())


def get_url(target: str, path: str, api_version: str = "1.0") -> str:
    """Build the absolute API URL for *path* on *target*.

    Example::

        >>> get_url("https://tsuru.example.com/", "/swap")
        'https://tsuru.example.com/1.0/swap'
    """
    if not path.startswith("/"):
        path = "/" + path
    return f"{target.rstrip('/')}/{api_version}{path}"
