"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for reqtree:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.reqtree/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Global config** -- A single :class:`~reqtree.models.GlobalConfig`
  JSON file storing the workspace location and request defaults.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project-local config, and global config into the
  final effective configuration.

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`) so a crash never leaves a half-written file behind.
The workspace store reuses it.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from reqtree.exceptions import ConfigError
from reqtree.models import GlobalConfig

_APP_NAME = "reqtree"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "reqtree.json"
_WORKSPACE_FILENAME = "workspace.json"

ENV_WORKSPACE = "REQTREE_WORKSPACE"
ENV_TIMEOUT = "REQTREE_TIMEOUT"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/reqtree/`` (default ``~/.config/reqtree/``).
    On macOS/Windows: ``~/.reqtree/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (workspace, crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/reqtree/`` (default ``~/.local/share/reqtree/``).
    On macOS/Windows: ``~/.reqtree/data/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


def default_workspace_path() -> Path:
    """Return ``<data_dir>/workspace.json``."""
    return get_data_dir() / _WORKSPACE_FILENAME


# --- Atomic file writes ---


def atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is removed and the error re-raised.
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
        fd = None
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
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the XDG config directory.

    Returns:
        The stored :class:`~reqtree.models.GlobalConfig`, or defaults when
        the file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text)
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./reqtree.json``.

    Lets a repository pin its own ``workspace_path`` next to the API it
    describes.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected an object")
    return data


# --- Precedence resolution ---


def parse_timeout(value: str, origin: str) -> float:
    """Parse a timeout in seconds, naming *origin* in the error.

    Raises:
        ConfigError: If *value* is not a number or is not positive.
    """
    try:
        timeout = float(value)
    except ValueError as exc:
        raise ConfigError(f"Invalid timeout {value!r} from {origin}") from exc
    if timeout <= 0:
        raise ConfigError(f"Timeout must be positive, got {value!r} from {origin}")
    return timeout


def resolve_config(
    cli_workspace: Optional[str] = None,
    cli_timeout: Optional[float] = None,
    cli_format: Optional[str] = None,
) -> GlobalConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_workspace``, ``cli_timeout``, ``cli_format``)
        2. Environment variables (``REQTREE_WORKSPACE``, ``REQTREE_TIMEOUT``)
        3. Project config (``./reqtree.json``)
        4. User config (``~/.config/reqtree/config.json``)
        5. Defaults

    Returns:
        The effective :class:`~reqtree.models.GlobalConfig`, with
        ``workspace_path`` always filled in.

    Raises:
        ConfigError: On unreadable config files or an invalid timeout.
    """
    config = load_global_config()

    project = load_project_config()
    if project is not None:
        if isinstance(project.get("workspace_path"), str):
            config.workspace_path = project["workspace_path"]
        if "timeout" in project:
            config.request.timeout = parse_timeout(str(project["timeout"]), "reqtree.json")

    env_workspace = os.environ.get(ENV_WORKSPACE)
    if env_workspace:
        config.workspace_path = env_workspace
    env_timeout = os.environ.get(ENV_TIMEOUT)
    if env_timeout:
        config.request.timeout = parse_timeout(env_timeout, ENV_TIMEOUT)

    if cli_workspace is not None:
        config.workspace_path = cli_workspace
    if cli_timeout is not None:
        config.request.timeout = parse_timeout(str(cli_timeout), "--timeout")
    if cli_format is not None:
        config.output.format = cli_format

    if not config.workspace_path:
        config.workspace_path = str(default_workspace_path())
    return config
