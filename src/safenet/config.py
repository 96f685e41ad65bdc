"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for safenet:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.safenet/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Global config** -- A single :class:`~safenet.models.GlobalConfig`
  JSON file storing the default profile.
* **Profiles** -- One JSON file per gateway/application pair, each
  deserialised into a :class:`~safenet.models.ClientConfig`.
* **Session files** -- :func:`default_conf_file` decides where a profile's
  credential file lives when the profile does not name one.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project-local config, and global config into the
  effective profile.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from safenet.exceptions import ConfigError
from safenet.models import ClientConfig, GlobalConfig, ProtocolVariant

_APP_NAME = "safenet"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "safenet.json"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform follows the XDG Base Directory layout (Linux/FreeBSD)."""
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

    On Linux/BSD: ``$XDG_CONFIG_HOME/safenet/`` (default ``~/.config/safenet/``).
    On macOS/Windows: ``~/.safenet/``.
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_CONFIG_HOME", (".config",))
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (session files, crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/safenet/`` (default ``~/.local/share/safenet/``).
    On macOS/Windows: ``~/.safenet/data/``.
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_DATA_HOME", (".local", "share"))
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_profiles_dir() -> Path:
    """Return the profiles directory (``<config_dir>/profiles/``), creating it if necessary."""
    path = get_config_dir() / "profiles"
    path.mkdir(parents=True, exist_ok=True)
    return path


def default_conf_file(profile_name: str) -> Path:
    """Return the default credential file for *profile_name*.

    Session files live under ``<data_dir>/sessions/<profile>.json``.
    """
    return get_data_dir() / "sessions" / f"{profile_name}.json"


def conf_file_for(config: ClientConfig) -> Path:
    """Return the credential file a profile should use."""
    if config.conf_file:
        return Path(config.conf_file).expanduser()
    return default_conf_file(config.name)


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. When *mode* is
    given it is applied to the temp file before any content is written.
    On any failure the temp file is cleaned up.
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
        if mode is not None:
            os.chmod(tmp_path, mode)
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
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the config directory.

    Returns:
        The deserialised :class:`~safenet.models.GlobalConfig`, or a
        default instance if the file does not exist.

    Raises:
        ConfigError: If the file exists but is invalid.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Profiles ---


def _profile_path(name: str) -> Path:
    """Path to a named profile's JSON file."""
    return get_profiles_dir() / f"{name}.json"


def list_profiles() -> list[str]:
    """Return all profile names found in the profiles directory, sorted alphabetically."""
    profiles_dir = get_profiles_dir()
    return sorted(p.stem for p in profiles_dir.glob("*.json") if p.is_file())


def load_profile(name: str) -> ClientConfig:
    """Load and validate a profile from disk.

    Args:
        name: Profile name (``<name>.json`` in the profiles directory).

    Raises:
        ConfigError: If the profile file does not exist or is invalid.
    """
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigError(f"Profile '{name}' not found at {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return ClientConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid profile '{name}' at {path}: {exc}") from exc


def save_profile(profile: ClientConfig) -> None:
    """Persist a profile atomically; the file name is derived from ``profile.name``."""
    data = profile.model_dump(mode="json")
    _atomic_write(_profile_path(profile.name), json.dumps(data, indent=2) + "\n")


def delete_profile(name: str) -> None:
    """Delete a profile's JSON file from disk.

    Raises:
        ConfigError: If the profile does not exist.
    """
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigError(f"Profile '{name}' not found at {path}")
    path.unlink()


def profile_exists(name: str) -> bool:
    """Check whether a profile file exists on disk."""
    return _profile_path(name).is_file()


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./safenet.json``.

    Typically sets ``default_profile`` so that a repository can pin which
    application profile to use.

    Raises:
        ConfigError: If the file exists but contains invalid JSON.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc


# --- Precedence resolution ---


def resolve_config(
    cli_profile: Optional[str] = None,
    cli_base_url: Optional[str] = None,
) -> tuple[GlobalConfig, ClientConfig]:
    """Resolve the effective profile with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_profile``, ``cli_base_url``)
        2. Environment variables (``SAFENET_PROFILE``, ``SAFENET_BASE_URL``,
           ``SAFENET_PROTOCOL``)
        3. Project config (``./safenet.json``)
        4. User config (``~/.config/safenet/config.json``)
        5. Defaults -- an unsaved profile named ``default``

    Returns:
        A tuple of ``(global_config, profile)``.

    Raises:
        ConfigError: If a named profile cannot be loaded or an environment
            override is invalid.
    """
    global_cfg = load_global_config()

    resolved_name: Optional[str] = global_cfg.default_profile
    project = load_project_config()
    if project is not None and project.get("default_profile"):
        resolved_name = project["default_profile"]
    env_profile = os.environ.get("SAFENET_PROFILE")
    if env_profile:
        resolved_name = env_profile
    if cli_profile is not None:
        resolved_name = cli_profile

    if resolved_name is None and global_cfg.auto_select_single_profile:
        profiles = list_profiles()
        if len(profiles) == 1:
            resolved_name = profiles[0]

    if resolved_name is not None:
        profile = load_profile(resolved_name)
    else:
        profile = ClientConfig()

    env_base_url = os.environ.get("SAFENET_BASE_URL")
    if cli_base_url is not None:
        profile.base_url = cli_base_url
    elif env_base_url:
        profile.base_url = env_base_url

    env_protocol = os.environ.get("SAFENET_PROTOCOL")
    if env_protocol:
        try:
            profile.protocol = ProtocolVariant(env_protocol.lower())
        except ValueError as exc:
            raise ConfigError(
                f"Invalid SAFENET_PROTOCOL '{env_protocol}' "
                f"(expected one of: {', '.join(v.value for v in ProtocolVariant)})"
            ) from exc

    return global_cfg, profile
