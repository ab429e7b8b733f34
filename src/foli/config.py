"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for foli:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.foli/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`, :func:`get_feed_cache_dir`.
* **Global config** -- A single :class:`~foli.models.GlobalConfig` JSON file
  storing defaults (cache policy, feed URLs, request and output settings).
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, and the global config into the effective
  configuration.

All file writes go through :func:`atomic_write` (temp file, fsync, rename),
which :class:`~foli.cache.store.CacheStore` also uses for cache entries.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from foli.exceptions import ConfigError
from foli.models import CacheBehavior, CachePreset, GlobalConfig

_APP_NAME = "foli"
_CONFIG_FILENAME = "config.json"
_FEED_CACHE_DIRNAME = "feed"

_TRUTHY = ("1", "true", "yes", "on")
_FALSY = ("0", "false", "no", "off", "")


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform uses XDG base directories (Linux/FreeBSD)."""
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

    On Linux/BSD: ``$XDG_CONFIG_HOME/foli/`` (default ``~/.config/foli/``).
    On macOS/Windows: ``~/.foli/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache root directory path.

    On Linux/BSD: ``$XDG_CACHE_HOME/foli/`` (default ``~/.cache/foli/``).
    On macOS/Windows: ``~/.foli/cache/``.

    Unlike the other directory helpers this does not create the directory:
    the cache store owns that step so it can fall back to a disabled cache
    when the location is not writable.
    """
    if _is_xdg_platform():
        return _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    return _fallback_base_dir() / "cache"


def get_feed_cache_dir() -> Path:
    """Return the directory holding cached feed collections (``<cache_dir>/feed``)."""
    return get_cache_dir() / _FEED_CACHE_DIRNAME


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/foli/`` (default ``~/.local/share/foli/``).
    On macOS/Windows: ``~/.foli/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, mtime: Optional[float] = None) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems.  Readers see either
    the previous file or the complete new one.  When *mtime* is given, the
    temp file's access and modification times are set to it before the
    rename, so the new content and its timestamp appear together.  On any
    failure the temp file is removed and the error re-raised.
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
        fd = None  # prevent double-close in the handler below
        if mtime is not None:
            os.utime(tmp_path, (mtime, mtime))
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
        The deserialised :class:`~foli.models.GlobalConfig`, or a default
        instance if the file does not exist.

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
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def _env_behavior() -> Optional[CacheBehavior]:
    raw = os.environ.get("FOLI_CACHE_BEHAVIOR")
    if not raw:
        return None
    try:
        return CacheBehavior(raw.strip().lower())
    except ValueError:
        choices = ", ".join(b.value for b in CacheBehavior)
        raise ConfigError(
            f"Invalid FOLI_CACHE_BEHAVIOR '{raw}' (expected one of: {choices})"
        ) from None


def _env_flag(name: str) -> Optional[bool]:
    raw = os.environ.get(name)
    if raw is None:
        return None
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ConfigError(f"Invalid boolean for {name}: '{raw}'")


def _env_seconds(name: str) -> Optional[float]:
    raw = os.environ.get(name)
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"Invalid number of seconds for {name}: '{raw}'") from None
    if value < 0:
        raise ConfigError(f"{name} must not be negative, got {raw}")
    return value


def resolve_config(
    cli_behavior: Optional[CacheBehavior] = None,
    cli_format: Optional[str] = None,
    cli_no_cache: bool = False,
) -> GlobalConfig:
    """Resolve the effective configuration.

    Precedence (high to low):
        1. CLI flags (``cli_behavior``, ``cli_format``, ``cli_no_cache``)
        2. Environment variables (``FOLI_CACHE_BEHAVIOR``,
           ``FOLI_CACHE_DISABLED``, ``FOLI_CACHE_VALIDITY``,
           ``FOLI_GTFS_URL``, ``FOLI_SIRI_URL``)
        3. User config (``~/.config/foli/config.json``)
        4. Defaults

    Returns:
        A new :class:`~foli.models.GlobalConfig`; the file on disk is not
        modified.

    Raises:
        ConfigError: If the config file or an environment variable is invalid.
    """
    config = load_global_config()

    env_behavior = _env_behavior()
    if env_behavior is not None:
        config.default_behavior = env_behavior

    env_disabled = _env_flag("FOLI_CACHE_DISABLED")
    if env_disabled is not None:
        config.cache.enabled = not env_disabled
        if env_disabled:
            config.cache.preset = CachePreset.DISABLED
        elif config.cache.preset == CachePreset.DISABLED:
            config.cache.preset = None

    env_validity = _env_seconds("FOLI_CACHE_VALIDITY")
    if env_validity is not None:
        config.cache.validity_seconds = env_validity
        if config.cache.preset not in (None, CachePreset.DISABLED):
            # An explicit TTL overrides a named preset's TTL.
            config.cache.preset = None

    gtfs_url = os.environ.get("FOLI_GTFS_URL")
    if gtfs_url:
        config.feed.gtfs_base_url = gtfs_url
    siri_url = os.environ.get("FOLI_SIRI_URL")
    if siri_url:
        config.feed.siri_base_url = siri_url

    if cli_behavior is not None:
        config.default_behavior = cli_behavior
    if cli_no_cache:
        config.default_behavior = CacheBehavior.NO_CACHE
    if cli_format is not None:
        config.output.format = cli_format

    return config
