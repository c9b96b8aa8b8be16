"""Configuration with XDG paths and precedence resolution.

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD
  (``$XDG_CACHE_HOME/specgen``, ``$XDG_DATA_HOME/specgen``) and
  ``~/.specgen/`` on macOS and Windows. See :func:`get_cache_dir` and
  :func:`get_data_dir`.
* **Project config** -- an optional ``./specgen.json`` holding a partial
  :class:`~specgen.models.GeneratorConfig`.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project-local config and defaults into the final
  effective configuration.
* **Output files** -- :func:`write_output` writes generated modules with an
  atomic temp-file-then-rename strategy so a failed run never leaves a
  truncated file behind.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from specgen.exceptions import ConfigError
from specgen.models import ExportStyle, GeneratorConfig

_APP_NAME = "specgen"
_PROJECT_CONFIG_FILENAME = "specgen.json"

ENV_EXPORT_STYLE = "SPECGEN_EXPORT_STYLE"
ENV_NAMESPACE = "SPECGEN_NAMESPACE"
ENV_NO_CACHE = "SPECGEN_NO_CACHE"

_TRUTHY = frozenset({"1", "true", "yes", "on"})


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Holds remotely fetched documents. Cached data can be safely deleted at
    any time.

    On Linux/BSD: ``$XDG_CACHE_HOME/specgen/`` (default ``~/.cache/specgen/``).
    On macOS/Windows: ``~/.specgen/cache/``.

    Returns:
        Absolute path to the cache directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}" / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/specgen/`` (default ``~/.local/share/specgen/``).
    On macOS/Windows: ``~/.specgen/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}" / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is removed.
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


def write_output(path: Path, code: str) -> None:
    """Write a generated module to *path*, creating parent directories.

    Raises:
        ConfigError: If the file cannot be written.
    """
    try:
        _atomic_write(path, code)
    except OSError as exc:
        raise ConfigError(f"Cannot write output file {path}: {exc}") from exc


# --- Project-local config ---


def load_project_config(directory: Optional[Path] = None) -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``specgen.json``.

    Args:
        directory: Directory to look in; defaults to the current working
            directory.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = (directory or Path.cwd()) / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


# --- Precedence resolution ---


def resolve_config(
    cli_export_style: Optional[str] = None,
    cli_namespace: Optional[str] = None,
    cli_no_cache: bool = False,
    project_dir: Optional[Path] = None,
) -> GeneratorConfig:
    """Resolve the generator config with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_export_style``, ``cli_namespace``, ``cli_no_cache``)
        2. Environment variables (``SPECGEN_EXPORT_STYLE``,
           ``SPECGEN_NAMESPACE``, ``SPECGEN_NO_CACHE``)
        3. Project config (``./specgen.json``)
        4. Defaults

    Returns:
        The validated :class:`~specgen.models.GeneratorConfig`.

    Raises:
        ConfigError: If the project config or an override is invalid.
    """
    # 4 + 3. Defaults overlaid with the project file
    data: dict[str, Any] = load_project_config(project_dir) or {}
    try:
        config = GeneratorConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid project config: {exc}") from exc

    # 2. Environment variables
    export_style = os.environ.get(ENV_EXPORT_STYLE) or None
    namespace = os.environ.get(ENV_NAMESPACE) or None
    no_cache = os.environ.get(ENV_NO_CACHE, "").strip().lower() in _TRUTHY

    # 1. CLI flags
    if cli_export_style is not None:
        export_style = cli_export_style
    if cli_namespace is not None:
        namespace = cli_namespace
    no_cache = no_cache or cli_no_cache

    if export_style is not None:
        try:
            config.export_style = ExportStyle(export_style.lower())
        except ValueError as exc:
            choices = ", ".join(style.value for style in ExportStyle)
            raise ConfigError(
                f"Invalid export style '{export_style}' (expected one of: {choices})"
            ) from exc
    if namespace is not None:
        if not namespace.isidentifier():
            raise ConfigError(f"Invalid namespace name '{namespace}': must be an identifier")
        config.namespace_name = namespace
    if no_cache:
        config.cache.enabled = False

    return config
