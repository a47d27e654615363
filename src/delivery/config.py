"""Configuration management with XDG paths, atomic writes, and precedence resolution.

delivery reads connection settings (server, enterprise, user, ...) from
two optional JSON files and layers environment variables and command-line
flags on top:

* **Global config** -- ``$XDG_CONFIG_HOME/delivery/cli.json`` on
  Linux/BSD (default ``~/.config/delivery/cli.json``), ``~/.delivery/cli.json``
  elsewhere.  See :func:`get_config_dir`.
* **Project config** -- ``.delivery/cli.json`` in the working directory or
  the nearest parent that has one.  Written by ``delivery setup``.
* **Precedence resolution** -- :func:`resolve_config` merges everything into
  one :class:`~delivery.models.CliConfig`.

Failures surface as :class:`~delivery.exceptions.DeliveryError`:
``NO_HOMEDIR`` when the home directory is unknown, ``IO_ERROR`` when a file
cannot be read or written, ``CONFIG_PARSE`` for malformed files, and
``CONFIG_VALIDATION`` from :func:`require` when a needed value is absent.
"""

from __future__ import annotations

import logging
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from delivery.exceptions import DeliveryError, Kind, converting
from delivery.models import CliConfig

logger = logging.getLogger(__name__)

_APP_NAME = "delivery"
_CONFIG_FILENAME = "cli.json"
_PROJECT_DIRNAME = ".delivery"

ENV_OVERRIDES = {
    "server": "DELIVERY_SERVER",
    "enterprise": "DELIVERY_ENTERPRISE",
    "user": "DELIVERY_USER",
    "organization": "DELIVERY_ORGANIZATION",
}
"""Config field -> environment variable that overrides it."""


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform follows the XDG Base Directory layout (Linux/BSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _home() -> Path:
    try:
        return Path.home()
    except (RuntimeError, KeyError) as exc:
        raise DeliveryError(Kind.NO_HOMEDIR, str(exc) or None) from exc


def get_config_dir() -> Path:
    """Return the user configuration directory (not created).

    Raises:
        DeliveryError: ``NO_HOMEDIR`` if the home directory cannot be
            determined and no ``XDG_CONFIG_HOME`` is set.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_CONFIG_HOME", "")
        base = Path(env_value) if env_value else _home() / ".config"
        return base / _APP_NAME
    return _home() / f".{_APP_NAME}"


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/delivery/`` (default
    ``~/.local/share/delivery/``).  On macOS/Windows: ``~/.delivery/``.
    Crash logs go in its ``logs/`` subdirectory.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_DATA_HOME", "")
        base = Path(env_value) if env_value else _home() / ".local" / "share"
        path = base / _APP_NAME
    else:
        path = _home() / f".{_APP_NAME}"
    with converting():
        path.mkdir(parents=True, exist_ok=True)
    return path


def global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def find_project_config(start: Optional[Path] = None) -> Optional[Path]:
    """Walk up from *start* (default: cwd) looking for ``.delivery/cli.json``."""
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / _PROJECT_DIRNAME / _CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file lives in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems.  On any failure the
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


# --- Loading and saving ---


def load_config_file(path: Path) -> Optional[CliConfig]:
    """Load one config file.

    Returns:
        The parsed :class:`~delivery.models.CliConfig`, or ``None`` if
        *path* does not exist.

    Raises:
        DeliveryError: ``IO_ERROR`` if the file cannot be read,
            ``CONFIG_PARSE`` if it is not a valid config document.
    """
    if not path.is_file():
        return None
    with converting():
        text = path.read_text(encoding="utf-8")
    try:
        return CliConfig.model_validate_json(text)
    except ValidationError as exc:
        raise DeliveryError(Kind.CONFIG_PARSE, f"Invalid config at {path}: {exc.error_count()} error(s)") from exc


def save_config(config: CliConfig, path: Path) -> None:
    """Persist *config* atomically to *path*.

    Only explicitly set fields are written, so defaults stay defaults.

    Raises:
        DeliveryError: ``IO_ERROR`` if the file cannot be written.
    """
    data = config.model_dump_json(indent=2, exclude_unset=True)
    with converting():
        _atomic_write(path, data + "\n")
    logger.debug("Wrote config to %s", path)


# --- Precedence resolution ---


def resolve_config(
    start: Optional[Path] = None,
    **cli_overrides: Any,
) -> CliConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_overrides``; ``None`` values are ignored)
        2. Environment variables (see :data:`ENV_OVERRIDES`)
        3. Project config (``.delivery/cli.json``)
        4. User config (``~/.config/delivery/cli.json``)
        5. Defaults

    Args:
        start: Directory to start the project-config search from.
        **cli_overrides: Field values given on the command line.

    Returns:
        The merged :class:`~delivery.models.CliConfig`.
    """
    merged: dict[str, Any] = {}

    global_cfg = load_config_file(global_config_path())
    if global_cfg is not None:
        merged.update(global_cfg.model_dump(exclude_unset=True))

    project_path = find_project_config(start)
    if project_path is not None:
        logger.debug("Using project config %s", project_path)
        project_cfg = load_config_file(project_path)
        if project_cfg is not None:
            merged.update(project_cfg.model_dump(exclude_unset=True))

    for field, env_var in ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value:
            merged[field] = value

    merged.update({k: v for k, v in cli_overrides.items() if v is not None})

    try:
        return CliConfig.model_validate(merged)
    except ValidationError as exc:
        raise DeliveryError(Kind.CONFIG_PARSE, f"Invalid configuration: {exc.error_count()} error(s)") from exc


def require(config: CliConfig, *fields: str) -> None:
    """Ensure every name in *fields* has a value in *config*.

    Raises:
        DeliveryError: ``CONFIG_VALIDATION`` naming the missing options.
    """
    missing = [f for f in fields if not getattr(config, f, None)]
    if missing:
        raise DeliveryError(
            Kind.CONFIG_VALIDATION,
            "Missing required option(s): " + ", ".join(missing),
        )
