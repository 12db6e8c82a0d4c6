"""
Project configuration.

An optional ``yggdra.toml`` next to the sources sets build defaults::

    [build]
    out_dir = "dist"
    strict = true

    [watch]
    interval = 0.5

Command-line flags override every value read here.
"""

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

from yggdra.utils.errors import ConfigError

CONFIG_FILENAME = "yggdra.toml"


@dataclass(frozen=True, slots=True)
class ProjectConfig:
    """
    Build settings.

    Attributes:
        out_dir: Directory receiving compiled files; None writes beside the source
        strict: Treat parser errors as fatal
        watch_interval: Seconds between modification-time polls in watch mode
        path: The file the settings came from, if any
    """

    out_dir: Optional[Path] = None
    strict: bool = False
    watch_interval: float = 0.5
    path: Optional[Path] = None


def _table(data: dict[str, Any], name: str, path: Path) -> dict[str, Any]:
    table = data.get(name, {})
    if not isinstance(table, dict):
        raise ConfigError(f"{path}: [{name}] must be a table")
    return table


def load_config(path: Union[str, Path, None] = None) -> ProjectConfig:
    """
    Load ``yggdra.toml``.

    Args:
        path: Explicit config file, or a directory to look in; defaults to
            the current working directory

    Returns:
        The settings, or defaults when no config file exists

    Raises:
        ConfigError: On unreadable TOML or values of the wrong type
    """
    target = Path(path) if path is not None else Path.cwd()
    if target.is_dir():
        target = target / CONFIG_FILENAME
    if not target.is_file():
        return ProjectConfig()

    try:
        with target.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"{target}: {e}") from e

    build = _table(data, "build", target)
    watch = _table(data, "watch", target)

    out_dir = build.get("out_dir")
    if out_dir is not None and not isinstance(out_dir, str):
        raise ConfigError(f"{target}: build.out_dir must be a string")

    strict = build.get("strict", False)
    if not isinstance(strict, bool):
        raise ConfigError(f"{target}: build.strict must be true or false")

    interval = watch.get("interval", 0.5)
    if isinstance(interval, bool) or not isinstance(interval, (int, float)) or interval <= 0:
        raise ConfigError(f"{target}: watch.interval must be a positive number")

    out_path = None
    if out_dir is not None:
        out_path = Path(out_dir)
        if not out_path.is_absolute():
            out_path = target.parent / out_path

    return ProjectConfig(
        out_dir=out_path,
        strict=strict,
        watch_interval=float(interval),
        path=target,
    )
