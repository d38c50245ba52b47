"""Configuration loading.

Layers, lowest priority first:

    defaults < ~/.config/upvoting/config.toml < ./upvoting.toml
             < $UPVOTING_CONFIG < explicit path < $UPVOTING_DATABASE_URL
             < programmatic overrides

Each layer is a partial TOML-shaped dict; later layers replace keys of
earlier ones table by table.
"""

from __future__ import annotations

import functools
import os
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from upvoting.core.errors import ConfigError

from .schema import UpvotingConfig

if TYPE_CHECKING:
    from collections.abc import Iterator

CONFIG_ENV = "UPVOTING_CONFIG"
DATABASE_URL_ENV = "UPVOTING_DATABASE_URL"


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base. Override wins on conflicts."""
    merged = base.copy()
    for key, value in override.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def config_files(path: str | Path | None = None) -> list[Path]:
    """Return the config files that apply, in merge order.

    Raises ConfigError if ``$UPVOTING_CONFIG`` or *path* names a missing file.
    """
    xdg = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
    implicit = [Path(xdg) / "upvoting" / "config.toml", Path.cwd() / "upvoting.toml"]
    found = [p for p in implicit if p.is_file()]

    explicit = [
        (f"{CONFIG_ENV} points to non-existent file", os.environ.get(CONFIG_ENV)),
        ("Config file not found", path),
    ]
    for problem, candidate in explicit:
        if not candidate:
            continue
        p = Path(candidate)
        if not p.is_file():
            raise ConfigError(f"{problem}: {candidate}")
        found.append(p)
    return found


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e


def _layers(
    path: str | Path | None, overrides: dict[str, Any] | None
) -> Iterator[dict[str, Any]]:
    for config_file in config_files(path):
        yield _read_toml(config_file)
    database_url = os.environ.get(DATABASE_URL_ENV)
    if database_url:
        yield {"database": {"url": database_url}}
    if overrides:
        yield overrides


def load_config(
    path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> UpvotingConfig:
    """Load and validate configuration.

    Args:
        path: Explicit config file path (highest file priority).
        overrides: Dict of overrides merged last (highest overall priority).

    Raises:
        ConfigError: On invalid TOML, missing files, or validation failure.
    """
    merged = functools.reduce(_deep_merge, _layers(path, overrides), {})
    try:
        return UpvotingConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed: {e}") from e
