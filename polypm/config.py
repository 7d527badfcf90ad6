#!/usr/bin/env python3
"""
Configuration management for polypm.

Settings are loaded from a TOML file and validated with Pydantic v2. Lookup
order for the file: explicit path, ``$POLYPM_CONFIG``, then
``$XDG_CONFIG_HOME/polypm/config.toml`` (``~/.config`` when unset).
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import ConfigError
from .managers import Manager
from .pm_types import LogLevel, PathLike

CONFIG_ENV_VAR = "POLYPM_CONFIG"


def default_config_path() -> Path:
    base = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
    return Path(base) / "polypm" / "config.toml"


class PolyPMConfig(BaseModel):
    """User configuration using Pydantic v2."""

    model_config = ConfigDict(
        extra="forbid", validate_assignment=True, str_strip_whitespace=True
    )

    manager: Optional[Manager] = Field(
        default=None, description="Manager to use instead of auto-detection"
    )
    priority: list[Manager] = Field(
        default_factory=lambda: list(Manager),
        description="Detection order when no manager is configured",
    )
    use_sudo: bool = Field(
        default=False, description="Prefix privileged commands with sudo"
    )
    probe_timeout: float = Field(
        default=10.0, gt=0, description="Seconds to wait for an availability probe"
    )
    log_level: LogLevel = Field(default="INFO", description="Console log level")
    json_output: bool = Field(default=False, description="Print results as JSON")

    @field_validator("manager", mode="before")
    @classmethod
    def _parse_manager(cls, value: Any) -> Any:
        if isinstance(value, str):
            return Manager.from_name(value)
        return value

    @field_validator("priority", mode="before")
    @classmethod
    def _parse_priority(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [Manager.from_name(v) if isinstance(v, str) else v for v in value]
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @field_validator("priority")
    @classmethod
    def _unique_priority(cls, value: list[Manager]) -> list[Manager]:
        if len(set(value)) != len(value):
            raise ValueError("priority lists a manager more than once")
        return value


def _resolve_path(path: PathLike | None) -> tuple[Path, bool]:
    """Return the config path and whether it was requested explicitly."""
    if path:
        return Path(path), True
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path), True
    return default_config_path(), False


def load_config(path: PathLike | None = None) -> PolyPMConfig:
    """
    Load configuration from TOML.

    Args:
        path: Explicit config file. Falls back to $POLYPM_CONFIG and the
            default location; a missing default file yields defaults.

    Raises:
        ConfigError: If an explicit file is missing, unreadable, not valid
            TOML, or fails validation.
    """
    config_path, explicit = _resolve_path(path)

    if not config_path.exists():
        if explicit:
            raise ConfigError(
                f"Specified config path does not exist: {config_path}",
                config_path=str(config_path),
            )
        logger.debug(f"No config at {config_path}, using defaults")
        return PolyPMConfig()

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        raise ConfigError(
            f"Cannot read configuration file {config_path}: {e}",
            config_path=str(config_path),
        ) from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(
            f"Invalid TOML in {config_path}: {e}", config_path=str(config_path)
        ) from e

    # Allow the settings either at top level or under a [polypm] table
    if isinstance(data.get("polypm"), dict):
        data = data["polypm"]

    try:
        config = PolyPMConfig.model_validate(data)
    except (ValidationError, ValueError) as e:
        raise ConfigError(
            f"Invalid configuration in {config_path}: {e}",
            config_path=str(config_path),
        ) from e

    logger.debug(f"Loaded configuration from {config_path}")
    return config
