"""Load and merge configuration from .differ.toml and env vars."""

from __future__ import annotations

import dataclasses
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from differ.config.schema import (
    LOG_LEVELS,
    OUTPUT_FORMATS,
    DifferConfig,
    GitConfig,
    LogConfig,
    OutputConfig,
    RelayConfig,
)

CONFIG_FILENAME = ".differ.toml"


class ConfigError(Exception):
    """Raised when config is malformed or unreadable."""


def find_config_file(repo_root: Optional[Path], override: Optional[str] = None) -> Optional[Path]:
    """Locate the config file. *override* takes precedence."""
    if override:
        p = Path(override)
        if not p.is_file():
            raise ConfigError(f"Config file not found: {override}")
        return p
    if repo_root is None:
        return None
    candidate = repo_root / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def _parse_port(val: str) -> Optional[int]:
    try:
        port = int(val)
    except ValueError:
        return None
    return port if 0 < port < 65536 else None


def _merge_env_overrides(cfg: DifferConfig) -> None:
    """Apply DIFFER_* environment variable overrides. Invalid values are ignored."""
    if val := os.environ.get("DIFFER_RELAY_HOST"):
        cfg.relay.host = val
    if val := os.environ.get("DIFFER_RELAY_PORT"):
        if (port := _parse_port(val)) is not None:
            cfg.relay.port = port
    if val := os.environ.get("DIFFER_FORMAT"):
        if val in OUTPUT_FORMATS:
            cfg.output.format = val  # type: ignore[assignment]
    if val := os.environ.get("DIFFER_LOG_LEVEL"):
        if val.lower() in LOG_LEVELS:
            cfg.log.level = val.lower()  # type: ignore[assignment]
    if val := os.environ.get("DIFFER_GIT_TIMEOUT"):
        try:
            timeout = int(val)
        except ValueError:
            pass
        else:
            if timeout > 0:
                cfg.git.timeout = timeout


def _build_section(data: Dict[str, Any], cls: type, section: str):
    """Build a dataclass from a TOML section dict, ignoring unknown keys."""
    raw = data.get(section, {})
    if not isinstance(raw, dict):
        raise ConfigError(f"[{section}] must be a table")
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in raw.items() if k in valid_fields}
    return cls(**filtered)


def _validate(cfg: DifferConfig) -> None:
    if cfg.output.format not in OUTPUT_FORMATS:
        raise ConfigError(f"Invalid output format: {cfg.output.format}")
    if cfg.log.level not in LOG_LEVELS:
        raise ConfigError(f"Invalid log level: {cfg.log.level}")
    if not isinstance(cfg.relay.port, int) or not 0 < cfg.relay.port < 65536:
        raise ConfigError(f"Invalid relay port: {cfg.relay.port}")
    if not cfg.relay.path.startswith("/"):
        raise ConfigError(f"Relay path must start with '/': {cfg.relay.path}")


def load_config(
    repo_root: Optional[Path],
    config_override: Optional[str] = None,
) -> DifferConfig:
    """Load, validate, and return a DifferConfig."""
    config_path = find_config_file(repo_root, config_override)

    if config_path is None:
        cfg = DifferConfig()
    else:
        raw = _parse_toml(config_path)
        cfg = DifferConfig(
            version=raw.get("version", "1.0"),
            relay=_build_section(raw, RelayConfig, "relay"),
            output=_build_section(raw, OutputConfig, "output"),
            log=_build_section(raw, LogConfig, "log"),
            git=_build_section(raw, GitConfig, "git"),
        )
        _validate(cfg)

    _merge_env_overrides(cfg)
    return cfg
