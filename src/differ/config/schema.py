"""Configuration schema: dataclasses for every config section."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

OutputFormat = Literal["terminal", "json"]
LogLevel = Literal["debug", "info", "warning", "error"]

OUTPUT_FORMATS: tuple[str, ...] = ("terminal", "json")
LOG_LEVELS: tuple[str, ...] = ("debug", "info", "warning", "error")


@dataclass
class RelayConfig:
    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = 3100
    path: str = "/mcp"  # mount point of the streamable HTTP endpoint


@dataclass
class OutputConfig:
    format: OutputFormat = "terminal"
    show_summary: bool = True


@dataclass
class LogConfig:
    level: LogLevel = "warning"


@dataclass
class GitConfig:
    timeout: int = 30  # seconds per git subprocess


@dataclass
class DifferConfig:
    version: str = "1.0"
    relay: RelayConfig = field(default_factory=RelayConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    log: LogConfig = field(default_factory=LogConfig)
    git: GitConfig = field(default_factory=GitConfig)
