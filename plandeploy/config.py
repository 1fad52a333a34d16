"""
Configuration management for plandeploy.

Loads and validates config.yaml from the plandeploy home directory
($PLANDEPLOY_HOME, default ~/.config/plandeploy).

Example config.yaml:
    plans_dir: plans
    endpoints_file: endpoints.yaml
    lock_dir: locks
    log_dir: deployments
    logging:
      level: INFO
      format: pretty
      console: true
      output: logs/plandeploy-{date}.log
"""

import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import yaml

from plandeploy.errors import ConfigError

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("structured", "pretty")


def get_plandeploy_home() -> Path:
    """Return the plandeploy home directory."""
    home = os.environ.get("PLANDEPLOY_HOME")
    if home:
        return Path(home).expanduser()
    return Path("~/.config/plandeploy").expanduser()


@dataclass
class DeployConfig:
    """Complete plandeploy configuration. All paths are absolute."""

    plans_dir: Path
    endpoints_file: Path
    lock_dir: Path
    log_dir: Path
    logging: dict[str, Any] = field(default_factory=dict)
    base_dir: Optional[Path] = None

    def get_log_file_path(self) -> Path:
        """Get log file path with date interpolation."""
        log_output = self.logging.get("output", "logs/plandeploy-{date}.log")
        log_output = log_output.replace("{date}", datetime.now().strftime("%Y-%m-%d"))
        path = Path(log_output).expanduser()
        if not path.is_absolute():
            path = (self.base_dir or get_plandeploy_home()) / path
        return path

    def get_log_level(self) -> str:
        """Get logging level."""
        return str(self.logging.get("level", "INFO")).upper()

    def get_log_format(self) -> str:
        """Get log format (structured or pretty)."""
        return self.logging.get("format", "pretty")

    def should_log_to_console(self) -> bool:
        """Check if console logging is enabled."""
        return bool(self.logging.get("console", True))

    def validate(self) -> None:
        """Validate logging settings."""
        if self.get_log_level() not in LOG_LEVELS:
            raise ConfigError(f"Invalid log level: {self.get_log_level()}")
        if self.get_log_format() not in LOG_FORMATS:
            raise ConfigError(
                f"Invalid log format: {self.get_log_format()} (expected one of {', '.join(LOG_FORMATS)})"
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any], base_dir: Path) -> "DeployConfig":
        """Build a config, resolving relative paths against base_dir."""

        def resolve(key: str, default: str) -> Path:
            value = data.get(key) or default
            if not isinstance(value, str):
                raise ConfigError(f"'{key}' must be a path string, got {type(value).__name__}")
            path = Path(value).expanduser()
            return path if path.is_absolute() else base_dir / path

        logging_section = data.get("logging") or {}
        if not isinstance(logging_section, dict):
            raise ConfigError("'logging' must be a mapping")

        config = cls(
            plans_dir=resolve("plans_dir", "plans"),
            endpoints_file=resolve("endpoints_file", "endpoints.yaml"),
            lock_dir=resolve("lock_dir", "locks"),
            log_dir=resolve("log_dir", "deployments"),
            logging=logging_section,
            base_dir=base_dir,
        )
        config.validate()
        return config


def default_config_data() -> dict[str, Any]:
    """Contents written by `plandeploy init`."""
    return {
        "plans_dir": "plans",
        "endpoints_file": "endpoints.yaml",
        "lock_dir": "locks",
        "log_dir": "deployments",
        "logging": {
            "level": "INFO",
            "format": "pretty",
            "console": True,
            "output": "logs/plandeploy-{date}.log",
        },
    }


def load_config(config_path: Optional[Path] = None) -> DeployConfig:
    """
    Load plandeploy configuration from YAML file.

    Args:
        config_path: Path to config file. Defaults to $PLANDEPLOY_HOME/config.yaml

    Returns:
        DeployConfig instance

    Raises:
        FileNotFoundError: If the config file is missing
        ConfigError: If config is invalid
    """
    if config_path is None:
        config_path = get_plandeploy_home() / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"plandeploy config.yaml not found at {config_path}")

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file must contain a mapping: {config_path}")

    return DeployConfig.from_dict(data, base_dir=config_path.parent)
