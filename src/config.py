"""
Configuration loader for the Terraform Infrastructure Verifier.
"""

import os
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from .errors import ConfigurationError


@dataclass(frozen=True)
class Config:
    """Configuration class for the verifier. Passed by value into each scenario."""

    infra_dir: str
    aws_region: str = "us-east-1"
    log_level: str = "INFO"
    max_retries: int = 3
    timeout_seconds: int = 120
    command_timeout_seconds: int = 3600
    max_parallel: int = 4
    scenario_file: Optional[str] = None
    terraform_binary: str = "terraform"
    unique_id_variable: Optional[str] = None


def load_config(overrides: Optional[Dict[str, Any]] = None) -> Config:
    """
    Loads and validates configuration from the environment.

    Args:
        overrides: Values that take precedence over environment variables
            (used by the command-line interface). None values are ignored.

    Returns:
        Config object with validated settings

    Raises:
        ConfigurationError: If required configuration is missing or invalid
    """
    # Required configuration
    infra_dir = os.environ.get("INFRA_DIR")

    # Optional configuration with defaults
    values: Dict[str, Any] = {
        "infra_dir": infra_dir,
        "aws_region": os.environ.get("AWS_REGION", "us-east-1"),
        "log_level": os.environ.get("LOG_LEVEL", "INFO"),
        "max_retries": _int_setting("MAX_RETRIES", "3"),
        "timeout_seconds": _int_setting("TIMEOUT_SECONDS", "120"),
        "command_timeout_seconds": _int_setting("COMMAND_TIMEOUT_SECONDS", "3600"),
        "max_parallel": _int_setting("MAX_PARALLEL", "4"),
        "scenario_file": os.environ.get("SCENARIO_FILE") or None,
        "terraform_binary": os.environ.get("TERRAFORM_BINARY", "terraform"),
        "unique_id_variable": os.environ.get("UNIQUE_ID_VARIABLE") or None,
    }
    for key, value in (overrides or {}).items():
        if value is not None:
            values[key] = value

    if not values["infra_dir"]:
        raise ConfigurationError("INFRA_DIR environment variable is required")

    config = Config(**values)
    return validate_config(config)


def validate_config(config: Config) -> Config:
    """Checks numeric bounds and the log level, returning a normalised copy."""
    if config.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR"):
        raise ConfigurationError(f"Unsupported LOG_LEVEL: {config.log_level}")
    if config.max_retries < 1:
        raise ConfigurationError("MAX_RETRIES must be at least 1")
    if config.timeout_seconds <= 0 or config.command_timeout_seconds <= 0:
        raise ConfigurationError("Timeouts must be positive")
    if config.max_parallel < 1:
        raise ConfigurationError("MAX_PARALLEL must be at least 1")
    return replace(config, log_level=config.log_level.upper())


def _int_setting(name: str, default: str) -> int:
    raw = os.environ.get(name, default)
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")
