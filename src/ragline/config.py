# src/ragline/config.py
"""Configuration loading utilities for ragline.

It handles:
- Finding and loading ragline.yaml config files
- Loading .env files for API keys
- Building Settings objects from YAML and RAGLINE_* environment variables
- Creating Ragline instances from configuration
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from pydantic import ValidationError

from ragline.settings import Settings

if TYPE_CHECKING:
    from ragline.ragline import Ragline

logger = logging.getLogger(__name__)

# Default paths
DEFAULT_DATA_DIR = "./ragline_data"
CONFIG_FILES = ["ragline.yaml", "ragline.yml", ".raglinerc"]
ENV_FILE = ".env"
ENV_PREFIX = "RAGLINE_"

# Root-level keys other than the settings section
VALID_ROOT_KEYS = {"data_dir", "settings"}

VALID_SETTINGS_KEYS = set(Settings.model_fields)


@dataclass
class ConfigError:
    """Error during configuration loading."""

    message: str
    suggestion: str | None = None


def load_env_file(env_path: str | Path = ENV_FILE) -> None:
    """Load environment variables from a .env file if it exists.

    Existing environment variables are never overridden.

    Args:
        env_path: Path to .env file (default: .env in current directory)
    """
    path = Path(env_path)
    if not path.exists():
        return

    with open(path, encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip().strip("\"'")
                if key not in os.environ:
                    os.environ[key] = value


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Find a configuration file in the start directory or its parents.

    Args:
        start_dir: Directory to start searching from (default: cwd)

    Returns:
        Path to config file if found, None otherwise
    """
    current = start_dir or Path.cwd()
    for _ in range(10):  # Limit search depth
        for config_name in CONFIG_FILES:
            config_path = current / config_name
            if config_path.exists():
                return config_path
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


def validate_config(config: dict[str, Any], config_path: Path | None = None) -> list[str]:
    """Validate config and return warnings about unknown keys.

    Args:
        config: The loaded configuration dictionary
        config_path: Path to config file (for error messages)

    Returns:
        List of warning messages (empty if no issues)
    """
    warnings = []

    unknown_root = set(config.keys()) - VALID_ROOT_KEYS
    if unknown_root:
        path_str = str(config_path) if config_path else "config"
        warnings.append(f"Unknown config keys in {path_str}: {', '.join(sorted(unknown_root))}")

    settings = config.get("settings", {})
    if isinstance(settings, dict):
        unknown_settings = set(settings.keys()) - VALID_SETTINGS_KEYS
        if unknown_settings:
            warnings.append(f"Unknown settings keys: {', '.join(sorted(unknown_settings))}")

    return warnings


def load_config(config_path: Path | str | None = None) -> dict[str, Any]:
    """Load configuration from a YAML file.

    Args:
        config_path: Explicit path to config file, or None to search

    Returns:
        Configuration dictionary (empty if no config found)
    """
    config_path = Path(config_path) if config_path is not None else find_config_file()

    if config_path is None:
        return {}

    with open(config_path, encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")

    for warning in validate_config(config, config_path):
        logger.warning(warning)

    return config


def get_settings_from_env() -> dict[str, Any]:
    """Read settings from RAGLINE_* environment variables.

    ``RAGLINE_CHUNK_SIZE_TEXT=500`` sets ``chunk_size_text``. Only variables
    that are set are returned; pydantic coerces the string values.
    """
    result: dict[str, Any] = {}
    for field in Settings.model_fields:
        env_name = f"{ENV_PREFIX}{field.upper()}"
        if env_name in os.environ:
            value = os.environ[env_name]
            result[field] = value if value != "" else None
    return {key: value for key, value in result.items() if value is not None}


def get_settings_from_yaml(config: dict[str, Any]) -> dict[str, Any]:
    """Extract the 'settings:' section of a YAML config."""
    yaml_settings = config.get("settings", {}) or {}
    return {key: value for key, value in yaml_settings.items() if key in VALID_SETTINGS_KEYS}


def build_settings(
    config: dict[str, Any] | None = None,
    env_settings: dict[str, Any] | None = None,
) -> Settings:
    """Build Settings from YAML config and env vars.

    Precedence (highest to lowest):
    1. Environment variables
    2. YAML settings: section
    3. Settings class defaults

    Args:
        config: YAML configuration dictionary
        env_settings: Environment variable overrides (if None, reads from env)

    Raises:
        pydantic.ValidationError: If a merged value is invalid
    """
    config = config or {}
    yaml_settings = get_settings_from_yaml(config)
    env_settings = env_settings if env_settings is not None else get_settings_from_env()
    return Settings(**{**yaml_settings, **env_settings})


@dataclass
class RaglineConfig:
    """Configuration for creating a Ragline instance."""

    data_dir: str
    settings: Settings
    config_path: Path | None = None


def get_ragline_config(
    data_dir: str | None = None,
    config_path: str | Path | None = None,
) -> RaglineConfig | ConfigError:
    """Resolve data directory and settings without creating any stores.

    Args:
        data_dir: Override data directory
        config_path: Override config file path

    Returns:
        RaglineConfig, or ConfigError if the configuration is invalid
    """
    resolved_path = Path(config_path) if config_path is not None else find_config_file()
    try:
        config = load_config(resolved_path) if resolved_path is not None else {}
    except (OSError, yaml.YAMLError, ValueError) as e:
        return ConfigError(
            message=f"Could not read config file {resolved_path}: {e}",
            suggestion="Check the file exists and is valid YAML",
        )

    try:
        settings = build_settings(config)
    except ValidationError as e:
        return ConfigError(
            message=f"Invalid settings: {e}",
            suggestion="Fix the settings section of ragline.yaml or the RAGLINE_* variables",
        )

    effective_data_dir = (
        data_dir
        or os.environ.get(f"{ENV_PREFIX}DATA_DIR")
        or config.get("data_dir")
        or DEFAULT_DATA_DIR
    )
    return RaglineConfig(
        data_dir=str(effective_data_dir),
        settings=settings,
        config_path=resolved_path,
    )


def create_ragline(
    data_dir: str | None = None,
    config_path: str | Path | None = None,
) -> Ragline | ConfigError:
    """Create a Ragline instance based on configuration.

    Loads ``.env`` first so provider API keys are visible to LiteLLM.

    Args:
        data_dir: Override data directory
        config_path: Override config file path

    Returns:
        Configured Ragline instance, or ConfigError if configuration is invalid
    """
    from ragline.ragline import Ragline

    load_env_file()
    config = get_ragline_config(data_dir, config_path)
    if isinstance(config, ConfigError):
        return config
    return Ragline.from_settings(config.settings, config.data_dir)
