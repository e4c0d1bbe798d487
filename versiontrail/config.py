"""Configuration management for versiontrail.

Settings come from, in increasing priority:
- built-in defaults (the Settings model)
- ~/.versiontrail/config.yaml (user level)
- <repo>/.versiontrail/config.yaml (repository level)
- environment variables (a .env file is loaded first)
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError, field_validator


class ConfigError(Exception):
    """Raised when there's an error with configuration."""
    pass


_CONFIG_DIR = Path.home() / ".versiontrail"

CONFIG_FILE_NAME = "config.yaml"
REPO_CONFIG_DIR_NAME = ".versiontrail"

# Environment variable -> settings key
ENV_OVERRIDES = {
    "VERSIONTRAIL_GIT": "git_executable",
    "VERSIONTRAIL_HISTORY_TTL": "history_cache_ttl",
    "VERSIONTRAIL_SCAN_DEPTH": "scan_depth",
}


class Settings(BaseModel):
    """Effective versiontrail settings."""

    git_executable: str = "git"
    max_retries: int = 2
    retry_delay: float = 0.1  # seconds, multiplied by the attempt number
    repository_cache_ttl: float = 5.0
    history_cache_ttl: float = 300.0
    scan_depth: int = 2
    host_wait_timeout: float = 0.5
    host_poll_interval: float = 0.1
    page_size: int = 20
    backup_enabled: bool = True
    backup_prefix: str = "versiontrail/backup/"
    backup_retention_days: int = 7
    max_backups: int = 10

    @field_validator("max_retries", "scan_depth", "backup_retention_days", "max_backups")
    @classmethod
    def _non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must not be negative")
        return v

    @field_validator("page_size")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @field_validator("backup_prefix")
    @classmethod
    def _trailing_slash(cls, v: str) -> str:
        return v if v.endswith("/") else v + "/"


def get_global_config_dir() -> Path:
    """Get the user-level configuration directory.

    Returns:
        Path to ~/.versiontrail/
    """
    return _CONFIG_DIR


def get_config_file_path() -> Path:
    """Get path to the user-level config.yaml.

    Returns:
        Path to ~/.versiontrail/config.yaml
    """
    return get_global_config_dir() / CONFIG_FILE_NAME


def get_repo_config_file(repo_root: Path) -> Path:
    """Get path to a repository's config.yaml.

    Args:
        repo_root: The root directory of the git repository.

    Returns:
        Path to <repo>/.versiontrail/config.yaml
    """
    return Path(repo_root) / REPO_CONFIG_DIR_NAME / CONFIG_FILE_NAME


def _load_yaml(config_file: Path) -> Dict[str, Any]:
    if not config_file.exists():
        return {}

    try:
        with open(config_file, "r") as f:
            config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load config from {config_file}: {e}")

    if not isinstance(config, dict):
        raise ConfigError(f"Config file {config_file} must contain a mapping")
    return config


def load_global_config() -> Dict[str, Any]:
    """Load ~/.versiontrail/config.yaml.

    Returns:
        Dictionary with configuration values. Empty dict if file doesn't exist.
    """
    return _load_yaml(get_config_file_path())


def load_repo_config(repo_root: Path) -> Dict[str, Any]:
    """Load <repo>/.versiontrail/config.yaml.

    Returns:
        Dictionary with configuration values. Empty dict if file doesn't exist.
    """
    return _load_yaml(get_repo_config_file(repo_root))


def _env_overrides() -> Dict[str, str]:
    load_dotenv()
    return {key: os.environ[var] for var, key in ENV_OVERRIDES.items() if os.environ.get(var)}


def load_settings(repo_root: Optional[Path] = None) -> Settings:
    """Build the effective settings.

    Args:
        repo_root: Repository whose config.yaml should be applied, if any.

    Returns:
        Validated Settings.

    Raises:
        ConfigError: If a config file is unreadable or holds invalid values.
    """
    values: Dict[str, Any] = {}
    values.update(load_global_config())
    if repo_root is not None:
        values.update(load_repo_config(repo_root))
    values.update(_env_overrides())

    unknown = sorted(set(values) - set(Settings.model_fields))
    if unknown:
        raise ConfigError(f"Unknown configuration key(s): {', '.join(unknown)}")

    try:
        return Settings(**values)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}")
