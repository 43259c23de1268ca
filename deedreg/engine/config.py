"""
DeedReg Configuration — Load and validate deedreg.yaml at startup.

Usage:
    from deedreg.engine.config import load_registry_config, get_registry_config
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator

CONFIG_FILENAME = "deedreg.yaml"


# ---------------------------------------------------------------------------
# Pydantic models for deedreg.yaml
# ---------------------------------------------------------------------------

class DatabaseConfig(BaseModel):
    url: str = "sqlite:///deedreg.db"
    pool_pre_ping: bool = True
    echo: bool = False


class LogAsyncQueueConfig(BaseModel):
    flush_interval_ms: int = 100
    flush_batch_size: int = 50
    max_queue_size: int = 10000


class LoggingConfig(BaseModel):
    level: str = "INFO"
    directory: str = ".deedreg/logs"
    async_queue: LogAsyncQueueConfig = LogAsyncQueueConfig()

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"logging level must be a standard level name, got '{v}'")
        return v


class RegistryConfig(BaseModel):
    """Root model for deedreg.yaml."""
    name: str = "DeedReg"
    environment: str = "dev"
    administrator: Optional[str] = Field(
        default=None,
        description="Identity fixed as the registry administrator (the deployer)",
    )

    database: DatabaseConfig = DatabaseConfig()
    logging: LoggingConfig = LoggingConfig()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        if v not in ("dev", "staging", "prod"):
            raise ValueError(f"environment must be dev/staging/prod, got '{v}'")
        return v


# ---------------------------------------------------------------------------
# Config Loading Functions
# ---------------------------------------------------------------------------

_registry_config: Optional[RegistryConfig] = None


def _find_project_root() -> Path:
    """Find the project root by looking for deedreg.yaml."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        if (parent / CONFIG_FILENAME).exists():
            return parent
    return current


def load_registry_config(config_path: Optional[str] = None) -> RegistryConfig:
    """
    Load and validate deedreg.yaml.

    Args:
        config_path: Explicit path to deedreg.yaml. If None, auto-discovers.

    Returns:
        Validated RegistryConfig instance (defaults if the file is missing).
    """
    global _registry_config

    if config_path is None:
        config_path = str(_find_project_root() / CONFIG_FILENAME)

    path = Path(config_path)
    if not path.exists():
        _registry_config = RegistryConfig()
        return _registry_config

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    # deedreg.yaml nests identity settings under "registry:"
    registry_data = raw.get("registry", {})
    config_data = {
        "name": registry_data.get("name", raw.get("name", "DeedReg")),
        "environment": registry_data.get("environment", raw.get("environment", "dev")),
        "administrator": registry_data.get("administrator", raw.get("administrator")),
        "database": raw.get("database", {}),
        "logging": raw.get("logging", {}),
    }

    _registry_config = RegistryConfig(**config_data)
    return _registry_config


def get_registry_config() -> RegistryConfig:
    """Get the currently loaded config, loading if necessary."""
    global _registry_config
    if _registry_config is None:
        _registry_config = load_registry_config()
    return _registry_config
