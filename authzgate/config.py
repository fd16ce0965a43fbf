from __future__ import annotations

import os
from typing import Optional, Literal

import yaml
from pydantic import BaseModel


class CacheConfig(BaseModel):
    """Configuration for the compiled evaluator cache."""

    # None keeps compiled policies until explicitly invalidated.
    ttl_seconds: Optional[float] = None
    # Scoped evaluators kept per compiled policy.
    max_scopes: int = 128


class LoggingConfig(BaseModel):
    """Logging settings applied by the CLI."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"


class AuthzConfig(BaseModel):
    """Top-level configuration model."""

    database_url: Optional[str] = None
    cache: CacheConfig = CacheConfig()
    logging: LoggingConfig = LoggingConfig()


def load_config(path: Optional[str] = None) -> AuthzConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to AUTHZGATE_CONFIG env
            variable or 'config.yaml' in the current directory.
    """

    config_path = path or os.getenv("AUTHZGATE_CONFIG", "config.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = AuthzConfig(**data)
    else:
        config = AuthzConfig()

    env_db_url = os.getenv("AUTHZGATE_DATABASE_URL") or os.getenv("DATABASE_URL")
    if env_db_url:
        config.database_url = env_db_url
    return config
