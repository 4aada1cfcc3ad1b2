"""
Metrics Tracker Configuration Module

Configuration parser with YAML/ENV support and validation.
Uses Pydantic for type validation and settings management.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TRACKER_URL = "https://metrics-tracker.mybluemix.net:443/api/v1/track"
DEFAULT_DESCRIPTOR_BASE_URL = "https://raw.githubusercontent.com"
DEFAULT_ORGANIZATION = "IBM"


class TrackerConfig(BaseSettings):
    """Tracking endpoint and descriptor source configuration."""

    model_config = SettingsConfigDict(env_prefix="METRICS_TRACKER_")

    enabled: bool = True
    url: str = DEFAULT_TRACKER_URL
    descriptor_base_url: str = DEFAULT_DESCRIPTOR_BASE_URL
    organization: str = DEFAULT_ORGANIZATION
    timeout_seconds: float = 5.0

    @field_validator("url", "descriptor_base_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith(("https://", "http://")):
            raise ValueError("Only http(s) URLs are supported")
        return v.rstrip("/")

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout_seconds must be positive")
        return v


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = "INFO"
    format: str = "json"
    console_output: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v.upper()

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        if v.lower() not in ("json", "text"):
            raise ValueError("Log format must be 'json' or 'text'")
        return v.lower()


class Config(BaseSettings):
    """Main configuration class aggregating all settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    tracker: TrackerConfig = Field(default_factory=TrackerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Config":
        """Load configuration from a YAML file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path) as f:
            yaml_config = yaml.safe_load(f)

        return cls(**yaml_config) if yaml_config else cls()

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        return cls()


_config: Optional[Config] = None


def load_config(yaml_path: Optional[str | Path] = None) -> Config:
    """Load and cache the configuration."""
    global _config

    if yaml_path:
        _config = Config.from_yaml(yaml_path)
    else:
        config_path = os.getenv("METRICS_TRACKER_CONFIG")
        if config_path and Path(config_path).exists():
            _config = Config.from_yaml(config_path)
        else:
            _config = Config.from_env()

    return _config


@lru_cache
def get_config() -> Config:
    """Get the cached configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config(yaml_path: Optional[str | Path] = None) -> Config:
    """Reload configuration (clears cache)."""
    global _config
    get_config.cache_clear()
    return load_config(yaml_path)
