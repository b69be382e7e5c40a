"""
Configuration management using Pydantic for the part template locator.
Provides type-safe configuration with validation and environment variable support.
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from domain_types import APIConstants, LocatorConstants, SystemConstants
from models import LocateParams

logger = logging.getLogger(__name__)


class LocatorConfig(BaseSettings):
    """Default locator options, overridable through MV_LOCATOR_* variables."""

    template_source_name: Optional[str] = Field(
        default=None, description="Default upstream result supplying the template"
    )
    score_threshold: float = Field(
        default=LocatorConstants.DEFAULT_SCORE_THRESHOLD,
        ge=0.0,
        le=1.0,
        description="Absolute score floor",
    )
    rotate_step: float = Field(
        default=LocatorConstants.DEFAULT_ROTATE_STEP,
        gt=0.0,
        le=LocatorConstants.MAX_ROTATE_STEP,
        description="Coarse angular step in degrees",
    )
    angle_resolution: float = Field(
        default=LocatorConstants.DEFAULT_ANGLE_RESOLUTION,
        gt=0.0,
        description="Bisection termination tolerance in degrees",
    )
    relative_threshold: float = Field(
        default=LocatorConstants.DEFAULT_RELATIVE_THRESHOLD,
        ge=0.0,
        le=1.0,
        description="Fraction of the response maximum used as acceptance floor",
    )
    verbose_logging: bool = Field(default=False, description="Trace every search state")

    model_config = SettingsConfigDict(env_prefix="MV_LOCATOR_", extra="ignore")

    def to_params(self) -> LocateParams:
        """Build validated locator parameters from these defaults."""
        return LocateParams(**self.model_dump())


class APIConfig(BaseSettings):
    """API configuration."""

    host: str = Field(default="0.0.0.0", description="API host address")
    port: int = Field(default=8000, ge=1, le=65535, description="API port")
    api_version: str = Field(default=APIConstants.API_VERSION, description="API version")
    cors_enabled: bool = Field(default=True, description="Enable CORS")
    cors_origins: List[str] = Field(default=["*"], description="CORS allowed origins")
    request_timeout: int = Field(
        default=APIConstants.REQUEST_TIMEOUT_SECONDS,
        ge=1,
        le=300,
        description="Default locate timeout in seconds",
    )

    model_config = SettingsConfigDict(env_prefix="MV_API_", extra="ignore")


class SystemConfig(BaseSettings):
    """System configuration."""

    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default=SystemConstants.LOG_LEVEL_DEFAULT, description="Logging level")
    worker_threads: int = Field(
        default=SystemConstants.THREAD_POOL_SIZE,
        ge=1,
        le=SystemConstants.MAX_WORKER_THREADS,
        description="Number of worker threads for locate calls",
    )
    thumbnail_width: int = Field(
        default=SystemConstants.THUMBNAIL_WIDTH,
        ge=50,
        le=2000,
        description="Overlay thumbnail width in pixels",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    model_config = SettingsConfigDict(env_prefix="MV_SYSTEM_", extra="ignore")


class Settings(BaseSettings):
    """Main application settings."""

    # Sub-configurations
    locator: LocatorConfig = Field(default_factory=LocatorConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    system: SystemConfig = Field(default_factory=SystemConfig)

    # Environment
    environment: str = Field(
        default="production", description="Environment (development, staging, production)"
    )

    # Config file support
    config_file: Optional[str] = Field(default=None, description="Path to YAML config file")

    @model_validator(mode="before")
    @classmethod
    def load_config_file(cls, values):
        """Load configuration from YAML file if specified."""
        if not isinstance(values, dict):
            return values

        config_file = values.get("config_file") or os.getenv("MV_CONFIG_FILE")

        if config_file and Path(config_file).exists():
            try:
                with open(config_file, "r") as f:
                    file_config = yaml.safe_load(f)
                    if file_config:
                        # Explicit values and env vars take precedence
                        for key, value in file_config.items():
                            if key not in values or values[key] is None:
                                values[key] = value
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config file {config_file}: {e}")

        return values

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment value."""
        valid_envs = ["development", "staging", "production", "test"]
        if v not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of {valid_envs}")
        return v

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary."""
        return self.model_dump(exclude_none=True)

    model_config = SettingsConfigDict(
        env_prefix="MV_",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings object with validated configuration
    """
    return Settings()


# Convenience function to reload settings (clears cache)
def reload_settings() -> Settings:
    """
    Reload settings, clearing the cache.

    Returns:
        Fresh Settings object
    """
    get_settings.cache_clear()
    return get_settings()
