"""
Application Settings
===================

Main application settings and environment configuration using Pydantic Settings.
Supports development, testing, and production environments.
"""

from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path


class Settings(BaseSettings):
    """Main application settings with environment variable support."""

    # Application Configuration
    app_name: str = Field(
        default="High-Performance HTML to Image Server", description="Application name"
    )
    app_version: str = Field(default="2.1.0", description="Application version")
    environment: str = Field(
        default="development", description="Environment: development, testing, production"
    )
    debug: bool = Field(default=False, description="Debug mode")

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=1234, description="Server port")
    keep_alive_timeout: int = Field(default=5, description="HTTP keep-alive timeout in seconds")

    # Admission Configuration
    max_concurrent: int = Field(default=5, gt=0, description="Maximum concurrent renders")
    retry_after_seconds: int = Field(
        default=3, ge=0, description="Suggested client retry delay when the server is busy"
    )
    max_html_bytes: int = Field(
        default=10 * 1024 * 1024, gt=0, description="Maximum accepted HTML size in bytes"
    )

    # Cache Configuration
    cache_ttl: float = Field(default=300.0, gt=0, description="Cache TTL in seconds")
    cache_sweep_interval: float = Field(
        default=300.0, gt=0, description="Interval between cache sweeps in seconds"
    )

    # Browser Configuration
    browser_headless: bool = Field(default=True, description="Run browser in headless mode")
    browser_executable_path: Optional[str] = Field(
        default=None, description="Override path to the Chromium executable"
    )
    browser_launch_timeout: float = Field(
        default=30.0, gt=0, description="Browser launch timeout in seconds"
    )
    browser_close_timeout: float = Field(
        default=5.0, gt=0, description="Page and browser close timeout in seconds"
    )

    # Lifecycle Configuration
    drain_timeout: float = Field(
        default=10.0, ge=0, description="Maximum time to wait for in-flight renders on shutdown"
    )
    stats_log_interval: float = Field(
        default=60.0, gt=0, description="Interval of production stats logging in seconds"
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_to_file: bool = Field(default=False, description="Write rotating log files")
    log_dir: Path = Field(default=Path("./logs"), description="Log file directory")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = {"development", "testing", "production"}
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, env_prefix="HTML2IMG_"
    )


# Global settings instance - will be initialized when needed
settings = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global settings
    if settings is None:
        settings = Settings()
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global settings
    settings = Settings()
    return settings
