"""
Configuration management for the Discord channel proxy.

This module handles all configuration loading from environment variables,
validation, and provides typed configuration objects for use throughout
the application.

Configuration is read once at startup from environment variables and an
optional .env file. There is no hot reload.
"""

from pathlib import Path
from typing import FrozenSet, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_whitelist(raw: Optional[str]) -> FrozenSet[str]:
    """
    Parse a comma-separated list of channel ids.
    
    Entries are stripped and empty entries are dropped, so ``"A, B,,"``
    yields ``{"A", "B"}``. An empty result means every channel is permitted.
    
    Args:
        raw: The configured whitelist string (may be None or empty)
        
    Returns:
        Immutable set of permitted channel ids
    """
    if not raw:
        return frozenset()
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


class DiscordConfig(BaseSettings):
    """Discord bot configuration settings."""
    
    bot_token: Optional[str] = Field(
        default=None,
        description="Discord bot token from Developer Portal"
    )
    
    model_config = SettingsConfigDict(env_prefix="DISCORD_")
        
    @field_validator("bot_token")
    @classmethod
    def validate_token(cls, v: Optional[str]) -> Optional[str]:
        """Treat a blank token as missing."""
        if v is not None and not v.strip():
            return None
        return v


class ServerConfig(BaseSettings):
    """HTTP gateway configuration settings."""
    
    host: str = Field(
        default="0.0.0.0",
        description="Interface the HTTP server binds to"
    )
    port: int = Field(
        default=3001,
        gt=0,
        le=65535,
        description="Port the HTTP server listens on"
    )
    frontend_origin: str = Field(
        default="*",
        description="Origin allowed by the CORS policy ('*' for any)"
    )
    channels_whitelist: str = Field(
        default="",
        description="Comma-separated channel ids that may be read (empty allows all)"
    )
    message_limit: int = Field(
        default=50,
        gt=0,
        le=100,
        description="Number of recent messages returned per request"
    )
    
    model_config = SettingsConfigDict(env_prefix="")
    
    @field_validator("frontend_origin")
    @classmethod
    def validate_origin(cls, v: str) -> str:
        """Fall back to the wildcard when the origin is blank."""
        return v.strip() or "*"
        
    @property
    def whitelist(self) -> FrozenSet[str]:
        """Parsed channel whitelist."""
        return parse_whitelist(self.channels_whitelist)


class LoggingConfig(BaseSettings):
    """Logging configuration settings."""
    
    level: str = Field(
        default="INFO",
        description="Logging level"
    )
    format: str = Field(
        default="text",
        description="Log format: 'json' or 'text'"
    )
    
    model_config = SettingsConfigDict(env_prefix="LOG_")
        
    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()
        
    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format."""
        if v not in {"json", "text"}:
            raise ValueError("Log format must be 'json' or 'text'")
        return v


class AppConfig(BaseSettings):
    """Main application configuration."""
    
    discord: DiscordConfig = Field(default_factory=DiscordConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config() -> AppConfig:
    """
    Load and validate application configuration.
    
    Loads a .env file from the working directory when present, then builds
    the typed configuration from the environment.
    
    Returns:
        AppConfig: Validated application configuration
        
    Raises:
        ValidationError: If a configured value is invalid
        
    Example:
        ```python
        config = load_config()
        print(f"Listening on port {config.server.port}")
        ```
    """
    env_file = Path(".env")
    if env_file.exists():
        from dotenv import load_dotenv
        load_dotenv(env_file)
    
    return AppConfig()
