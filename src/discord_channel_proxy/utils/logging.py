"""
Logging configuration and utilities for the Discord channel proxy.

This module provides centralized logging setup with support for both
structured JSON logging (for production) and human-readable text logging
(for development). It integrates with structlog for structured logging
and rich for console output.
"""

import json
import logging
import sys
from typing import Any, Dict, Optional

import structlog
from rich.console import Console
from rich.logging import RichHandler

from discord_channel_proxy.config import LoggingConfig


def setup_logging(config: LoggingConfig) -> None:
    """
    Set up application logging based on configuration.
    
    Configures the standard library root logger (JSON lines or rich text)
    and structlog so both produce consistent output.
    
    Args:
        config: Logging configuration settings
        
    Example:
        ```python
        from discord_channel_proxy.config import load_config
        from discord_channel_proxy.utils.logging import setup_logging
        
        app_config = load_config()
        setup_logging(app_config.logging)
        ```
    """
    # Clear any existing handlers
    logging.getLogger().handlers.clear()
    
    logging.getLogger().setLevel(config.level)
    
    if config.format == "json":
        _setup_json_logging(config)
    else:
        _setup_rich_logging(config)
    
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.CallsiteParameterAdder(
                parameters=[structlog.processors.CallsiteParameter.FILENAME,
                           structlog.processors.CallsiteParameter.LINENO]
            ),
            _structlog_processor if config.format == "json" else _rich_processor,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, config.level)
        ),
        logger_factory=structlog.WriteLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    
    configure_external_loggers()


def _setup_json_logging(config: LoggingConfig) -> None:
    """Set up structured JSON logging for production."""
    formatter = logging.Formatter(
        fmt='{"timestamp": "%(asctime)s", "level": "%(levelname)s", '
            '"logger": "%(name)s", "message": "%(message)s"}',
        datefmt="%Y-%m-%dT%H:%M:%SZ"
    )
    
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.setLevel(config.level)
    
    logging.getLogger().addHandler(handler)


def _setup_rich_logging(config: LoggingConfig) -> None:
    """Set up rich text logging for development."""
    console = Console(width=120)
    
    handler = RichHandler(
        console=console,
        show_time=True,
        show_level=True,
        show_path=True,
        markup=False,
        rich_tracebacks=True,
    )
    
    handler.setLevel(config.level)
    logging.getLogger().addHandler(handler)


def _structlog_processor(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> str:
    """Render structlog events as JSON."""
    return json.dumps(event_dict, default=str)


def _rich_processor(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> str:
    """Render structlog events as a message followed by key=value context."""
    level = str(event_dict.get("level", "info")).upper()
    message = event_dict.pop("event", "")
    
    context_items = []
    for key, value in event_dict.items():
        if key not in {"timestamp", "level", "filename", "lineno"}:
            context_items.append(f"{key}={value}")
    
    if context_items:
        message += f" ({', '.join(context_items)})"
    
    return f"{event_dict.get('timestamp', '')} [{level}] {message}"


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """
    Get a configured logger instance.
    
    Args:
        name: Optional logger name (defaults to calling module)
        
    Returns:
        Configured structlog BoundLogger instance
        
    Example:
        ```python
        logger = get_logger(__name__)
        logger.info("Fetching messages", channel_id="1234")
        ```
    """
    return structlog.get_logger(name)


def get_service_logger(service_name: str) -> structlog.BoundLogger:
    """
    Get a service-specific logger with consistent naming.
    
    Args:
        service_name: Name of the service (e.g., 'discord', 'http')
        
    Returns:
        Logger bound with service context
    """
    logger = get_logger(f"service.{service_name}")
    return logger.bind(service=service_name)


def log_discord_event(event_type: str, **context: Any) -> None:
    """
    Log Discord events with consistent formatting.
    
    Args:
        event_type: Type of Discord event (ready, login_failed, etc.)
        **context: Event-specific context
    """
    logger = get_service_logger("discord")
    logger.info(
        f"Discord event: {event_type}",
        event_type=event_type,
        **context
    )


def configure_external_loggers() -> None:
    """
    Configure logging levels for external libraries to reduce noise.
    """
    logging.getLogger('discord').setLevel(logging.WARNING)
    logging.getLogger('discord.http').setLevel(logging.WARNING)
    logging.getLogger('discord.gateway').setLevel(logging.INFO)
    
    logging.getLogger('aiohttp.access').setLevel(logging.WARNING)
    logging.getLogger('asyncio').setLevel(logging.WARNING)
