"""Utility modules for the Discord channel proxy."""

from discord_channel_proxy.utils.exceptions import (
    ChannelProxyError,
    ConfigurationError,
    ChannelNotPermittedError,
    SessionNotReadyError,
    ChannelNotFoundError,
    UpstreamFetchError,
)
from discord_channel_proxy.utils.logging import setup_logging

__all__ = [
    "ChannelProxyError",
    "ConfigurationError",
    "ChannelNotPermittedError",
    "SessionNotReadyError",
    "ChannelNotFoundError",
    "UpstreamFetchError",
    "setup_logging",
]
