"""Test configuration and utilities."""

from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, List, Optional
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from discord_channel_proxy.config import AppConfig, DiscordConfig, ServerConfig, LoggingConfig


@pytest.fixture
def test_config() -> AppConfig:
    """Create a test configuration."""
    config = AppConfig()
    
    # Override with test-specific settings
    config.discord = DiscordConfig(bot_token="test_token_" + "x" * 50)
    config.server = ServerConfig(
        host="127.0.0.1",
        port=3001,
        frontend_origin="*",
        channels_whitelist="",
        message_limit=50,
    )
    config.logging = LoggingConfig(level="DEBUG", format="text")
    
    return config


def make_message(
    message_id: int,
    timestamp_ms: int,
    author: Optional[str] = "alice",
    content: str = "hello",
) -> SimpleNamespace:
    """Build an object shaped like a discord.Message."""
    return SimpleNamespace(
        id=message_id,
        author=SimpleNamespace(display_name=author) if author is not None else None,
        content=content,
        created_at=datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc),
    )


def make_text_channel(messages: List[Any]) -> MagicMock:
    """Build a mock text channel whose history yields the given messages."""
    channel = MagicMock(spec=discord.TextChannel)
    
    def history(limit: int = 100):
        async def _iterate():
            for message in messages[:limit]:
                yield message
        return _iterate()
    
    channel.history = MagicMock(side_effect=history)
    return channel


def http_error(cls: type, status: int, text: str) -> discord.HTTPException:
    """Instantiate a discord HTTP exception without a real response."""
    response = MagicMock(status=status, reason=text)
    return cls(response, text)


@pytest.fixture
def fake_client() -> MagicMock:
    """A discord client stand-in with an empty channel cache."""
    client = MagicMock()
    client.user = "proxy-bot#0001"
    client.get_channel = MagicMock(return_value=None)
    client.fetch_channel = AsyncMock()
    client.start = AsyncMock()
    client.close = AsyncMock()
    client.is_closed = MagicMock(return_value=False)
    return client
