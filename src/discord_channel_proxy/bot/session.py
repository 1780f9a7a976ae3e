"""
Channel client session.

This module owns the long-lived Discord connection used by the proxy. The
session moves through three states:

    UNAUTHENTICATED -> CONNECTING -> READY

``UNAUTHENTICATED`` is permanent when no token is configured. A failed
login is logged and leaves the session in ``CONNECTING`` for the rest of
the process lifetime; there is no retry. ``READY`` is reached once, on the
first ready signal from Discord, and is never left.
"""

import asyncio
from enum import Enum
from typing import List, Optional

import discord

from discord_channel_proxy.bot.client import ChannelReaderBot
from discord_channel_proxy.config import DiscordConfig
from discord_channel_proxy.models import ChannelMessage, to_channel_message
from discord_channel_proxy.utils.exceptions import (
    ChannelNotFoundError,
    UpstreamFetchError,
)
from discord_channel_proxy.utils.logging import get_logger, log_discord_event


DEFAULT_MESSAGE_LIMIT = 50

# Snowflakes are unsigned 64-bit integers
_MAX_SNOWFLAKE = 2 ** 64 - 1


class SessionState(str, Enum):
    """Lifecycle states of the Discord session."""
    UNAUTHENTICATED = "unauthenticated"
    CONNECTING = "connecting"
    READY = "ready"


class ChannelSession:
    """
    Authenticated Discord session exposing a single read operation.
    
    Readiness is a one-shot ``asyncio.Event``: request handlers poll it via
    ``is_ready`` and other code can await it with ``wait_until_ready``.
    
    Attributes:
        config: Discord configuration (token)
        client: The discord.py client, built on demand when not injected
        state: Current lifecycle state
    """
    
    def __init__(
        self,
        config: DiscordConfig,
        client: Optional[discord.Client] = None,
    ) -> None:
        """
        Initialize the session.
        
        Args:
            config: Discord configuration
            client: Optional pre-built client (used by tests)
        """
        self.config = config
        self.logger = get_logger(__name__)
        self.client = client or ChannelReaderBot(on_ready_callback=self.mark_ready)
        self.state = SessionState.UNAUTHENTICATED
        
        self._ready = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        
    @property
    def is_ready(self) -> bool:
        """Whether the Discord handshake has completed."""
        return self._ready.is_set()
    
    async def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the handshake to complete.
        
        Args:
            timeout: Seconds to wait, or None to wait forever
            
        Returns:
            True if the session is ready, False if the timeout expired
        """
        try:
            await asyncio.wait_for(self._ready.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True
        
    def start(self) -> Optional[asyncio.Task]:
        """
        Begin connecting to Discord in the background.
        
        Does nothing but log a warning when no token is configured; the
        session then stays ``UNAUTHENTICATED`` and never becomes ready.
        
        Returns:
            The background connection task, or None if no token is set
        """
        if self._task is not None:
            return self._task
            
        if not self.config.bot_token:
            self.logger.warning(
                "DISCORD_BOT_TOKEN is not set, the bot will not connect "
                "until the variable is configured"
            )
            return None
        
        self.state = SessionState.CONNECTING
        self._task = asyncio.create_task(self._run_client(self.config.bot_token))
        return self._task
    
    async def _run_client(self, token: str) -> None:
        """Log in and stay connected until the client is closed."""
        self.logger.info("Connecting to Discord")
        try:
            await self.client.start(token)
        except discord.LoginFailure as e:
            self.logger.error("Failed to login Discord bot", error=str(e))
        except Exception as e:
            self.logger.error("Discord connection failed", error=str(e))
    
    async def mark_ready(self) -> None:
        """
        Handle Discord's ready signal.
        
        Only the first call changes state; later calls (e.g. after a gateway
        reconnect) are ignored.
        """
        if self._ready.is_set():
            self.logger.debug("Ignoring repeated ready signal")
            return
            
        self.state = SessionState.READY
        self._ready.set()
        log_discord_event("bot_ready", bot_user=str(self.client.user))
        self.logger.info("Discord bot connected", bot_user=str(self.client.user))
    
    async def fetch_recent_messages(
        self,
        channel_id: str,
        limit: int = DEFAULT_MESSAGE_LIMIT,
    ) -> List[ChannelMessage]:
        """
        Fetch the most recent messages of a channel.
        
        Callers must only use this once the session is ready. The returned
        list is in Discord's retrieval order (newest first), not sorted.
        
        Args:
            channel_id: Channel snowflake as a string
            limit: Maximum number of messages to return
            
        Returns:
            Reshaped messages
            
        Raises:
            ChannelNotFoundError: The channel does not exist, is not visible
                as a valid id, or cannot hold messages
            UpstreamFetchError: Discord failed in any other way
        """
        channel = await self._resolve_channel(channel_id)
        
        if not isinstance(channel, discord.abc.Messageable):
            raise ChannelNotFoundError(
                "Channel is not textual",
                context={"channel_id": channel_id, "type": type(channel).__name__},
            )
        
        try:
            fetched = [message async for message in channel.history(limit=limit)]
        except discord.NotFound as e:
            # Deleted between lookup and read
            raise ChannelNotFoundError(
                "Channel not found",
                context={"channel_id": channel_id},
                original_error=e,
            )
        except Exception as e:
            raise UpstreamFetchError(
                "Failed to read channel history",
                context={"channel_id": channel_id},
                original_error=e,
            )
        
        self.logger.debug("Fetched channel history", channel_id=channel_id, count=len(fetched))
        return [to_channel_message(message) for message in fetched]
    
    async def _resolve_channel(self, channel_id: str) -> object:
        """Look a channel up in the cache, then through the REST API."""
        try:
            snowflake = int(channel_id)
        except ValueError:
            snowflake = 0
        if snowflake <= 0 or snowflake > _MAX_SNOWFLAKE:
            raise ChannelNotFoundError(
                "Invalid channel id",
                context={"channel_id": channel_id},
            )
        
        channel = self.client.get_channel(snowflake)
        if channel is not None:
            return channel
        
        try:
            channel = await self.client.fetch_channel(snowflake)
        except (discord.NotFound, discord.InvalidData) as e:
            raise ChannelNotFoundError(
                "Channel not found",
                context={"channel_id": channel_id},
                original_error=e,
            )
        except Exception as e:
            raise UpstreamFetchError(
                "Failed to resolve channel",
                context={"channel_id": channel_id},
                original_error=e,
            )
        
        if channel is None:
            raise ChannelNotFoundError(
                "Channel not found",
                context={"channel_id": channel_id},
            )
        return channel
    
    async def close(self) -> None:
        """Disconnect from Discord and stop the background task."""
        if not self.client.is_closed():
            await self.client.close()
            
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        
        self.logger.info("Discord session closed")
