"""
Discord client used by the channel proxy.

The client only needs to see guilds and read message history, so it
requests the minimum set of gateway intents. It does not register any
commands or respond to messages.
"""

from typing import Awaitable, Callable, Optional

import discord

from discord_channel_proxy.utils.logging import get_logger


ReadyCallback = Callable[[], Awaitable[None]]


class ChannelReaderBot(discord.Client):
    """
    Read-only Discord client.
    
    Attributes:
        on_ready_callback: Coroutine function invoked every time Discord
            reports the connection as ready
    """
    
    def __init__(self, on_ready_callback: Optional[ReadyCallback] = None) -> None:
        """
        Initialize the client with read-only intents.
        
        Args:
            on_ready_callback: Called from ``on_ready``
        """
        intents = discord.Intents.none()
        intents.guilds = True
        intents.guild_messages = True
        # Required to see message text in history
        intents.message_content = True
        
        super().__init__(intents=intents)
        
        self.on_ready_callback = on_ready_callback
        self.logger = get_logger(__name__)
        
    async def on_ready(self) -> None:
        """Called when the bot is ready and connected to Discord."""
        self.logger.debug("Discord client ready", bot_user=str(self.user))
        if self.on_ready_callback is not None:
            await self.on_ready_callback()
