"""Discord session management for the channel proxy."""

from discord_channel_proxy.bot.client import ChannelReaderBot
from discord_channel_proxy.bot.session import ChannelSession, SessionState

__all__ = ["ChannelReaderBot", "ChannelSession", "SessionState"]
