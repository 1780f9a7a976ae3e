"""Tests for the read-only Discord client."""

from unittest.mock import AsyncMock

from discord_channel_proxy.bot.client import ChannelReaderBot


async def test_intents_are_read_only():
    bot = ChannelReaderBot()
    assert bot.intents.guilds is True
    assert bot.intents.guild_messages is True
    assert bot.intents.message_content is True
    assert bot.intents.members is False
    assert bot.intents.presences is False


async def test_on_ready_invokes_callback():
    callback = AsyncMock()
    bot = ChannelReaderBot(on_ready_callback=callback)
    await bot.on_ready()
    callback.assert_awaited_once_with()


async def test_on_ready_without_callback():
    bot = ChannelReaderBot()
    await bot.on_ready()
