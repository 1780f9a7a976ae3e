"""
Data models for the channel messages endpoint.

These Pydantic models describe the JSON returned to clients. Discord
message objects are reshaped into ``ChannelMessage`` instances and never
leave this process in any other form.
"""

from typing import Any, Iterable, List

from pydantic import BaseModel, Field


UNKNOWN_AUTHOR = "Unknown"


class ChannelMessage(BaseModel):
    """
    A single message as exposed by the gateway.
    
    Attributes:
        id: Discord message snowflake as a string
        author: Author display name, or "Unknown" when Discord has none
        content: Message text
        timestamp: Creation time in epoch milliseconds
    """
    
    id: str = Field(description="Message id")
    author: str = Field(description="Author display name")
    content: str = Field(description="Message text")
    timestamp: int = Field(description="Creation time in epoch milliseconds")


class ChannelMessagesResponse(BaseModel):
    """Response body for ``GET /api/channel/{id}/messages``."""
    
    channelId: str = Field(description="The requested channel id")
    messages: List[ChannelMessage] = Field(
        default_factory=list,
        description="Messages ordered oldest first"
    )


def to_channel_message(message: Any) -> ChannelMessage:
    """
    Reshape a discord.py message into a ``ChannelMessage``.
    
    Args:
        message: A ``discord.Message`` (or anything with the same attributes)
        
    Returns:
        The wire-facing message
    """
    author = getattr(message, "author", None)
    display_name = getattr(author, "display_name", None) if author else None
    
    return ChannelMessage(
        id=str(message.id),
        author=display_name or UNKNOWN_AUTHOR,
        content=message.content or "",
        timestamp=int(message.created_at.timestamp() * 1000),
    )


def sort_messages(messages: Iterable[ChannelMessage]) -> List[ChannelMessage]:
    """Order messages oldest first; equal timestamps keep their fetch order."""
    return sorted(messages, key=lambda m: m.timestamp)
