"""
Custom exceptions for the Discord channel proxy.

This module defines a small hierarchy of exceptions shared by the channel
session and the HTTP gateway. Every error a request can end in has its own
class so the gateway can map it to a status code without inspecting
messages.
"""

from typing import Optional, Any, Dict


class ChannelProxyError(Exception):
    """
    Base exception class for all channel proxy errors.
    
    Attributes:
        message: Human-readable error message
        context: Additional context information about the error
        original_error: The original exception that caused this error (if any)
    """
    
    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        """
        Initialize the base exception.
        
        Args:
            message: Human-readable error message
            context: Additional context information
            original_error: The original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.original_error = original_error
        
    def __str__(self) -> str:
        """Return string representation of the error."""
        error_str = self.message
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            error_str += f" (Context: {context_str})"
        if self.original_error:
            error_str += f" (Caused by: {self.original_error})"
        return error_str


class ConfigurationError(ChannelProxyError):
    """
    Raised when the proxy cannot be configured.
    
    Example:
        ```python
        raise ConfigurationError(
            "Invalid configuration",
            context={"error": str(e)},
            original_error=e,
        )
        ```
    """
    pass


class ChannelNotPermittedError(ChannelProxyError):
    """Raised when a channel id is not in a non-empty whitelist."""
    pass


class SessionNotReadyError(ChannelProxyError):
    """Raised when the Discord handshake has not completed yet."""
    pass


class ChannelNotFoundError(ChannelProxyError):
    """
    Raised when a channel cannot be resolved or cannot hold messages.
    
    This covers:
    - Unknown channel ids
    - Ids that are not valid snowflakes
    - Channels that exist but are not message-capable (categories, forums)
    """
    pass


class UpstreamFetchError(ChannelProxyError):
    """
    Raised when Discord fails while resolving a channel or reading history.
    
    This exception is raised when:
    - Discord API rate limits are hit
    - Bot permissions are insufficient to read history
    - The network or Discord itself fails
    
    It is never retried.
    """
    pass
