"""
Discord channel proxy - read-only HTTP access to recent Discord messages.

This package runs a Discord bot session next to a small aiohttp server.
The server exposes the most recent messages of whitelisted channels as
JSON so a browser frontend can display them without holding a bot token.

Example:
    ```python
    from discord_channel_proxy.main import main
    
    if __name__ == "__main__":
        main()
    ```
"""

__version__ = "0.1.0"


def main():
    """Main entry point for the Discord channel proxy."""
    from discord_channel_proxy.main import main as _main
    return _main()

__all__ = ["main", "__version__"]
