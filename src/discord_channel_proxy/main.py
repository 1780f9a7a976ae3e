"""
Main entry point for the Discord channel proxy.

This module provides the main function and CLI interface for starting the
proxy. It loads configuration, sets up logging, starts the Discord session
in the background and serves HTTP until a shutdown signal arrives.
"""

import asyncio
import signal
import sys
from typing import Optional

from pydantic import ValidationError

from discord_channel_proxy import __version__
from discord_channel_proxy.api.server import ChannelProxyServer
from discord_channel_proxy.bot.session import ChannelSession
from discord_channel_proxy.config import load_config, AppConfig
from discord_channel_proxy.utils.exceptions import ConfigurationError
from discord_channel_proxy.utils.logging import setup_logging, get_logger


SHUTDOWN_TIMEOUT = 5.0
SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


async def run_proxy(config: AppConfig) -> None:
    """
    Run the Discord session and HTTP server until shutdown.
    
    A missing token or a failed login never stops the HTTP server; the
    gateway keeps answering with 503 instead.
    
    Args:
        config: Application configuration
    """
    logger = get_logger(__name__)
    session: Optional[ChannelSession] = None
    server: Optional[ChannelProxyServer] = None
    
    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    
    def signal_handler(signum: int) -> None:
        logger.info("Received shutdown signal", signal=signum)
        shutdown_event.set()
    
    # Loop-level handlers wake the selector; signal.signal would not
    for signum in SHUTDOWN_SIGNALS:
        loop.add_signal_handler(signum, signal_handler, signum)
    
    try:
        session = ChannelSession(config.discord)
        session.start()
        
        server = ChannelProxyServer(session, config.server)
        await server.start()
        
        await shutdown_event.wait()
        
    except Exception as e:
        logger.error("Proxy encountered fatal error", error=str(e))
        raise
    finally:
        for signum in SHUTDOWN_SIGNALS:
            loop.remove_signal_handler(signum)
        if server:
            await server.stop()
        if session:
            logger.info("Closing Discord session")
            try:
                await asyncio.wait_for(session.close(), timeout=SHUTDOWN_TIMEOUT)
            except asyncio.TimeoutError:
                logger.warning("Discord session close timed out, forcing shutdown")
            except Exception as e:
                logger.error("Error during Discord session close", error=str(e))


async def main_async() -> None:
    """
    Async main function that handles the complete proxy lifecycle.
    
    This function:
    1. Loads configuration
    2. Sets up logging
    3. Runs the session and server
    """
    try:
        config = load_config()
    except ValidationError as e:
        raise ConfigurationError("Invalid configuration", original_error=e)
    
    setup_logging(config.logging)
    logger = get_logger(__name__)
    
    logger.info("Discord channel proxy starting up",
               version=__version__,
               port=config.server.port)
    
    try:
        await run_proxy(config)
    finally:
        logger.info("Discord channel proxy shutdown complete")


def main() -> None:
    """
    Main entry point for the Discord channel proxy.
    
    Example:
        Command line usage:
        ```bash
        DISCORD_BOT_TOKEN=... CHANNELS_WHITELIST=123,456 discord-channel-proxy
        ```
    """
    try:
        asyncio.run(main_async())
    except KeyboardInterrupt:
        print("\nProxy shutdown requested", file=sys.stderr)
        sys.exit(0)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
