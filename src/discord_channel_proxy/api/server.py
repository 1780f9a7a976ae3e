"""
HTTP gateway for the Discord channel proxy.

This module provides the aiohttp application that exposes recent channel
messages to a frontend. It exposes two routes:

- ``GET /`` returns a fixed text body and is always available
- ``GET /api/channel/{id}/messages`` returns recent messages of a channel

Requests are checked against the channel whitelist first and the session
readiness second, then delegated to the channel session.
"""

from typing import Awaitable, Callable, FrozenSet, Optional

from aiohttp import web
from aiohttp.web import Request, Response

from discord_channel_proxy.bot.session import ChannelSession
from discord_channel_proxy.config import ServerConfig
from discord_channel_proxy.models import ChannelMessagesResponse, sort_messages
from discord_channel_proxy.utils.exceptions import (
    ChannelNotFoundError,
    ChannelNotPermittedError,
    SessionNotReadyError,
    UpstreamFetchError,
)
from discord_channel_proxy.utils.logging import get_logger


ROOT_TEXT = "Discord channel proxy is running"

ERROR_NOT_PERMITTED = "channel not permitted (whitelist)"
ERROR_NOT_READY = "bot not ready"
ERROR_NOT_FOUND = "channel not found or not textual"
ERROR_INTERNAL = "internal error fetching messages"

CORS_ALLOW_METHODS = "GET,HEAD,PUT,PATCH,POST,DELETE"

Handler = Callable[[Request], Awaitable[web.StreamResponse]]


def cors_middleware(origin: str):
    """
    Build a middleware applying a single allowed origin to every route.
    
    Preflight ``OPTIONS`` requests are answered directly with 204. Error
    responses raised as ``web.HTTPException`` carry the headers too.
    
    Args:
        origin: Allowed origin, or '*' for any
    """
    
    def _apply(response: web.StreamResponse) -> None:
        response.headers["Access-Control-Allow-Origin"] = origin
        if origin != "*":
            response.headers["Vary"] = "Origin"
    
    @web.middleware
    async def middleware(request: Request, handler: Handler) -> web.StreamResponse:
        if request.method == "OPTIONS":
            response = Response(status=204)
            response.headers["Access-Control-Allow-Methods"] = CORS_ALLOW_METHODS
            requested_headers = request.headers.get("Access-Control-Request-Headers")
            if requested_headers:
                response.headers["Access-Control-Allow-Headers"] = requested_headers
            _apply(response)
            return response
        
        try:
            response = await handler(request)
        except web.HTTPException as e:
            _apply(e)
            raise
        _apply(response)
        return response
    
    return middleware


class ChannelProxyServer:
    """
    HTTP gateway in front of a ``ChannelSession``.
    
    Status codes:
    - 403 when the channel is not whitelisted (checked even before ready)
    - 503 when the Discord handshake has not completed
    - 404 when the channel is unknown or not textual
    - 500 for any other Discord failure
    """
    
    def __init__(self, session: ChannelSession, config: ServerConfig) -> None:
        """
        Initialize the gateway.
        
        Args:
            session: The Discord channel session
            config: HTTP server configuration
        """
        self.session = session
        self.config = config
        self.logger = get_logger(__name__)
        
        # Configuration is immutable for the process lifetime
        self.whitelist: FrozenSet[str] = config.whitelist
        
        self.app: Optional[web.Application] = None
        self.runner: Optional[web.AppRunner] = None
        self.site: Optional[web.TCPSite] = None
        
    def create_app(self) -> web.Application:
        """Build the aiohttp application with routes and middleware."""
        app = web.Application(middlewares=[cors_middleware(self.config.frontend_origin)])
        
        app.router.add_get('/', self._root)
        app.router.add_get('/api/channel/{id}/messages', self._channel_messages)
        
        return app
        
    async def start(self) -> None:
        """Start listening for HTTP requests."""
        self.app = self.create_app()
        
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()
        
        self.site = web.TCPSite(self.runner, self.config.host, self.config.port)
        await self.site.start()
        
        self.logger.info("HTTP server started",
                        host=self.config.host, port=self.config.port,
                        whitelist_size=len(self.whitelist),
                        frontend_origin=self.config.frontend_origin)
        
    async def stop(self) -> None:
        """Stop the HTTP server."""
        if self.site:
            await self.site.stop()
        if self.runner:
            await self.runner.cleanup()
            
        self.logger.info("HTTP server stopped")
    
    def check_channel(self, channel_id: str) -> None:
        """
        Apply the whitelist and readiness checks, in that order.
        
        Raises:
            ChannelNotPermittedError: Channel is outside a non-empty whitelist
            SessionNotReadyError: The Discord session is not ready
        """
        if self.whitelist and channel_id not in self.whitelist:
            raise ChannelNotPermittedError(
                "Channel not permitted",
                context={"channel_id": channel_id},
            )
        if not self.session.is_ready:
            raise SessionNotReadyError("Discord session not ready")
        
    async def _root(self, request: Request) -> Response:
        """Liveness endpoint."""
        return Response(text=ROOT_TEXT)
        
    async def _channel_messages(self, request: Request) -> Response:
        """Return the most recent messages of a channel, oldest first."""
        channel_id = request.match_info['id']
        
        try:
            self.check_channel(channel_id)
        except ChannelNotPermittedError:
            return web.json_response({'error': ERROR_NOT_PERMITTED}, status=403)
        except SessionNotReadyError:
            return web.json_response({'error': ERROR_NOT_READY}, status=503)
        
        try:
            messages = await self.session.fetch_recent_messages(
                channel_id, limit=self.config.message_limit
            )
        except ChannelNotFoundError:
            return web.json_response({'error': ERROR_NOT_FOUND}, status=404)
        except UpstreamFetchError as e:
            reason = e.original_error or e
            self.logger.error("Failed to fetch channel messages",
                            channel_id=channel_id, error=str(reason))
            return web.json_response({'error': ERROR_INTERNAL}, status=500)
        except Exception as e:
            self.logger.error("Failed to fetch channel messages",
                            channel_id=channel_id, error=str(e))
            return web.json_response({'error': ERROR_INTERNAL}, status=500)
        
        response = ChannelMessagesResponse(
            channelId=channel_id,
            messages=sort_messages(messages),
        )
        return web.json_response(response.model_dump())
