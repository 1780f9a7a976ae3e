"""
HTTP API module for the channel proxy.

Exposes the aiohttp gateway that serves recent Discord channel messages
to a browser frontend.
"""
