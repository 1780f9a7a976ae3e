"""Tests for the HTTP gateway."""

from unittest.mock import AsyncMock

import discord
import pytest
from structlog.testing import capture_logs
from aiohttp.test_utils import TestClient, TestServer

from discord_channel_proxy.api.server import ChannelProxyServer, ROOT_TEXT
from discord_channel_proxy.bot.session import ChannelSession
from discord_channel_proxy.config import DiscordConfig, ServerConfig
from discord_channel_proxy.models import ChannelMessage
from discord_channel_proxy.utils.exceptions import ChannelNotFoundError, UpstreamFetchError

from tests.conftest import http_error, make_message, make_text_channel


@pytest.fixture
def session(fake_client) -> ChannelSession:
    return ChannelSession(DiscordConfig(bot_token="token"), client=fake_client)


@pytest.fixture
async def make_client(session):
    clients = []

    async def _make(**server_settings) -> TestClient:
        settings = {"host": "127.0.0.1", "port": 3001}
        settings.update(server_settings)
        gateway = ChannelProxyServer(session, ServerConfig(**settings))
        client = TestClient(TestServer(gateway.create_app()))
        await client.start_server()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        await client.close()


class TestRoot:
    async def test_root_before_ready(self, make_client):
        client = await make_client()
        resp = await client.get("/")
        assert resp.status == 200
        assert await resp.text() == ROOT_TEXT


class TestWhitelist:
    async def test_rejects_unlisted_channel_before_ready(self, make_client):
        client = await make_client(channels_whitelist="A,B")
        resp = await client.get("/api/channel/C/messages")
        assert resp.status == 403
        assert await resp.json() == {"error": "channel not permitted (whitelist)"}

    async def test_rejects_unlisted_channel_after_ready(self, make_client, session):
        await session.mark_ready()
        client = await make_client(channels_whitelist="111")
        resp = await client.get("/api/channel/222/messages")
        assert resp.status == 403

    async def test_empty_whitelist_permits_everything(self, make_client):
        client = await make_client(channels_whitelist="")
        resp = await client.get("/api/channel/anything/messages")
        # Passes the whitelist and stops at the readiness check
        assert resp.status == 503


class TestReadiness:
    async def test_not_ready(self, make_client):
        client = await make_client(channels_whitelist="A,B")
        resp = await client.get("/api/channel/A/messages")
        assert resp.status == 503
        assert await resp.json() == {"error": "bot not ready"}

    async def test_login_failure_keeps_returning_503(self, make_client, session, fake_client):
        fake_client.start.side_effect = discord.LoginFailure("bad token")
        await session.start()
        client = await make_client()
        for _ in range(2):
            resp = await client.get("/api/channel/123/messages")
            assert resp.status == 503


class TestChannelMessages:
    async def test_success_sorted_ascending(self, make_client, session, fake_client):
        await session.mark_ready()
        fake_client.get_channel.return_value = make_text_channel([
            make_message(2, 20, author="bob", content="second"),
            make_message(1, 10, author=None, content="first"),
        ])
        client = await make_client()

        resp = await client.get("/api/channel/123/messages")

        assert resp.status == 200
        assert await resp.json() == {
            "channelId": "123",
            "messages": [
                {"id": "1", "author": "Unknown", "content": "first", "timestamp": 10},
                {"id": "2", "author": "bob", "content": "second", "timestamp": 20},
            ],
        }

    async def test_uses_configured_limit(self, make_client, session):
        await session.mark_ready()
        session.fetch_recent_messages = AsyncMock(return_value=[])
        client = await make_client(message_limit=25)
        resp = await client.get("/api/channel/123/messages")
        assert resp.status == 200
        session.fetch_recent_messages.assert_awaited_once_with("123", limit=25)

    async def test_preserves_all_entries(self, make_client, session):
        await session.mark_ready()
        timestamps = [50, 10, 40, 10, 30]
        session.fetch_recent_messages = AsyncMock(return_value=[
            ChannelMessage(id=str(i), author="a", content="", timestamp=ts)
            for i, ts in enumerate(timestamps)
        ])
        client = await make_client()
        body = await (await client.get("/api/channel/123/messages")).json()
        assert [m["timestamp"] for m in body["messages"]] == sorted(timestamps)
        assert [m["id"] for m in body["messages"]] == ["1", "3", "4", "2", "0"]

    async def test_not_found(self, make_client, session, fake_client):
        await session.mark_ready()
        fake_client.fetch_channel.side_effect = http_error(discord.NotFound, 404, "Unknown Channel")
        client = await make_client()
        resp = await client.get("/api/channel/123/messages")
        assert resp.status == 404
        assert await resp.json() == {"error": "channel not found or not textual"}

    async def test_non_numeric_id_is_not_found(self, make_client, session):
        await session.mark_ready()
        client = await make_client()
        resp = await client.get("/api/channel/general/messages")
        assert resp.status == 404

    async def test_upstream_failure_then_recovers(self, make_client, session):
        await session.mark_ready()
        session.fetch_recent_messages = AsyncMock(side_effect=[
            UpstreamFetchError("Failed to read channel history"),
            [],
        ])
        client = await make_client()

        resp = await client.get("/api/channel/123/messages")
        assert resp.status == 500
        assert await resp.json() == {"error": "internal error fetching messages"}

        resp = await client.get("/api/channel/123/messages")
        assert resp.status == 200
        assert await resp.json() == {"channelId": "123", "messages": []}

    async def test_upstream_failure_logs_reason(self, make_client, session):
        await session.mark_ready()
        session.fetch_recent_messages = AsyncMock(side_effect=UpstreamFetchError(
            "Failed to read channel history",
            context={"channel_id": "123"},
            original_error=RuntimeError("socket closed"),
        ))
        client = await make_client()

        with capture_logs() as logs:
            resp = await client.get("/api/channel/123/messages")

        assert resp.status == 500
        errors = [entry for entry in logs if entry["log_level"] == "error"]
        assert len(errors) == 1
        assert errors[0]["error"] == "socket closed"
        assert errors[0]["channel_id"] == "123"

    async def test_unexpected_error_is_500(self, make_client, session):
        await session.mark_ready()
        session.fetch_recent_messages = AsyncMock(side_effect=RuntimeError("boom"))
        client = await make_client()
        resp = await client.get("/api/channel/123/messages")
        assert resp.status == 500

    async def test_not_found_from_session(self, make_client, session):
        await session.mark_ready()
        session.fetch_recent_messages = AsyncMock(side_effect=ChannelNotFoundError("gone"))
        client = await make_client()
        resp = await client.get("/api/channel/123/messages")
        assert resp.status == 404


class TestCors:
    async def test_wildcard_origin(self, make_client):
        client = await make_client()
        resp = await client.get("/")
        assert resp.headers["Access-Control-Allow-Origin"] == "*"
        assert "Vary" not in resp.headers

    async def test_configured_origin_on_errors(self, make_client):
        client = await make_client(frontend_origin="https://app.example", channels_whitelist="A")
        resp = await client.get("/api/channel/B/messages")
        assert resp.status == 403
        assert resp.headers["Access-Control-Allow-Origin"] == "https://app.example"
        assert resp.headers["Vary"] == "Origin"

    async def test_unknown_route_has_headers(self, make_client):
        client = await make_client(frontend_origin="https://app.example")
        resp = await client.get("/nope")
        assert resp.status == 404
        assert resp.headers["Access-Control-Allow-Origin"] == "https://app.example"

    async def test_preflight(self, make_client):
        client = await make_client()
        resp = await client.options(
            "/api/channel/123/messages",
            headers={
                "Origin": "https://app.example",
                "Access-Control-Request-Method": "GET",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )
        assert resp.status == 204
        assert resp.headers["Access-Control-Allow-Origin"] == "*"
        assert "GET" in resp.headers["Access-Control-Allow-Methods"]
        assert resp.headers["Access-Control-Allow-Headers"] == "Content-Type"


async def test_scenario(make_client, session, fake_client):
    client = await make_client(channels_whitelist="A,B")

    assert (await client.get("/api/channel/C/messages")).status == 403
    assert (await client.get("/api/channel/A/messages")).status == 503

    await session.mark_ready()
    session.fetch_recent_messages = AsyncMock(return_value=[
        ChannelMessage(id="2", author="x", content="b", timestamp=20),
        ChannelMessage(id="1", author="x", content="a", timestamp=10),
    ])
    resp = await client.get("/api/channel/A/messages")
    body = await resp.json()
    assert resp.status == 200
    assert body["channelId"] == "A"
    assert [(m["id"], m["timestamp"]) for m in body["messages"]] == [("1", 10), ("2", 20)]
