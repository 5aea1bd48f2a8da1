from __future__ import annotations

import asyncio
import json
from typing import Any, List

import aiohttp
import pytest

from adapters.discord_notifier import DiscordNotifier
from adapters.http_transport import AiohttpTransport
from adapters.telegram_bot_notifier import TelegramBotNotifier
from core.errors import TransportError
from core.models import Failed, Notification, NotificationTarget, Sent


class FakeResponse:
    def __init__(self, status: int, body: Any) -> None:
        self.status = status
        self._body = body

    async def json(self, content_type=None) -> Any:
        if isinstance(self._body, str):
            return json.loads(self._body)
        return self._body

    async def text(self) -> str:
        return self._body if isinstance(self._body, str) else json.dumps(self._body)

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, *exc_info) -> None:
        return None


class FakeSession:
    """Stands in for aiohttp.ClientSession.get/post."""

    def __init__(self, response: Any) -> None:
        self._response = response
        self.calls: List[tuple] = []

    def _respond(self, method: str, url: str, kwargs: dict):
        self.calls.append((method, url, kwargs))
        if isinstance(self._response, Exception):
            raise self._response
        return self._response

    def get(self, url: str, **kwargs):
        return self._respond("GET", url, kwargs)

    def post(self, url: str, **kwargs):
        return self._respond("POST", url, kwargs)


NOTIFICATION = Notification(title="🎊 Nuevo anuncio", content="<@&9>", description="**Alpha**")
TARGET = NotificationTarget(channel_id="555", mention_role_id="9")


def test_discord_notifier_posts_to_channel() -> None:
    session = FakeSession(FakeResponse(200, {"id": "1234"}))
    result = asyncio.run(DiscordNotifier(session, "token-abc").send(NOTIFICATION, TARGET))

    assert result == Sent(message_id="1234")
    method, url, kwargs = session.calls[0]
    assert method == "POST"
    assert url == "https://discord.com/api/v10/channels/555/messages"
    assert kwargs["headers"]["Authorization"] == "Bot token-abc"
    assert kwargs["json"]["content"] == "<@&9>"


def test_discord_notifier_reports_permission_errors() -> None:
    session = FakeSession(FakeResponse(403, '{"message": "Missing Permissions"}'))
    result = asyncio.run(DiscordNotifier(session, "token").send(NOTIFICATION, TARGET))
    assert isinstance(result, Failed)
    assert "403" in result.reason


def test_discord_notifier_reports_connection_errors() -> None:
    session = FakeSession(aiohttp.ClientConnectionError("down"))
    result = asyncio.run(DiscordNotifier(session, "token").send(NOTIFICATION, TARGET))
    assert isinstance(result, Failed)


def test_telegram_notifier_sends_html() -> None:
    session = FakeSession(FakeResponse(200, {"ok": True, "result": {"message_id": 77}}))
    result = asyncio.run(TelegramBotNotifier(session, "bot-token").send(NOTIFICATION, TARGET))

    assert result == Sent(message_id="77")
    _, url, kwargs = session.calls[0]
    assert url == "https://api.telegram.org/botbot-token/sendMessage"
    assert kwargs["json"]["chat_id"] == "555"
    assert kwargs["json"]["parse_mode"] == "HTML"


def test_telegram_notifier_reports_api_errors() -> None:
    session = FakeSession(FakeResponse(400, {"ok": False, "description": "chat not found"}))
    result = asyncio.run(TelegramBotNotifier(session, "bot-token").send(NOTIFICATION, TARGET))
    assert isinstance(result, Failed)
    assert "chat not found" in result.reason


def test_transport_returns_json() -> None:
    session = FakeSession(FakeResponse(200, {"data": {"children": []}}))
    body = asyncio.run(AiohttpTransport(session).get_json("https://www.reddit.com/r/anime/new.json"))
    assert body == {"data": {"children": []}}
    assert "User-Agent" in session.calls[0][2]["headers"]


def test_transport_raises_on_http_error() -> None:
    session = FakeSession(FakeResponse(429, "Too Many Requests"))
    with pytest.raises(TransportError):
        asyncio.run(AiohttpTransport(session).get_json("https://www.reddit.com/r/anime/new.json"))


def test_transport_raises_on_timeout() -> None:
    session = FakeSession(asyncio.TimeoutError())
    with pytest.raises(TransportError):
        asyncio.run(AiohttpTransport(session).get_json("https://www.reddit.com/r/anime/new.json"))


def test_graphql_unwraps_data_and_surfaces_errors() -> None:
    ok = FakeSession(FakeResponse(200, {"data": {"Page": {"media": []}}}))
    data = asyncio.run(AiohttpTransport(ok).graphql("https://graphql.anilist.co", "query {}", {"page": 1}))
    assert data == {"Page": {"media": []}}
    assert ok.calls[0][2]["json"] == {"query": "query {}", "variables": {"page": 1}}

    failing = FakeSession(FakeResponse(200, {"errors": [{"message": "bad"}], "data": None}))
    with pytest.raises(TransportError):
        asyncio.run(AiohttpTransport(failing).graphql("https://graphql.anilist.co", "query {}"))


def test_telegram_notifier_tolerates_unexpected_result() -> None:
    session = FakeSession(FakeResponse(200, {"ok": True, "result": True}))
    result = asyncio.run(TelegramBotNotifier(session, "bot-token").send(NOTIFICATION, TARGET))
    assert result == Sent(message_id=None)
