from __future__ import annotations

import json

import httpx
import pytest

from richard.bot import MessageCtx
from richard.config import Environment
from richard.http import request_agent
from richard.modules.webex import Webex

TOKEN = "webex-secret"
ROOM = "room-1"


def _webex(handler) -> Webex:
    env = Environment({"WEBEX_TOKEN": TOKEN, "WEBEX_ROOM_ID": ROOM})
    return Webex(env, client=request_agent(transport=httpx.MockTransport(handler)))


def _item(msg_id: str, created: str, text: str = "hello") -> dict:
    return {"id": msg_id, "text": text, "created": created}


@pytest.mark.asyncio
async def test_poll_sets_watermark_then_returns_newer_messages_sorted() -> None:
    listings = [
        [_item("a", "2024-01-01T10:00:00.000Z"), _item("b", "2024-01-01T09:00:00.000Z")],
        [
            _item("d", "2024-01-01T12:00:00.000Z", "/status"),
            _item("a", "2024-01-01T10:00:00.000Z"),
            _item("c", "2024-01-01T11:00:00.000Z", "/ping"),
        ],
        [_item("d", "2024-01-01T12:00:00.000Z", "/status")],
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == f"Bearer {TOKEN}"
        assert request.url.params["roomId"] == ROOM
        assert request.url.params["mentionedPeople"] == "me"
        return httpx.Response(200, json={"items": listings.pop(0)})

    webex = _webex(handler)

    assert await webex.poll_unread() == []
    assert webex.last_seen == "2024-01-01T10:00:00.000Z"
    assert await webex.poll_unread() == [MessageCtx("/ping", "c"), MessageCtx("/status", "d")]
    assert await webex.poll_unread() == []


@pytest.mark.asyncio
async def test_empty_room_on_first_poll_accepts_everything_after() -> None:
    listings = [[], [_item("x", "2024-02-01T00:00:00.000Z", "/help")]]

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"items": listings.pop(0)})

    webex = _webex(handler)

    assert await webex.poll_unread() == []
    assert webex.last_seen == "0"
    assert await webex.poll_unread() == [MessageCtx("/help", "x")]


@pytest.mark.asyncio
async def test_poll_errors_are_reported_as_no_result() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    webex = _webex(handler)
    assert await webex.poll_unread() is None
    assert webex.last_seen is None


@pytest.mark.asyncio
async def test_emit_posts_markdown_and_reply_posts_in_thread() -> None:
    posted: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert str(request.url) == "https://webexapis.com/v1/messages"
        posted.append(json.loads(request.content))
        return httpx.Response(200, json={"id": "new"})

    webex = _webex(handler)
    await webex.emit(["**down**", "up"])
    await webex.reply(MessageCtx("/ping", "parent-9"), "pong")

    assert posted == [
        {"roomId": ROOM, "markdown": "**down**"},
        {"roomId": ROOM, "markdown": "up"},
        {"roomId": ROOM, "parentId": "parent-9", "text": "pong"},
    ]


@pytest.mark.asyncio
async def test_failed_post_is_logged_not_raised() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    webex = _webex(handler)
    await webex.emit(["lost"])
    await webex.reply(MessageCtx("/ping", "p"), "pong")
