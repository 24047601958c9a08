from __future__ import annotations

import json
import random

import httpx
import pytest

from richard.bot import ModuleCapabilities, ModuleData
from richard.bot.triggers import APOLOGY
from richard.config import Environment
from richard.http import request_agent
from richard.modules.hello import Hello
from richard.modules.help import Help
from richard.modules.ollama import Ollama
from richard.modules.ping import Ping
from richard.modules.quotes import QUOTES
from richard.modules.roll import USAGE, Roll, format_roll, parse_dice

EMPTY = Environment({})


@pytest.mark.asyncio
async def test_ping() -> None:
    ping = Ping(EMPTY)
    assert ping.capabilities().triggers == ("/ping",)
    assert await ping.on_trigger("/ping") == ["pong"]


@pytest.mark.asyncio
async def test_help_lists_sorted_triggers_of_every_module() -> None:
    help_module = Help(EMPTY)
    snapshot = [
        ModuleData.wrap(help_module),
        ModuleData.wrap(Ping(EMPTY)),
        ModuleData.wrap(Roll(EMPTY)),
    ]
    await help_module.on_registry_snapshot(snapshot)

    assert await help_module.on_trigger("/help") == ["Available commands are:\n- /help\n- /ping\n- /roll\n"]


@pytest.mark.parametrize(
    ("request_text", "expected"),
    [
        ("/roll 3d6", (3, 6)),
        ("@richard /roll 1d20 please", (1, 20)),
        ("/roll 1000d1000", (1000, 1000)),
        ("/roll", None),
        ("/roll d6", None),
        ("/roll 0d6", None),
        ("/roll 2d0", None),
        ("/roll 1001d6", None),
        ("/roll 2x6", None),
        ("/roll  3d6", None),
    ],
)
def test_parse_dice(request_text: str, expected) -> None:
    assert parse_dice(request_text) == expected


def test_format_roll_shows_details_for_small_rolls_only() -> None:
    assert format_roll(3, 6, [1, 5, 2]) == "roll 3d6: (1+5+2) = 8"
    assert format_roll(1, 20, [17]) == "roll 1d20: 17"
    assert format_roll(100, 1, [1] * 100) == "roll 100d1: 100"


@pytest.mark.asyncio
async def test_roll_module() -> None:
    roll = Roll(EMPTY, rng=random.Random(7))
    [result] = await roll.on_trigger("/roll 4d1")
    assert result == "roll 4d1: (1+1+1+1) = 4"
    assert await roll.on_trigger("/roll nonsense") == [USAGE]


@pytest.mark.asyncio
async def test_hello_skips_first_run() -> None:
    hello = Hello(EMPTY, rng=random.Random(1))
    assert hello.variation_cooldowns() == [7 * 24 * 60 * 60]
    assert await hello.run_variation(0) is None

    [message] = await hello.run_variation(0)
    assert any(message == f"{quote} — {author}" for author, quote in QUOTES)


def _ollama(handler) -> Ollama:
    env = Environment({"OLLAMA_URL": "http://ollama.local:11434/", "OLLAMA_MODEL_NAME": "llama3"})
    return Ollama(env, client=request_agent(transport=httpx.MockTransport(handler)))


@pytest.mark.asyncio
async def test_ollama_keeps_conversation_context() -> None:
    payloads: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == "http://ollama.local:11434/api/generate"
        payloads.append(json.loads(request.content))
        return httpx.Response(200, json={"response": f"answer {len(payloads)}", "context": [1, 2, len(payloads)]})

    ollama = _ollama(handler)
    assert ollama.capabilities() == ModuleCapabilities(catch_non_triggered=True)

    assert await ollama.on_trigger("hi") == ["answer 1"]
    assert await ollama.on_trigger("and then?") == ["answer 2"]

    assert payloads[0] == {"prompt": "hi", "model": "llama3", "stream": False, "context": []}
    assert payloads[1]["context"] == [1, 2, 1]


@pytest.mark.asyncio
async def test_ollama_failure_apologizes() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="model not loaded")

    ollama = _ollama(handler)
    assert await ollama.on_trigger("hi") == [APOLOGY]
    assert ollama.context == []


@pytest.mark.asyncio
async def test_ollama_unexpected_body_apologizes() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=["not", "an", "answer"])

    ollama = _ollama(handler)
    assert await ollama.on_trigger("hi") == [APOLOGY]
    assert ollama.context == []
