from __future__ import annotations

import httpx
import pytest

from richard.config import Environment
from richard.http import probe_url, request_agent
from richard.liveness import ERROR_RATE_WINDOW, HIGH, ProbeStatusError, ProbeTransportError
from richard.modules.down_detectors import ALIVE_VARIATION, ERROR_RATE_VARIATION, DownDetectors
from richard.modules.endpoints import VERSION_VARIATION, Endpoints


class Switch:
    """Mock HTTP backend whose status code the test flips."""

    def __init__(self, status: int = 200, version: str = "1.0"):
        self.status = status
        self.version = version
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status, json={"Version": self.version})

    def client(self) -> httpx.AsyncClient:
        return request_agent(transport=httpx.MockTransport(self))


def _down_detectors(backend: Switch) -> DownDetectors:
    env = Environment({"DOWN_DETECTORS_0_NAME": "svc", "DOWN_DETECTORS_0_URL": "https://svc.example/health"})
    return DownDetectors(env, client=backend.client())


def _endpoints(backend: Switch) -> Endpoints:
    env = Environment({"REGION_0_NAME": "eu-west-2", "REGION_0_ENDPOINT": "https://api.eu-west-2.example/api/v1"})
    return Endpoints(env, client=backend.client())


@pytest.mark.asyncio
async def test_probe_url_classifies_failures() -> None:
    backend = Switch(status=503)
    async with backend.client() as client:
        error = await probe_url(client, "https://svc.example/")
        assert isinstance(error, ProbeStatusError)
        assert error.status_code == 503

        backend.status = 200
        assert await probe_url(client, "https://svc.example/") is None

    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with request_agent(transport=httpx.MockTransport(refuse)) as client:
        assert isinstance(await probe_url(client, "https://svc.example/"), ProbeTransportError)


@pytest.mark.asyncio
async def test_down_detector_reports_only_transitions() -> None:
    backend = Switch(status=500)
    module = _down_detectors(backend)

    results = [await module.run_variation(ALIVE_VARIATION) for _ in range(HIGH + 2)]
    assert results[:HIGH - 1] == [None] * (HIGH - 1)
    assert results[HIGH - 1] == ["svc: API is down (error code: 500)"]
    assert results[HIGH:] == [None, None]

    backend.status = 200
    results = [await module.run_variation(ALIVE_VARIATION) for _ in range(5)]
    # counter went 8 -> 7 -> 6 -> 5 -> 4 -> 3
    assert results == [None, None, None, None, ["svc is up"]]
    assert all(r.method == "GET" for r in backend.requests)


@pytest.mark.asyncio
async def test_down_detector_warns_once_on_high_error_rate() -> None:
    backend = Switch(status=502)
    module = _down_detectors(backend)

    results = [await module.run_variation(ERROR_RATE_VARIATION) for _ in range(ERROR_RATE_WINDOW + 5)]

    assert results[: ERROR_RATE_WINDOW - 1] == [None] * (ERROR_RATE_WINDOW - 1)
    assert results[ERROR_RATE_WINDOW - 1] == ["high error rate on svc: 100%"]
    assert results[ERROR_RATE_WINDOW:] == [None] * 5


@pytest.mark.asyncio
async def test_status_trigger_lists_targets() -> None:
    module = _down_detectors(Switch())
    assert module.capabilities().triggers == ("/status",)
    assert module.variation_cooldowns() == [2.0, 2.0]
    assert await module.on_trigger("/status") == ["svc: alive=true, error_rate=0.00\n"]


@pytest.mark.asyncio
async def test_down_detector_without_targets_stays_quiet() -> None:
    module = DownDetectors(Environment({}), client=Switch().client())
    assert await module.run_variation(ALIVE_VARIATION) is None
    assert await module.on_trigger("/status") == ["nothing is watched"]


@pytest.mark.asyncio
async def test_endpoint_version_change_is_announced() -> None:
    backend = Switch(version="1.28.0")
    module = _endpoints(backend)

    # first observation only records the version
    assert await module.run_variation(VERSION_VARIATION) is None
    assert await module.run_variation(VERSION_VARIATION) is None

    backend.version = "1.29.0"
    assert await module.run_variation(VERSION_VARIATION) == ["New API version on eu-west-2: 1.29.0"]
    assert await module.on_trigger("/endpoints") == [
        "eu-west-2: alive=true, version=1.29.0, error_rate=0.00\n"
    ]
    assert all(r.method == "POST" for r in backend.requests)


@pytest.mark.asyncio
async def test_endpoint_version_survives_errors() -> None:
    backend = Switch(version="1.28.0")
    module = _endpoints(backend)
    await module.run_variation(VERSION_VARIATION)

    backend.status = 500
    assert await module.run_variation(VERSION_VARIATION) is None
    assert module.targets[0].version == "1.28.0"


@pytest.mark.asyncio
async def test_endpoint_goes_down_with_maintenance_reason() -> None:
    backend = Switch(status=503)
    module = _endpoints(backend)

    results = [await module.run_variation(1) for _ in range(HIGH)]
    assert results[-1] is not None
    assert results[-1][0].startswith("eu-west-2: API has been very properly put in maintenance mode")
    assert module.variation_cooldowns() == [2.0, 2.0, 600.0]
