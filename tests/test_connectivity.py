import asyncio

import httpx
from _fake_backend import FakeBackend, make_client

from lark_assist.commands.types import PipelineState
from lark_assist.providers.client import LarkApiClient
from lark_assist.reliability.connectivity import ConnectivityMonitor


def _monitor(backend: FakeBackend, state: PipelineState, sleeps: list) -> ConnectivityMonitor:
    async def record_sleep(delay: float) -> None:
        sleeps.append(delay)

    return ConnectivityMonitor(make_client(backend), state, retry_delay_s=1.0, sleep=record_sleep)


def test_healthy_backend_clears_offline_flag():
    backend = FakeBackend(healthy=True)
    state = PipelineState(offline=True)
    sleeps: list = []

    online = asyncio.run(_monitor(backend, state, sleeps).check_connectivity())

    assert online is True
    assert state.offline is False
    assert backend.count("/health", "HEAD") == 1
    assert sleeps == []


def test_retry_bound_is_one_plus_retries():
    backend = FakeBackend(healthy=False)
    state = PipelineState()
    sleeps: list = []

    online = asyncio.run(_monitor(backend, state, sleeps).check_connectivity(retries=2))

    assert online is False
    assert state.offline is True
    assert backend.count("/health") == 3
    assert sleeps == [1.0, 1.0]


def test_zero_retries_probes_once():
    backend = FakeBackend(healthy=False)
    state = PipelineState()
    sleeps: list = []

    assert asyncio.run(_monitor(backend, state, sleeps).check_connectivity(retries=0)) is False
    assert backend.count("/health") == 1
    assert sleeps == []


def test_recovers_on_retry():
    backend = FakeBackend(healthy=False)
    state = PipelineState()
    sleeps: list = []

    async def heal_then_sleep(delay: float) -> None:
        sleeps.append(delay)
        backend.healthy = True

    monitor = ConnectivityMonitor(make_client(backend), state, retry_delay_s=1.0, sleep=heal_then_sleep)
    assert asyncio.run(monitor.check_connectivity()) is True
    assert backend.count("/health") == 2
    assert state.offline is False


def test_non_2xx_health_counts_as_failure():
    backend = FakeBackend(healthy=True)
    backend.health_status = 503
    state = PipelineState()
    sleeps: list = []

    assert asyncio.run(_monitor(backend, state, sleeps).check_connectivity(retries=1)) is False
    assert backend.count("/health") == 2
    assert state.offline is True


def test_api_configuration_status_recorded():
    backend = FakeBackend()
    monitor = _monitor(backend, PipelineState(), [])

    status = asyncio.run(monitor.check_api_configuration())

    assert status.checked is True
    assert status.configured is True
    assert status.error is None
    assert monitor.config_status is status


def test_api_configuration_failure_never_raises():
    backend = FakeBackend()
    backend.routes["/config"] = lambda _: httpx.Response(500, json={"success": False, "error": "boom"})
    monitor = _monitor(backend, PipelineState(), [])

    status = asyncio.run(monitor.check_api_configuration())

    assert status.checked is True
    assert status.configured is False
    assert status.error == "Failed to check API configuration"


def test_unexpected_client_error_counts_as_failure():
    def broken(request: httpx.Request) -> httpx.Response:
        raise RuntimeError("transport bug")

    client = LarkApiClient("http://lark.test/api", http_client=httpx.AsyncClient(transport=httpx.MockTransport(broken)))
    state = PipelineState()
    sleeps: list = []

    async def record_sleep(delay: float) -> None:
        sleeps.append(delay)

    monitor = ConnectivityMonitor(client, state, retry_delay_s=1.0, sleep=record_sleep)

    assert asyncio.run(monitor.check_connectivity(2)) is False
    assert state.offline is True
    assert sleeps == [1.0, 1.0]
