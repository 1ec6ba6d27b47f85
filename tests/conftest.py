from __future__ import annotations

import asyncio
import threading

import pytest

from slider_bridge.host import HostInterface
from slider_bridge.status_poller import AxisStatusSnapshot, StatusFetchError
from slider_bridge.udp_transport import TransportClosedError, TransportError


class FakeHost(HostInterface):
    def __init__(self) -> None:
        self.statuses: list = []
        self.variables: list[dict] = []
        self.logs: list[tuple[str, str]] = []

    def update_status(self, status, message=None) -> None:
        self.statuses.append((status, message))

    def set_variable_values(self, values) -> None:
        self.variables.append(dict(values))

    def log(self, level, message) -> None:
        self.logs.append((level, message))

    @property
    def last_status(self):
        return self.statuses[-1] if self.statuses else None

    def messages(self, level: str) -> list[str]:
        return [msg for lvl, msg in self.logs if lvl == level]


class FakeTransport:
    def __init__(self, host: str, port: int, on_error=None, fail: bool = False) -> None:
        self.host = host
        self.port = port
        self.on_error = on_error
        self.fail = fail
        self.sent: list[bytes] = []
        self.close_calls = 0

    @property
    def is_closed(self) -> bool:
        return self.close_calls > 0

    async def send(self, data: bytes) -> None:
        if self.is_closed:
            raise TransportClosedError("closed")
        if self.fail:
            raise TransportError("network unreachable")
        self.sent.append(data)

    def close(self) -> None:
        self.close_calls += 1


class TransportFactory:
    def __init__(self) -> None:
        self.created: list[FakeTransport] = []
        self.fail_hosts: set[str] = set()

    async def __call__(self, host, port, on_error=None):
        if host in self.fail_hosts:
            raise TransportError(f"Failed to create UDP socket for {host}:{port}")
        transport = FakeTransport(host, port, on_error)
        self.created.append(transport)
        return transport

    @property
    def live(self) -> list[FakeTransport]:
        return [t for t in self.created if not t.is_closed]


class FakeStatusClient:
    def __init__(self, host: str, reachable: bool = True, gate=None) -> None:
        self.host = host
        self.reachable = reachable
        self.gate = gate
        self.snapshot = AxisStatusSnapshot(pan=0.75, tilt=0.25, zoom=1.0, slide=0.5)
        self.failures = 0
        self.fetches = 0
        self.closed = False

    @property
    def status_url(self) -> str:
        return f"http://{self.host}/api/axes/status"

    async def probe(self) -> bool:
        if self.gate is not None:
            await self.gate.wait()
        return self.reachable

    async def fetch_status(self) -> AxisStatusSnapshot:
        self.fetches += 1
        if self.failures:
            self.failures -= 1
            raise StatusFetchError("HTTP 500")
        return self.snapshot

    async def close(self) -> None:
        self.closed = True


class ClientFactory:
    def __init__(self) -> None:
        self.created: list[FakeStatusClient] = []
        self.unreachable: set[str] = set()
        self.gates: dict = {}

    def __call__(self, host: str) -> FakeStatusClient:
        client = FakeStatusClient(host, reachable=host not in self.unreachable, gate=self.gates.get(host))
        self.created.append(client)
        return client


@pytest.fixture
def fake_host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def transport_factory() -> TransportFactory:
    return TransportFactory()


@pytest.fixture
def client_factory() -> ClientFactory:
    return ClientFactory()


@pytest.fixture
def loop_thread():
    """Event loop running in a background thread, like the API server sees it"""
    loop = asyncio.new_event_loop()
    thread = threading.Thread(target=loop.run_forever, daemon=True)
    thread.start()
    yield loop
    loop.call_soon_threadsafe(loop.stop)
    thread.join(timeout=2.0)
    loop.close()
