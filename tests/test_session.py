"""Session lifecycle tests: status reporting, teardown and reconfiguration races."""

from __future__ import annotations

import asyncio

from conftest import FakeTransport
from slider_bridge.commands import SpeedGroup
from slider_bridge.host import InstanceStatus
from slider_bridge.session import SessionController


def make_controller(fake_host, client_factory, transport_factory) -> SessionController:
    return SessionController(
        fake_host,
        client_factory=client_factory,
        transport_factory=transport_factory,
        poll_interval=0.01,
    )


async def _until(predicate, attempts: int = 200) -> None:
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0.01)


def test_missing_target_is_bad_config(fake_host, client_factory, transport_factory) -> None:
    controller = make_controller(fake_host, client_factory, transport_factory)

    asyncio.run(controller.init({}))

    assert fake_host.last_status == (InstanceStatus.BAD_CONFIG, "Target IP not configured")
    assert transport_factory.created == []
    assert client_factory.created == []
    assert controller.state.transport is None
    assert not controller.polling


def test_invalid_target_is_bad_config(fake_host, client_factory, transport_factory) -> None:
    controller = make_controller(fake_host, client_factory, transport_factory)

    asyncio.run(controller.init({"target_ip": "192.168.1"}))

    assert fake_host.last_status[0] is InstanceStatus.BAD_CONFIG
    assert transport_factory.created == []


def test_reachable_device_connects_and_polls(fake_host, client_factory, transport_factory) -> None:
    controller = make_controller(fake_host, client_factory, transport_factory)

    async def runner() -> bool:
        await controller.init({"target_ip": "10.0.0.1"})
        await _until(lambda: fake_host.variables)
        polling = controller.polling
        await controller.destroy()
        return polling

    assert asyncio.run(runner()) is True
    assert fake_host.statuses[0] == (InstanceStatus.CONNECTING, None)
    assert (InstanceStatus.OK, "Connected") in fake_host.statuses
    assert fake_host.variables[0] == {"pan": 50, "tilt": -50, "zoom": 100, "slide": 0}
    assert [t.host for t in transport_factory.created] == ["10.0.0.1"]
    assert transport_factory.created[0].port == 8000


def test_unreachable_device_keeps_transport(fake_host, client_factory, transport_factory) -> None:
    client_factory.unreachable.add("10.0.0.1")
    controller = make_controller(fake_host, client_factory, transport_factory)

    async def runner() -> None:
        await controller.init({"target_ip": "10.0.0.1"})
        await controller.handle_action("stop_all")
        await controller.dispatcher.drain()

    asyncio.run(runner())

    assert fake_host.last_status == (InstanceStatus.CONNECTION_FAILURE, "Device not found at this IP")
    assert not controller.polling
    assert len(transport_factory.live) == 1
    assert len(transport_factory.live[0].sent) == 4


def test_transport_failure_is_not_fatal(fake_host, client_factory, transport_factory) -> None:
    transport_factory.fail_hosts.add("10.0.0.1")
    controller = make_controller(fake_host, client_factory, transport_factory)

    async def runner() -> None:
        await controller.init({"target_ip": "10.0.0.1"})
        await controller.handle_action("pan_left", {"speed": 0.5})
        await controller.destroy()

    asyncio.run(runner())

    assert any("Failed to create UDP socket" in msg for msg in fake_host.messages("error"))
    assert any("No UDP transport" in msg for msg in fake_host.messages("warn"))
    assert (InstanceStatus.OK, "Connected") in fake_host.statuses


def test_config_speeds_only_when_present(fake_host, client_factory, transport_factory) -> None:
    controller = make_controller(fake_host, client_factory, transport_factory)

    async def runner() -> None:
        await controller.init({"target_ip": "10.0.0.1", "pan_tilt_speed": 0.1, "zoom_speed": "1.0"})
        await controller.handle_action("set_slide_speed", {"speed": 0.1})
        await controller.config_updated({"target_ip": "10.0.0.1"})
        await controller.destroy()

    asyncio.run(runner())

    speeds = controller.state.speeds
    assert speeds.get(SpeedGroup.PAN_TILT) == 0.1
    assert speeds.get(SpeedGroup.SLIDE) == 0.1
    assert speeds.get(SpeedGroup.ZOOM) == 1.0


def test_reconfigure_replaces_transport(fake_host, client_factory, transport_factory) -> None:
    controller = make_controller(fake_host, client_factory, transport_factory)

    async def runner() -> None:
        await controller.init({"target_ip": "10.0.0.1"})
        await controller.config_updated({"target_ip": "10.0.0.2"})

    asyncio.run(runner())

    first, second = transport_factory.created
    assert first.is_closed
    assert not second.is_closed
    assert controller.state.transport is second
    assert client_factory.created[0].closed
    assert controller.state.poller.client.host == "10.0.0.2"


def test_removing_target_stops_everything(fake_host, client_factory, transport_factory) -> None:
    controller = make_controller(fake_host, client_factory, transport_factory)

    async def runner() -> None:
        await controller.init({"target_ip": "10.0.0.1"})
        await controller.config_updated({"target_ip": ""})

    asyncio.run(runner())

    assert transport_factory.live == []
    assert not controller.polling
    assert controller.state.poller is None
    assert fake_host.last_status[0] is InstanceStatus.BAD_CONFIG


def test_rapid_reconfiguration_leaves_one_session(fake_host, client_factory, transport_factory) -> None:
    controller = make_controller(fake_host, client_factory, transport_factory)

    async def runner() -> bool:
        gate_1 = asyncio.Event()
        gate_2 = asyncio.Event()
        client_factory.gates = {"10.0.0.1": gate_1, "10.0.0.2": gate_2}

        first = asyncio.ensure_future(controller.config_updated({"target_ip": "10.0.0.1"}))
        await _until(lambda: len(client_factory.created) == 1)
        second = asyncio.ensure_future(controller.config_updated({"target_ip": "10.0.0.2"}))
        await _until(lambda: len(client_factory.created) == 2)

        # the stale probe succeeds after the newer run already started
        gate_1.set()
        await first
        gate_2.set()
        await second
        await _until(lambda: fake_host.variables)
        return controller.polling

    assert asyncio.run(runner()) is True
    assert [t.host for t in transport_factory.live] == ["10.0.0.2"]
    assert controller.state.transport.host == "10.0.0.2"
    assert controller.state.poller.client.host == "10.0.0.2"
    stale, current = client_factory.created
    assert stale.closed
    assert stale.fetches == 0
    assert current.fetches > 0
    assert fake_host.statuses.count((InstanceStatus.OK, "Connected")) == 1


def test_reconfiguration_during_transport_setup(fake_host, client_factory) -> None:
    created: list = []

    class SlowTransportFactory:
        def __init__(self) -> None:
            self.release = None

        async def __call__(self, host, port, on_error=None):
            if host == "10.0.0.1":
                await self.release.wait()
            transport = FakeTransport(host, port, on_error)
            created.append(transport)
            return transport

    factory = SlowTransportFactory()
    controller = make_controller(fake_host, client_factory, factory)

    async def runner() -> None:
        factory.release = asyncio.Event()
        first = asyncio.ensure_future(controller.config_updated({"target_ip": "10.0.0.1"}))
        await asyncio.sleep(0.01)
        await controller.config_updated({"target_ip": "10.0.0.2"})
        factory.release.set()
        await first
        await controller.destroy()

    asyncio.run(runner())

    by_host = {t.host: t for t in created}
    assert by_host["10.0.0.1"].is_closed
    # only the second run ever built a status client
    assert [c.host for c in client_factory.created] == ["10.0.0.2"]


def test_destroy_is_idempotent(fake_host, client_factory, transport_factory) -> None:
    controller = make_controller(fake_host, client_factory, transport_factory)

    async def runner() -> None:
        await controller.init({"target_ip": "10.0.0.1"})
        await controller.destroy()
        await controller.destroy()

    asyncio.run(runner())

    assert transport_factory.live == []
    assert transport_factory.created[0].close_calls == 1
    assert not controller.polling
    assert client_factory.created[0].closed


def test_transport_errors_are_logged(fake_host, client_factory, transport_factory) -> None:
    controller = make_controller(fake_host, client_factory, transport_factory)

    async def runner() -> None:
        await controller.init({"target_ip": "10.0.0.1"})
        transport_factory.created[0].on_error(ConnectionRefusedError("port unreachable"))
        await controller.destroy()

    asyncio.run(runner())

    assert "UDP Error: port unreachable" in fake_host.messages("error")


def test_describe(fake_host, client_factory, transport_factory) -> None:
    controller = make_controller(fake_host, client_factory, transport_factory)

    async def runner() -> dict:
        await controller.init({"target_ip": "10.0.0.1", "slide_speed": 1.0})
        info = controller.describe()
        await controller.destroy()
        return info

    info = asyncio.run(runner())

    assert info == {
        "target_ip": "10.0.0.1",
        "osc_port": 8000,
        "transport": True,
        "polling": True,
        "speeds": {"pan_tilt_speed": 0.5, "slide_speed": 1.0, "zoom_speed": 0.5},
    }
