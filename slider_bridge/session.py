"""
Session lifecycle for one slider
Ties the host configuration to the UDP transport and the status poller
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Union

from .commands import Command, command_from_action
from .config import BridgeConfig
from .dispatcher import AxisCommandDispatcher
from .host import HostInterface, InstanceStatus
from .osc_codec import OscMessage
from .speed_state import SpeedState
from .status_poller import AxisStatusClient, StatusPoller, PollerState, POLL_INTERVAL
from .udp_transport import UdpTransport, OSC_PORT


@dataclass
class SessionState:
    """Everything a configured session owns"""
    config: BridgeConfig = field(default_factory=BridgeConfig)
    speeds: SpeedState = field(default_factory=SpeedState)
    transport: Optional[UdpTransport] = None
    status_client: Optional[AxisStatusClient] = None
    poller: Optional[StatusPoller] = None
    # bumped on every (re)configuration; older runs must not touch the session
    generation: int = 0
    background: Set[asyncio.Task] = field(default_factory=set)


class SessionController:
    """
    Reacts to init / config changes / destroy from the host.

    Each (re)configuration supersedes the previous one: a run that finds
    the generation moved on while it was waiting discards what it built.
    """

    def __init__(self, host: HostInterface,
                 client_factory=AxisStatusClient,
                 transport_factory=UdpTransport.open,
                 poll_interval: float = POLL_INTERVAL):
        self.host = host
        self.client_factory = client_factory
        self.transport_factory = transport_factory
        self.poll_interval = poll_interval
        self.logger = logging.getLogger(__name__)

        self.state = SessionState()
        self.dispatcher = AxisCommandDispatcher(self.state, host)

    # Host lifecycle

    async def init(self, config: Union[BridgeConfig, Dict[str, Any], None]):
        """First configuration"""
        await self._configure(config)

    async def config_updated(self, config: Union[BridgeConfig, Dict[str, Any], None]):
        """Configuration changed in the host"""
        await self._configure(config)

    async def destroy(self):
        """Stop polling and release the socket and HTTP session"""
        self.state.generation += 1
        await self._teardown()
        self.logger.info("Session destroyed")

    # Commands

    async def handle(self, command: Command) -> List[OscMessage]:
        return self.dispatcher.handle(command)

    async def handle_action(self, action_id: str, options: Optional[Dict[str, Any]] = None) -> List[OscMessage]:
        """Entry point for host action invocations"""
        return await self.handle(command_from_action(action_id, options))

    # Introspection

    @property
    def polling(self) -> bool:
        poller = self.state.poller
        return poller is not None and poller.state == PollerState.POLLING

    def describe(self) -> Dict[str, Any]:
        transport = self.state.transport
        return {
            'target_ip': self.state.config.target_ip,
            'osc_port': OSC_PORT,
            'transport': transport is not None and not transport.is_closed,
            'polling': self.polling,
            'speeds': self.state.speeds.snapshot(),
        }

    # Internals

    async def _configure(self, config):
        if not isinstance(config, BridgeConfig):
            config = BridgeConfig.from_dict(config)

        state = self.state
        state.generation += 1
        generation = state.generation
        state.config = config

        self.host.update_status(InstanceStatus.CONNECTING)
        await self._teardown()
        if generation != state.generation:
            return

        state.speeds.apply_config(config)

        if not config.target_ip:
            self.host.update_status(InstanceStatus.BAD_CONFIG, 'Target IP not configured')
            return

        transport = None
        try:
            transport = await self.transport_factory(config.target_ip, OSC_PORT, self._on_transport_error)
        except OSError as e:
            self.host.log('error', f"Failed to create UDP socket: {e}")
        if generation != state.generation:
            if transport is not None:
                transport.close()
            return
        state.transport = transport

        client = self.client_factory(config.target_ip)
        state.status_client = client
        connected = await client.probe()
        if generation != state.generation:
            # the newer run has already torn this client down
            return

        if not connected:
            self.host.update_status(InstanceStatus.CONNECTION_FAILURE, 'Device not found at this IP')
            return

        self.host.update_status(InstanceStatus.OK, 'Connected')
        self._start_polling(client, generation)

    def _start_polling(self, client: AxisStatusClient, generation: int):
        state = self.state
        poller = StatusPoller(
            client,
            self.host.set_variable_values,
            interval=self.poll_interval,
            is_live=lambda: state.generation == generation and state.poller is poller,
        )
        state.poller = poller
        poller.start()
        self.logger.info(f"Polling {client.status_url}")

    async def _teardown(self):
        state = self.state
        poller, state.poller = state.poller, None
        transport, state.transport = state.transport, None
        client, state.status_client = state.status_client, None

        if poller is not None:
            await poller.stop()
        if transport is not None:
            await self.dispatcher.drain()
            transport.close()
        if client is not None:
            await client.close()

    def _on_transport_error(self, exc: Exception):
        self.host.log('error', f"UDP Error: {exc}")
