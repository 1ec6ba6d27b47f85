"""
Axis command dispatch
Turns Commands into OSC messages and hands them to the UDP transport
"""

import asyncio
from typing import List

from .commands import Command, MOTION, SET_SPEED, STOP, group_for
from .osc_codec import OscMessage, OscEncodeError
from .udp_transport import OSC_PORT


class AxisCommandDispatcher:
    """Resolves speeds and sends one OSC message per affected axis"""

    def __init__(self, state, host):
        self.state = state
        self.host = host

    def handle(self, command: Command) -> List[OscMessage]:
        """Apply a command; returns the messages it produced"""
        kind = command.kind

        if command.is_set_speed:
            group = SET_SPEED[kind]
            speed = self.state.speeds.set(group, command.speed)
            self.host.log('debug', f"{group.name} speed set to: {speed}")
            return []

        if command.is_motion:
            axis, sign = MOTION[kind]
            speed = command.speed if command.speed != 0 else self.state.speeds.get(group_for(axis))
            messages = [OscMessage(axis.address, sign * speed)]
        else:
            messages = [OscMessage(axis.address, 0.0) for axis in STOP[kind]]

        for message in messages:
            self.send(message)
        return messages

    def send(self, message: OscMessage):
        """Encode and send in the background; failures end up in the log"""
        target = self.state.config.target_ip
        if not target:
            self.host.log('warn', 'Cannot send OSC: target IP not configured')
            return

        transport = self.state.transport
        if transport is None or transport.is_closed:
            self.host.log('warn', f"No UDP transport to {target}:{OSC_PORT}, dropping {message}")
            return

        try:
            data = message.encode()
        except OscEncodeError as e:
            self.host.log('error', f"OSC encode failed: {e}")
            return

        self.host.log('info', f"Sending OSC to {target}:{OSC_PORT} {message}")
        task = asyncio.get_running_loop().create_task(transport.send(data))
        self.state.background.add(task)
        task.add_done_callback(self._send_done)

    def _send_done(self, task: asyncio.Task):
        self.state.background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.host.log('error', f"UDP OSC send failed: {exc}")

    async def drain(self):
        """Wait for sends already handed to the transport"""
        pending = list(self.state.background)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
