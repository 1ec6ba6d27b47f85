"""
UDP transport for OSC datagrams
Owns one datagram endpoint bound to a single destination
"""

import asyncio
import ipaddress
import logging
from typing import Callable, Optional


OSC_PORT = 8000

ErrorSink = Callable[[Exception], None]


class TransportError(OSError):
    """Socket-level failure in the UDP transport"""


class TransportClosedError(TransportError):
    """Send attempted on a closed transport"""


class _OscDatagramProtocol(asyncio.DatagramProtocol):
    """Routes asynchronous socket errors to the owning transport"""

    def __init__(self, owner: "UdpTransport"):
        self.owner = owner

    def error_received(self, exc: Exception):
        self.owner._report(exc)

    def connection_lost(self, exc: Optional[Exception]):
        if exc is not None:
            self.owner._report(exc)


class UdpTransport:
    """Fire-and-forget UDP sender for one (host, port) destination"""

    def __init__(self, host: str, port: int = OSC_PORT, on_error: Optional[ErrorSink] = None):
        self.host = host
        self.port = port
        self.on_error = on_error
        self.logger = logging.getLogger(__name__)

        self._transport: Optional[asyncio.DatagramTransport] = None
        self._closed = False

    @classmethod
    async def open(cls, host: str, port: int = OSC_PORT,
                   on_error: Optional[ErrorSink] = None) -> "UdpTransport":
        """Create a transport and its datagram endpoint"""
        transport = cls(host, port, on_error)
        await transport._connect()
        return transport

    async def _connect(self):
        try:
            ipaddress.IPv4Address(self.host)
        except ValueError as e:
            raise TransportError(f"Invalid destination host {self.host!r}: {e}") from e

        loop = asyncio.get_running_loop()
        try:
            self._transport, _ = await loop.create_datagram_endpoint(
                lambda: _OscDatagramProtocol(self),
                remote_addr=(self.host, self.port),
            )
        except OSError as e:
            raise TransportError(f"Failed to create UDP socket for {self.host}:{self.port}: {e}") from e

        self.logger.debug(f"UDP transport ready for {self.host}:{self.port}")

    @property
    def is_closed(self) -> bool:
        return self._closed or self._transport is None

    async def send(self, data: bytes):
        """Send one datagram to the destination"""
        if self.is_closed:
            raise TransportClosedError(f"UDP transport to {self.host}:{self.port} is closed")
        self._transport.sendto(data)

    def close(self):
        """Release the socket; safe to call more than once"""
        if self._closed:
            return
        self._closed = True
        if self._transport is not None:
            self._transport.close()
            self._transport = None
        self.logger.debug(f"UDP transport to {self.host}:{self.port} closed")

    def _report(self, exc: Exception):
        if self._closed:
            return
        if self.on_error is not None:
            self.on_error(exc)
        else:
            self.logger.error(f"UDP Error: {exc}")
