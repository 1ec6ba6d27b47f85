"""
Axis status polling
Fetches /api/axes/status from the slider and republishes it as host variables
"""

import asyncio
import math
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

import aiohttp

from .utils import rescale_position


STATUS_PATH = "/api/axes/status"
REQUEST_TIMEOUT = 3.0
POLL_INTERVAL = 0.2
AXIS_NAMES = ('pan', 'tilt', 'zoom', 'slide')


class StatusFetchError(Exception):
    """Status request failed or returned something unusable"""


def _position(payload: Dict[str, Any], name: str) -> float:
    value = payload.get(name)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.5
    try:
        value = float(value)
    except OverflowError:
        return 0.5
    # NaN and Infinity are valid JSON to aiohttp but not positions
    return value if math.isfinite(value) else 0.5


@dataclass(frozen=True)
class AxisStatusSnapshot:
    """Device-reported axis positions, each 0.0 to 1.0"""
    pan: float = 0.5
    tilt: float = 0.5
    zoom: float = 0.5
    slide: float = 0.5

    @classmethod
    def from_payload(cls, payload: Any) -> "AxisStatusSnapshot":
        if not isinstance(payload, dict):
            raise StatusFetchError(f"Unexpected status payload: {payload!r}")
        return cls(**{name: _position(payload, name) for name in AXIS_NAMES})

    def to_variables(self) -> Dict[str, int]:
        """Host variables on the -100..100 scale"""
        return {name: rescale_position(getattr(self, name)) for name in AXIS_NAMES}


class AxisStatusClient:
    """
    HTTP client for the slider's status endpoint.

    Use:

        client = AxisStatusClient("192.168.1.50")
        if await client.probe():
            snapshot = await client.fetch_status()
        await client.close()
    """

    def __init__(self, host: str, session: Optional[aiohttp.ClientSession] = None,
                 timeout: float = REQUEST_TIMEOUT):
        self.host = host
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.logger = logging.getLogger(__name__)
        self._external_session = session
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def status_url(self) -> str:
        return f"http://{self.host}{STATUS_PATH}"

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._external_session is not None:
            return self._external_session
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def _get(self, parse_json: bool = True) -> Any:
        headers = {'Content-Type': 'application/json'}
        try:
            async with self.session.get(self.status_url, headers=headers, timeout=self.timeout) as resp:
                if not 200 <= resp.status < 300:
                    raise StatusFetchError(f"HTTP {resp.status}")
                if not parse_json:
                    return None
                return await resp.json(content_type=None)
        except asyncio.TimeoutError:
            raise StatusFetchError("Connection timeout")
        except aiohttp.ClientError as e:
            raise StatusFetchError(str(e) or type(e).__name__) from e
        except ValueError as e:
            raise StatusFetchError(f"Malformed JSON: {e}") from e

    async def probe(self) -> bool:
        """One-shot reachability check"""
        try:
            await self._get(parse_json=False)
            return True
        except StatusFetchError as e:
            self.logger.debug(f"Connection test failed: {e}")
            return False

    async def fetch_status(self) -> AxisStatusSnapshot:
        return AxisStatusSnapshot.from_payload(await self._get())

    async def close(self):
        if self._session is not None:
            await self._session.close()
            self._session = None


class PollerState(Enum):
    IDLE = "idle"
    POLLING = "polling"


Publisher = Callable[[Dict[str, int]], None]


class StatusPoller:
    """Periodic status fetch; one fetch at a time, failures skip the tick"""

    def __init__(self, client: AxisStatusClient, publish: Publisher,
                 interval: float = POLL_INTERVAL,
                 is_live: Optional[Callable[[], bool]] = None):
        self.client = client
        self.publish = publish
        self.interval = interval
        self.is_live = is_live or (lambda: True)
        self.logger = logging.getLogger(__name__)

        self._task: Optional[asyncio.Task] = None

    @property
    def state(self) -> PollerState:
        if self._task is None or self._task.done():
            return PollerState.IDLE
        return PollerState.POLLING

    def start(self):
        """Start polling; restarts if already running"""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = asyncio.get_running_loop().create_task(self._run())
        self.logger.debug(f"Polling {self.client.status_url} every {self.interval * 1000:.0f}ms")

    async def stop(self):
        """Stop polling; no-op when idle"""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        self.logger.debug("Polling stopped")

    async def poll_once(self) -> Optional[Dict[str, int]]:
        """Fetch once and publish; returns the published values"""
        try:
            snapshot = await self.client.fetch_status()
        except StatusFetchError as e:
            self.logger.debug(f"Poll error: {e}")
            return None

        if not self.is_live():
            return None
        values = snapshot.to_variables()
        self.publish(values)
        return values

    async def _run(self):
        loop = asyncio.get_running_loop()
        while True:
            started = loop.time()
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.logger.error(f"Polling error: {e}")
            await asyncio.sleep(max(0.0, self.interval - (loop.time() - started)))
