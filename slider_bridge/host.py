"""
Host-facing side of the bridge: status, variables and log lines
"""

import logging
import threading
from enum import Enum
from typing import Dict, List, Optional


class InstanceStatus(Enum):
    CONNECTING = "connecting"
    OK = "ok"
    CONNECTION_FAILURE = "connection_failure"
    BAD_CONFIG = "bad_config"


LOG_LEVELS = {
    'error': logging.ERROR,
    'warn': logging.WARNING,
    'info': logging.INFO,
    'debug': logging.DEBUG,
}

VARIABLE_DEFINITIONS = [
    {'variableId': 'pan', 'name': 'Pan Position (-100 to 100)'},
    {'variableId': 'tilt', 'name': 'Tilt Position (-100 to 100)'},
    {'variableId': 'zoom', 'name': 'Zoom Position (-100 to 100)'},
    {'variableId': 'slide', 'name': 'Slide Position (-100 to 100)'},
]


class HostInterface:
    """What the session needs from the automation host"""

    def update_status(self, status: InstanceStatus, message: Optional[str] = None):
        raise NotImplementedError

    def set_variable_values(self, values: Dict[str, int]):
        raise NotImplementedError

    def log(self, level: str, message: str):
        raise NotImplementedError


class LoggingHost(HostInterface):
    """
    Standalone host: remembers the latest status and variables and
    writes log lines through the logging module.

    Read from the API thread, written from the event loop, so state
    access goes through a lock.
    """

    def __init__(self, logger_name: str = "slider_bridge"):
        self.logger = logging.getLogger(logger_name)
        self._lock = threading.Lock()
        self._status = InstanceStatus.CONNECTING
        self._message: Optional[str] = None
        self._variables: Dict[str, int] = {}

    def update_status(self, status: InstanceStatus, message: Optional[str] = None):
        with self._lock:
            changed = status != self._status or message != self._message
            self._status = status
            self._message = message
        if changed:
            self.logger.info(f"Status: {status.value}" + (f" ({message})" if message else ""))

    def set_variable_values(self, values: Dict[str, int]):
        with self._lock:
            self._variables.update(values)

    def log(self, level: str, message: str):
        self.logger.log(LOG_LEVELS.get(level, logging.INFO), message)

    @property
    def status(self) -> InstanceStatus:
        with self._lock:
            return self._status

    @property
    def status_message(self) -> Optional[str]:
        with self._lock:
            return self._message

    @property
    def variables(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._variables)

    def variable_definitions(self) -> List[Dict[str, str]]:
        return [dict(d) for d in VARIABLE_DEFINITIONS]
