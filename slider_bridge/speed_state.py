"""
Per-group speed settings used when a movement command carries no speed
"""

import logging
from typing import Dict, Optional

from .commands import SpeedGroup, DEFAULT_SPEED
from .utils import clamp


class SpeedState:
    """Current speed for pan/tilt, slide and zoom"""

    def __init__(self, default: float = DEFAULT_SPEED):
        self.logger = logging.getLogger(__name__)
        self._speeds: Dict[SpeedGroup, float] = {group: default for group in SpeedGroup}

    def get(self, group: SpeedGroup) -> float:
        return self._speeds[group]

    def set(self, group: SpeedGroup, value: float) -> float:
        """Overwrite the speed for a group, clamped to [0, 1]"""
        clamped = clamp(float(value), 0.0, 1.0)
        if clamped != value:
            self.logger.debug(f"Speed {value} for {group.name} clamped to {clamped}")
        self._speeds[group] = clamped
        return clamped

    def apply_config(self, config) -> None:
        """Take speed defaults from config, only for fields that are set"""
        for group in SpeedGroup:
            value: Optional[float] = getattr(config, group.value, None)
            if value is not None:
                self.set(group, value)

    def snapshot(self) -> Dict[str, float]:
        return {group.value: speed for group, speed in self._speeds.items()}
