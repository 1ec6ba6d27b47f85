"""
Device configuration as supplied by the host
"""

import logging
import re
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

from .commands import SPEED_CHOICES, DEFAULT_SPEED


IPV4_PATTERN = r'^(?:(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\.){3}(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)$'
_IPV4_RE = re.compile(IPV4_PATTERN)

logger = logging.getLogger(__name__)


def is_valid_ipv4(value: str) -> bool:
    return bool(value) and _IPV4_RE.match(value) is not None


def _optional_speed(raw: Any, name: str) -> Optional[float]:
    if raw is None or raw == "":
        return None
    try:
        return float(raw)
    except (TypeError, ValueError):
        logger.error(f"Ignoring invalid {name}: {raw!r}")
        return None


@dataclass
class BridgeConfig:
    """Host configuration object"""
    target_ip: Optional[str] = None
    pan_tilt_speed: Optional[float] = None
    slide_speed: Optional[float] = None
    zoom_speed: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "BridgeConfig":
        """Build from the host's config dict; invalid IPs are dropped"""
        data = data or {}

        target_ip = data.get('target_ip')
        if target_ip is not None:
            target_ip = str(target_ip).strip() or None
        if target_ip and not is_valid_ipv4(target_ip):
            logger.error(f"Invalid target IP address: {target_ip}")
            target_ip = None

        return cls(
            target_ip=target_ip,
            pan_tilt_speed=_optional_speed(data.get('pan_tilt_speed'), 'pan_tilt_speed'),
            slide_speed=_optional_speed(data.get('slide_speed'), 'slide_speed'),
            zoom_speed=_optional_speed(data.get('zoom_speed'), 'zoom_speed'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def config_fields() -> List[Dict[str, Any]]:
    """Config field schema published to the host"""
    fields: List[Dict[str, Any]] = [
        {
            'type': 'textinput',
            'id': 'target_ip',
            'label': 'Target IP Address',
            'width': 8,
            'required': True,
            'regex': f'/{IPV4_PATTERN}/',
        },
        {
            'type': 'static-text',
            'id': 'speed_info',
            'label': 'Speed Configuration',
            'width': 12,
            'value': 'Configure the default speed for each axis type. You can still adjust speed per action.',
        },
    ]
    for field_id, label in (('pan_tilt_speed', 'Pan/Tilt Speed'),
                            ('slide_speed', 'Slide Speed'),
                            ('zoom_speed', 'Zoom Speed')):
        fields.append({
            'type': 'dropdown',
            'id': field_id,
            'label': label,
            'width': 6,
            'default': DEFAULT_SPEED,
            'choices': list(SPEED_CHOICES),
        })
    return fields
