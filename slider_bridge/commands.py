"""
Slider commands
Host action identifiers mapped onto a closed set of command variants
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


class Axis(Enum):
    """Controllable axis; the value is its OSC address"""
    PAN = "/pan"
    TILT = "/tilt"
    SLIDE = "/slide"
    ZOOM = "/zoom"

    @property
    def address(self) -> str:
        return self.value


# stop_all sends in this order
STOP_ALL_ORDER = (Axis.PAN, Axis.TILT, Axis.SLIDE, Axis.ZOOM)


class SpeedGroup(Enum):
    """Axes sharing one speed setting"""
    PAN_TILT = "pan_tilt_speed"
    SLIDE = "slide_speed"
    ZOOM = "zoom_speed"


_AXIS_GROUPS = {
    Axis.PAN: SpeedGroup.PAN_TILT,
    Axis.TILT: SpeedGroup.PAN_TILT,
    Axis.SLIDE: SpeedGroup.SLIDE,
    Axis.ZOOM: SpeedGroup.ZOOM,
}


def group_for(axis: Axis) -> SpeedGroup:
    return _AXIS_GROUPS[axis]


class CommandKind(Enum):
    """Every action the host can invoke; value is the host action id"""
    PAN_LEFT = "pan_left"
    PAN_RIGHT = "pan_right"
    TILT_UP = "tilt_up"
    TILT_DOWN = "tilt_down"
    SLIDE_LEFT = "slide_left"
    SLIDE_RIGHT = "slide_right"
    ZOOM_IN = "zoom_in"
    ZOOM_OUT = "zoom_out"
    SET_PAN_TILT_SPEED = "set_pan_tilt_speed"
    SET_SLIDE_SPEED = "set_slide_speed"
    SET_ZOOM_SPEED = "set_zoom_speed"
    STOP_PAN = "stop_pan"
    STOP_TILT = "stop_tilt"
    STOP_SLIDE = "stop_slide"
    STOP_ZOOM = "stop_zoom"
    STOP_ALL = "stop_all"


# (axis, sign) for continuous movement
MOTION = {
    CommandKind.PAN_LEFT: (Axis.PAN, -1),
    CommandKind.PAN_RIGHT: (Axis.PAN, 1),
    CommandKind.TILT_UP: (Axis.TILT, 1),
    CommandKind.TILT_DOWN: (Axis.TILT, -1),
    CommandKind.SLIDE_LEFT: (Axis.SLIDE, -1),
    CommandKind.SLIDE_RIGHT: (Axis.SLIDE, 1),
    CommandKind.ZOOM_IN: (Axis.ZOOM, 1),
    CommandKind.ZOOM_OUT: (Axis.ZOOM, -1),
}

SET_SPEED = {
    CommandKind.SET_PAN_TILT_SPEED: SpeedGroup.PAN_TILT,
    CommandKind.SET_SLIDE_SPEED: SpeedGroup.SLIDE,
    CommandKind.SET_ZOOM_SPEED: SpeedGroup.ZOOM,
}

STOP = {
    CommandKind.STOP_PAN: (Axis.PAN,),
    CommandKind.STOP_TILT: (Axis.TILT,),
    CommandKind.STOP_SLIDE: (Axis.SLIDE,),
    CommandKind.STOP_ZOOM: (Axis.ZOOM,),
    CommandKind.STOP_ALL: STOP_ALL_ORDER,
}

DEFAULT_SPEED = 0.5


@dataclass(frozen=True)
class Command:
    """
    One host command.

    For movement commands `speed` 0 means "use the current speed for the
    axis group"; for set-speed commands it is the new speed.
    """
    kind: CommandKind
    speed: float = 0.0

    @property
    def is_motion(self) -> bool:
        return self.kind in MOTION

    @property
    def is_stop(self) -> bool:
        return self.kind in STOP

    @property
    def is_set_speed(self) -> bool:
        return self.kind in SET_SPEED


class UnknownActionError(KeyError):
    """Host invoked an action id this bridge does not define"""


def _parse_speed(raw: Any, default: float) -> float:
    if raw is None or raw == "":
        return default
    if isinstance(raw, bool):
        raise ValueError(f"Invalid speed value: {raw!r}")
    try:
        return float(raw)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid speed value: {raw!r}")


def command_from_action(action_id: str, options: Optional[Dict[str, Any]] = None) -> Command:
    """Translate a host action invocation into a Command"""
    try:
        kind = CommandKind(action_id)
    except ValueError:
        raise UnknownActionError(action_id)

    options = options or {}
    if kind in MOTION:
        return Command(kind, _parse_speed(options.get('speed'), 0.0))
    if kind in SET_SPEED:
        return Command(kind, _parse_speed(options.get('speed'), DEFAULT_SPEED))
    return Command(kind)


SPEED_CHOICES = [
    {'id': 0.1, 'label': 'Slow (0.1)'},
    {'id': 0.5, 'label': 'Medium (0.5)'},
    {'id': 1.0, 'label': 'Fast (1.0)'},
]

_ACTION_NAMES = {
    CommandKind.PAN_LEFT: 'Pan Left',
    CommandKind.PAN_RIGHT: 'Pan Right',
    CommandKind.TILT_UP: 'Tilt Up',
    CommandKind.TILT_DOWN: 'Tilt Down',
    CommandKind.SLIDE_LEFT: 'Slide Left',
    CommandKind.SLIDE_RIGHT: 'Slide Right',
    CommandKind.ZOOM_IN: 'Zoom In',
    CommandKind.ZOOM_OUT: 'Zoom Out',
    CommandKind.SET_PAN_TILT_SPEED: 'Set Pan/Tilt Speed',
    CommandKind.SET_SLIDE_SPEED: 'Set Slide Speed',
    CommandKind.SET_ZOOM_SPEED: 'Set Zoom Speed',
    CommandKind.STOP_PAN: 'Stop Pan',
    CommandKind.STOP_TILT: 'Stop Tilt',
    CommandKind.STOP_SLIDE: 'Stop Slide',
    CommandKind.STOP_ZOOM: 'Stop Zoom',
    CommandKind.STOP_ALL: 'Stop All',
}


def action_definitions() -> Dict[str, Dict[str, Any]]:
    """Action schema published to the host"""
    definitions = {}
    for kind in CommandKind:
        options: List[Dict[str, Any]] = []
        if kind in MOTION:
            options.append({
                'type': 'dropdown',
                'id': 'speed',
                'label': 'Speed (0 = use config)',
                'default': 0,
                'choices': [{'id': 0, 'label': 'Config Default'}] + SPEED_CHOICES,
            })
        elif kind in SET_SPEED:
            options.append({
                'type': 'dropdown',
                'id': 'speed',
                'label': 'Speed',
                'default': DEFAULT_SPEED,
                'choices': list(SPEED_CHOICES),
            })
        definitions[kind.value] = {'name': _ACTION_NAMES[kind], 'options': options}
    return definitions
