"""
Utility functions for the slider OSC bridge
"""

import json
import math
import logging
from typing import Dict, Any, Optional


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: str = "INFO", log_file: Optional[str] = None):
    """Setup logging configuration"""
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f'Invalid log level: {level}')

    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=numeric_level,
        format=LOG_FORMAT,
        handlers=handlers
    )


def load_config(config_path: str) -> Dict[str, Any]:
    """Load configuration from JSON file"""
    try:
        with open(config_path, 'r') as f:
            return json.load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"Configuration file {config_path} not found")
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in configuration file: {e}")


def save_config(config: Dict[str, Any], config_path: str):
    """Save configuration to JSON file"""
    try:
        with open(config_path, 'w') as f:
            json.dump(config, f, indent=2)
    except OSError as e:
        raise IOError(f"Failed to save configuration: {e}")


def clamp(value: float, min_value: float, max_value: float) -> float:
    """Clamp value to range"""
    return max(min_value, min(max_value, value))


def rescale_position(value: float) -> int:
    """Convert a 0..1 device position to the -100..100 host scale"""
    # 0.0 -> -100, 0.5 -> 0, 1.0 -> 100, halves round up
    return int(clamp(math.floor((value - 0.5) * 200 + 0.5), -100, 100))
