"""
OSC message encoding for the slider

Only the subset the slider understands is supported: one address and a
single float32 argument, no bundles.
"""

from dataclasses import dataclass

from pythonosc.parsing import osc_types


MAX_MESSAGE_SIZE = 1024
FLOAT_TYPE_TAG = ",f"


class OscEncodeError(ValueError):
    """Raised when an address/value pair cannot be encoded as OSC"""


@dataclass(frozen=True)
class OscMessage:
    """Single-float OSC message"""
    address: str
    value: float

    def encode(self) -> bytes:
        return encode(self.address, self.value)

    def __str__(self) -> str:
        return f"{self.address} {self.value}"


def _check_address(address: str):
    if not isinstance(address, str):
        raise OscEncodeError(f"OSC address must be a string, got {type(address).__name__}")
    if not address.startswith('/'):
        raise OscEncodeError(f"OSC address must start with '/': {address!r}")
    if not address.isascii():
        raise OscEncodeError(f"OSC address must be ASCII: {address!r}")
    if '\x00' in address:
        raise OscEncodeError(f"OSC address must not contain NUL bytes: {address!r}")


def encode(address: str, value: float) -> bytes:
    """
    Encode an OSC message carrying one float argument.

    Layout: address + NUL padded to 4 bytes, ",f" + NUL padded to 4 bytes,
    then the big-endian IEEE-754 float32 value.

    Raises:
        OscEncodeError: bad address, oversized message or a value that
            does not fit in a float32
    """
    _check_address(address)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise OscEncodeError(f"OSC value must be a number, got {type(value).__name__}")

    try:
        dgram = osc_types.write_string(address)
        dgram += osc_types.write_string(FLOAT_TYPE_TAG)
        dgram += osc_types.write_float(float(value))
    except (osc_types.BuildError, OverflowError) as e:
        raise OscEncodeError(f"Could not encode {address} {value}: {e}") from e

    if len(dgram) >= MAX_MESSAGE_SIZE:
        raise OscEncodeError(f"OSC message too large ({len(dgram)} bytes) for {address[:32]}...")
    return dgram
