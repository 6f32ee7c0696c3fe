from __future__ import annotations

import json
import struct
import time
from typing import Optional, Sequence, Tuple, Union

from .controller import CHANNEL_COUNT, INT16_MAX, INT16_MIN
from .telemetry import TelemetrySample

COMMAND_PROTOCOL_TAG = 1
# Six actuator fields plus one the simulator reserves and leaves empty.
COMMAND_FIELD_COUNT = 7
COMMAND_FRAME_SIZE = 16

_COMMAND_FRAME = struct.Struct("<BB6h2x")

TELEMETRY_ROOT_KEY = "shiman"
TELEMETRY_SPEED_KEY = "sog"
TELEMETRY_HEADING_KEY = "psdg"


class TelemetryDecodeError(ValueError):
    pass


def encode_command_frame(values: Sequence[int]) -> bytes:
    if len(values) != CHANNEL_COUNT:
        raise ValueError(f"Expected {CHANNEL_COUNT} channel values, got {len(values)}")

    fields = [max(INT16_MIN, min(INT16_MAX, int(value))) for value in values]
    return _COMMAND_FRAME.pack(COMMAND_PROTOCOL_TAG, COMMAND_FIELD_COUNT, *fields)


def decode_command_frame(frame: bytes) -> Tuple[int, ...]:
    if len(frame) != COMMAND_FRAME_SIZE:
        raise ValueError(f"Invalid command frame length: {len(frame)}")

    tag, field_count, *fields = _COMMAND_FRAME.unpack(frame)
    if tag != COMMAND_PROTOCOL_TAG:
        raise ValueError(f"Invalid command frame tag: 0x{tag:02X}")
    if field_count != COMMAND_FIELD_COUNT:
        raise ValueError(f"Invalid command frame field count: {field_count}")
    return tuple(fields)


def _numeric_field(container: dict, key: str) -> float:
    if key not in container:
        raise TelemetryDecodeError(f"missing field '{TELEMETRY_ROOT_KEY}.{key}'")
    value = container[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TelemetryDecodeError(f"field '{TELEMETRY_ROOT_KEY}.{key}' is not numeric: {value!r}")
    try:
        return float(value)
    except OverflowError as exc:
        raise TelemetryDecodeError(f"field '{TELEMETRY_ROOT_KEY}.{key}' out of range") from exc


def decode_telemetry(
    payload: Union[bytes, str],
    rx_monotonic_s: Optional[float] = None,
) -> TelemetrySample:
    """Decode one telemetry message published by the simulator.

    The payload is a JSON object; only ``shiman.sog`` (speed over ground,
    knots) and ``shiman.psdg`` (heading, degrees) are read. Anything that does
    not yield both numbers raises :class:`TelemetryDecodeError`.
    """
    try:
        text = payload.decode("utf-8") if isinstance(payload, (bytes, bytearray)) else payload
        document = json.loads(text)
    except (ValueError, RecursionError) as exc:
        raise TelemetryDecodeError(f"invalid telemetry JSON: {exc}") from exc

    if not isinstance(document, dict):
        raise TelemetryDecodeError("telemetry payload must be an object")

    ship = document.get(TELEMETRY_ROOT_KEY)
    if not isinstance(ship, dict):
        raise TelemetryDecodeError(f"missing object '{TELEMETRY_ROOT_KEY}'")

    return TelemetrySample(
        speed_knots=_numeric_field(ship, TELEMETRY_SPEED_KEY),
        heading_deg=_numeric_field(ship, TELEMETRY_HEADING_KEY),
        rx_monotonic_s=time.monotonic() if rx_monotonic_s is None else rx_monotonic_s,
    )
