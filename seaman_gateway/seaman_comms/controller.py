from __future__ import annotations

import threading
from enum import IntEnum
from typing import Dict, Optional, Tuple

INT16_MIN = -32768
INT16_MAX = 32767


class ActuatorChannel(IntEnum):
    STARBOARD_ENGINE = 0
    PORT_ENGINE = 1
    STARBOARD_RUDDER = 2
    PORT_RUDDER = 3
    TUNNEL_THRUSTER_1 = 4
    TUNNEL_THRUSTER_2 = 5


CHANNEL_COUNT = len(ActuatorChannel)


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def resolve_channel(channel: object) -> Optional[ActuatorChannel]:
    if isinstance(channel, bool) or not isinstance(channel, int):
        return None
    try:
        return ActuatorChannel(channel)
    except ValueError:
        return None


class CommandVector:
    """Latest request per actuator channel, safe to share between threads.

    Values are in the simulator's request units: 100 is full ahead (or full
    starboard), -100 full astern (or full port).
    """

    __slots__ = ("_values", "_lock")

    def __init__(self) -> None:
        self._values = [0] * CHANNEL_COUNT
        self._lock = threading.Lock()

    def set(self, channel: object, value: int) -> bool:
        resolved = resolve_channel(channel)
        if resolved is None:
            return False
        try:
            clamped = _clamp(int(value), INT16_MIN, INT16_MAX)
        except (TypeError, ValueError, OverflowError):
            return False
        with self._lock:
            self._values[resolved] = clamped
        return True

    def snapshot(self) -> Tuple[int, ...]:
        with self._lock:
            return tuple(self._values)

    def to_dict(self) -> Dict[str, int]:
        values = self.snapshot()
        return {channel.name.lower(): values[channel] for channel in ActuatorChannel}
