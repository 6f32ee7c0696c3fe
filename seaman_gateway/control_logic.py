from __future__ import annotations

import math
from typing import Any, Dict, Optional, Sequence

POSITION_SCALE = 100.0


def position_to_request(position: float) -> int:
    """Scale a normalized pedal position (-1..1) to simulator request units.

    Truncates toward zero, so 0.759 becomes 75 and -0.759 becomes -75.
    """
    value = float(position)
    if not math.isfinite(value):
        raise ValueError(f"position must be finite, got {position!r}")
    return int(value * POSITION_SCALE)


def format_requests(values: Sequence[int]) -> str:
    starboard_engine, port_engine, starboard_rudder, port_rudder, thruster_1, thruster_2 = values
    return (
        "requests: "
        f"sb_engine={starboard_engine} "
        f"port_engine={port_engine} "
        f"sb_rudder={starboard_rudder} "
        f"port_rudder={port_rudder} "
        f"thruster1={thruster_1} "
        f"thruster2={thruster_2}"
    )


def build_status(
    commands: Dict[str, int],
    stats: Dict[str, int],
    telemetry: Optional[Dict[str, float]],
    timestamp: float,
) -> Dict[str, Any]:
    return {
        "commands": commands,
        "stats": stats,
        "telemetry": telemetry,
        "timestamp": timestamp,
    }
