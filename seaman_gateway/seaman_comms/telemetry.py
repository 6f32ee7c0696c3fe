from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class TelemetrySample:
    speed_knots: float
    heading_deg: float
    rx_monotonic_s: float

    def as_dict(self) -> dict:
        return {
            "speed_knots": self.speed_knots,
            "heading_deg": self.heading_deg,
            "rx_monotonic_s": self.rx_monotonic_s,
        }
