from .controller import ActuatorChannel, CommandVector
from .protocol import TelemetryDecodeError, decode_telemetry, encode_command_frame
from .telemetry import TelemetrySample
from .transport import FrameSender, SeamanClient, TelemetrySubscriber

__all__ = [
    "ActuatorChannel",
    "CommandVector",
    "FrameSender",
    "SeamanClient",
    "TelemetryDecodeError",
    "TelemetrySample",
    "TelemetrySubscriber",
    "encode_command_frame",
    "decode_telemetry",
]
