import json
import struct

import pytest

from seaman_gateway.seaman_comms.controller import ActuatorChannel, CommandVector
from seaman_gateway.seaman_comms.protocol import (
    COMMAND_FRAME_SIZE,
    TelemetryDecodeError,
    decode_command_frame,
    decode_telemetry,
    encode_command_frame,
)


def make_telemetry(ship: object, **extra) -> bytes:
    return json.dumps({"shiman": ship, **extra}).encode("utf-8")


def test_encode_neutral_frame() -> None:
    frame = encode_command_frame((0, 0, 0, 0, 0, 0))

    assert len(frame) == COMMAND_FRAME_SIZE
    assert frame == bytes([1, 7]) + bytes(14)


def test_encode_field_layout() -> None:
    frame = encode_command_frame((10, -30, 100, -100, 75, -1))

    assert frame[0] == 1
    assert frame[1] == 7
    assert frame[2:4] == b"\x0a\x00"
    assert frame[4:6] == b"\xe2\xff"  # -30 in int16 LE
    assert frame[6:8] == b"\x64\x00"
    assert frame[8:10] == b"\x9c\xff"
    assert frame[10:12] == b"\x4b\x00"
    assert frame[12:14] == b"\xff\xff"
    assert frame[14:16] == b"\x00\x00"


@pytest.mark.parametrize("channel", list(ActuatorChannel))
@pytest.mark.parametrize("value", [-100, -37, -1, 0, 1, 64, 100])
def test_set_then_encode_only_touches_that_channel(channel: ActuatorChannel, value: int) -> None:
    commands = CommandVector()
    prior = (11, -22, 33, -44, 55, -66)
    for index, prior_value in enumerate(prior):
        commands.set(index, prior_value)

    commands.set(channel, value)
    frame = encode_command_frame(commands.snapshot())

    offset = 2 + 2 * channel
    assert frame[:2] == b"\x01\x07"
    assert frame[offset:offset + 2] == struct.pack("<h", value)
    for other in ActuatorChannel:
        if other == channel:
            continue
        other_offset = 2 + 2 * other
        assert frame[other_offset:other_offset + 2] == struct.pack("<h", prior[other])
    assert frame[14:] == b"\x00\x00"


def test_encode_clamps_out_of_range_values() -> None:
    frame = encode_command_frame((70000, -70000, 0, 0, 0, 0))
    assert decode_command_frame(frame)[:2] == (32767, -32768)


def test_encode_wrong_length_raises() -> None:
    with pytest.raises(ValueError, match="6 channel values"):
        encode_command_frame((1, 2, 3))


def test_decode_command_frame_validates_header() -> None:
    with pytest.raises(ValueError, match="length"):
        decode_command_frame(bytes(15))
    with pytest.raises(ValueError, match="tag"):
        decode_command_frame(bytes([2, 7]) + bytes(14))
    with pytest.raises(ValueError, match="field count"):
        decode_command_frame(bytes([1, 6]) + bytes(14))


def test_decode_telemetry_ok() -> None:
    payload = make_telemetry({"sog": 12.3, "psdg": 45.6, "rpm": 80}, time=1.0)
    sample = decode_telemetry(payload, rx_monotonic_s=5.0)

    assert sample.speed_knots == 12.3
    assert sample.heading_deg == 45.6
    assert sample.rx_monotonic_s == 5.0


def test_decode_telemetry_accepts_integers_and_text() -> None:
    sample = decode_telemetry('{"shiman": {"sog": 3, "psdg": 180}}')

    assert sample.speed_knots == 3.0
    assert sample.heading_deg == 180.0
    assert isinstance(sample.speed_knots, float)


@pytest.mark.parametrize(
    "payload, message",
    [
        (b"{\"shiman\": {\"sog\": 1.0, ", "invalid telemetry JSON"),
        (b"\xff\xfe", "invalid telemetry JSON"),
        (b"[1, 2]", "must be an object"),
        (b"{\"other\": {}}", "missing object 'shiman'"),
        (b"{\"shiman\": 4}", "missing object 'shiman'"),
        (b"{\"shiman\": {\"psdg\": 10.0}}", "shiman.sog"),
        (b"{\"shiman\": {\"sog\": 1.0}}", "shiman.psdg"),
        (b"{\"shiman\": {\"sog\": \"1.0\", \"psdg\": 2.0}}", "not numeric"),
        (b"{\"shiman\": {\"sog\": 1.0, \"psdg\": true}}", "not numeric"),
        (b"{\"shiman\": {\"sog\": 1" + b"0" * 400 + b", \"psdg\": 1.0}}", "out of range"),
        (b"[" * 200000, "invalid telemetry JSON"),
    ],
)
def test_decode_telemetry_failures(payload: bytes, message: str) -> None:
    with pytest.raises(TelemetryDecodeError, match=message):
        decode_telemetry(payload)


def test_decode_error_is_value_error() -> None:
    assert issubclass(TelemetryDecodeError, ValueError)
