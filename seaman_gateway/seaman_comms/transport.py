from __future__ import annotations

import socket
import threading
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import zmq

from ..control_logic import position_to_request
from .controller import CommandVector
from .protocol import TelemetryDecodeError, decode_telemetry, encode_command_frame
from .telemetry import TelemetrySample

DEFAULT_COMMAND_PORT = 43000
DEFAULT_TELEMETRY_PORT = 8888
DEFAULT_TELEMETRY_TIMEOUT_S = 0.2


@dataclass(slots=True)
class CommsStats:
    tx_frames_ok: int = 0
    tx_errors: int = 0
    ignored_requests: int = 0
    rx_samples_ok: int = 0
    rx_decode_errors: int = 0
    rx_errors: int = 0
    sample_handler_errors: int = 0


class FrameSender:
    """Fire-and-forget UDP sender bound to one simulator address."""

    def __init__(self, host: str, port: int = DEFAULT_COMMAND_PORT) -> None:
        self.host = host
        self.port = int(port)
        self._sock: Optional[socket.socket] = None

    def open(self) -> None:
        if self._sock is not None:
            return
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.connect((self.host, self.port))
        except OSError:
            sock.close()
            raise
        self._sock = sock

    def send(self, frame: bytes) -> None:
        if self._sock is None:
            raise RuntimeError("command socket not open")
        self._sock.send(frame)

    def close(self) -> None:
        if self._sock is not None:
            try:
                self._sock.close()
            finally:
                self._sock = None


class TelemetrySubscriber:
    def __init__(
        self,
        host: str,
        port: int = DEFAULT_TELEMETRY_PORT,
        timeout_s: float = DEFAULT_TELEMETRY_TIMEOUT_S,
    ) -> None:
        if timeout_s <= 0:
            raise ValueError("timeout_s must be > 0")

        self.address = f"tcp://{host}:{int(port)}"
        self.timeout_ms = max(1, int(round(float(timeout_s) * 1000.0)))
        self._context: Optional[zmq.Context] = None
        self._socket: Optional[zmq.Socket] = None

    def open(self) -> None:
        if self._socket is not None:
            return
        context = zmq.Context()
        sub = context.socket(zmq.SUB)
        try:
            sub.setsockopt(zmq.LINGER, 0)
            sub.setsockopt(zmq.RCVTIMEO, self.timeout_ms)
            sub.connect(self.address)
            sub.setsockopt_string(zmq.SUBSCRIBE, "")
        except zmq.ZMQError:
            sub.close()
            context.term()
            raise
        self._context = context
        self._socket = sub

    def receive(self) -> Optional[bytes]:
        """Return one whole message, or None if nothing arrived before the timeout."""
        if self._socket is None:
            raise RuntimeError("telemetry socket not open")
        try:
            return self._socket.recv()
        except zmq.Again:
            return None

    def close(self) -> None:
        if self._socket is not None:
            self._socket.close()
            self._socket = None
        if self._context is not None:
            self._context.term()
            self._context = None


class SeamanClient:
    def __init__(
        self,
        host: str,
        command_port: int = DEFAULT_COMMAND_PORT,
        telemetry_port: int = DEFAULT_TELEMETRY_PORT,
        telemetry_timeout_s: float = DEFAULT_TELEMETRY_TIMEOUT_S,
    ) -> None:
        self.host = host

        self._commands = CommandVector()
        # Serializes set -> snapshot -> send so frames leave in state order.
        self._tx_lock = threading.Lock()
        self._sender = FrameSender(host, command_port)
        self._subscriber = TelemetrySubscriber(host, telemetry_port, telemetry_timeout_s)

        self._latest_telemetry: Optional[TelemetrySample] = None
        self._telemetry_lock = threading.Lock()

        self._stats = CommsStats()
        self._stats_lock = threading.Lock()

        self._stop_event = threading.Event()
        self._running = False

    @property
    def commands(self) -> CommandVector:
        return self._commands

    def start(self) -> None:
        if self._running:
            return

        self._sender.open()
        try:
            self._subscriber.open()
        except zmq.ZMQError:
            self._sender.close()
            raise

        self._stop_event.clear()
        self._running = True

    def stop(self) -> None:
        self._stop_event.set()
        if not self._running:
            return
        self._subscriber.close()
        self._sender.close()
        self._running = False

    def apply_pedal_position(self, sender_stamp: int, position: float) -> Optional[Tuple[int, ...]]:
        """Store one actuator request and transmit the full command state.

        Returns the transmitted channel values, or None when the request was
        ignored (unknown channel or non-finite position). Send failures are
        counted and re-raised.
        """
        try:
            request = position_to_request(position)
        except ValueError:
            self._count("ignored_requests")
            return None

        with self._tx_lock:
            if not self._commands.set(sender_stamp, request):
                self._count("ignored_requests")
                return None

            values = self._commands.snapshot()
            try:
                self._sender.send(encode_command_frame(values))
            except OSError:
                self._count("tx_errors")
                raise

        self._count("tx_frames_ok")
        return values

    def ingest_telemetry(self, payload: bytes) -> TelemetrySample:
        try:
            sample = decode_telemetry(payload)
        except TelemetryDecodeError:
            self._count("rx_decode_errors")
            raise

        with self._telemetry_lock:
            self._latest_telemetry = sample
        self._count("rx_samples_ok")
        return sample

    def run_telemetry_loop(
        self,
        should_continue: Callable[[], bool],
        on_sample: Callable[[TelemetrySample], None],
        logger,
    ) -> None:
        while should_continue() and not self._stop_event.is_set():
            try:
                payload = self._subscriber.receive()
            except zmq.ZMQError as exc:
                if exc.errno == zmq.ETERM:
                    break
                self._count("rx_errors")
                logger.error(f"Telemetry receive failed: {exc}")
                self._stop_event.wait(0.02)
                continue

            if payload is None:
                continue
            logger.debug(f"Got: {payload!r}")

            try:
                sample = self.ingest_telemetry(payload)
            except TelemetryDecodeError as exc:
                logger.error(f"Dropping telemetry message: {exc}")
                continue

            try:
                on_sample(sample)
            except Exception as exc:
                self._count("sample_handler_errors")
                logger.error(f"Telemetry handler failed: {exc}")

    def get_latest_telemetry(self) -> Optional[TelemetrySample]:
        with self._telemetry_lock:
            return self._latest_telemetry

    def get_command_state(self) -> dict:
        return self._commands.to_dict()

    def get_stats(self) -> CommsStats:
        with self._stats_lock:
            return CommsStats(
                tx_frames_ok=self._stats.tx_frames_ok,
                tx_errors=self._stats.tx_errors,
                ignored_requests=self._stats.ignored_requests,
                rx_samples_ok=self._stats.rx_samples_ok,
                rx_decode_errors=self._stats.rx_decode_errors,
                rx_errors=self._stats.rx_errors,
                sample_handler_errors=self._stats.sample_handler_errors,
            )

    def _count(self, field: str) -> None:
        with self._stats_lock:
            setattr(self._stats, field, getattr(self._stats, field) + 1)
