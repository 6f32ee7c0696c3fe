from __future__ import annotations

import json
import sys
import threading
import time
from dataclasses import asdict
from functools import partial
from typing import List, Optional

import rclpy
import zmq
from rclpy.callback_groups import ReentrantCallbackGroup
from rclpy.executors import ExternalShutdownException, MultiThreadedExecutor
from rclpy.logging import get_logger
from rclpy.node import Node
from rclpy.utilities import remove_ros_args
from std_msgs.msg import Float32, String

from .cli import parse_args
from .control_logic import build_status, format_requests
from .seaman_comms.telemetry import TelemetrySample
from .seaman_comms.transport import (
    DEFAULT_COMMAND_PORT,
    DEFAULT_TELEMETRY_PORT,
    DEFAULT_TELEMETRY_TIMEOUT_S,
    SeamanClient,
)


class SeamanGatewayNode(Node):
    def __init__(self, seaman_ip: str, verbose: bool = False, **kwargs) -> None:
        super().__init__("seaman_gateway", **kwargs)

        self.declare_parameter("command_port", DEFAULT_COMMAND_PORT)
        self.declare_parameter("telemetry_port", DEFAULT_TELEMETRY_PORT)
        self.declare_parameter("telemetry_timeout_s", DEFAULT_TELEMETRY_TIMEOUT_S)
        self.declare_parameter("command_topic_prefix", "/seaman/pedal_position_request")
        self.declare_parameter("sender_stamps", [0, 1, 2, 3, 4, 5])
        self.declare_parameter("status_pub_hz", 2.0)

        self._seaman_ip = seaman_ip
        self._verbose = bool(verbose)
        self._command_port = int(self.get_parameter("command_port").value)
        self._telemetry_port = int(self.get_parameter("telemetry_port").value)
        self._telemetry_timeout_s = float(self.get_parameter("telemetry_timeout_s").value)
        self._command_topic_prefix = str(self.get_parameter("command_topic_prefix").value).rstrip("/")
        self._sender_stamps = [int(stamp) for stamp in self.get_parameter("sender_stamps").value]
        self._status_pub_hz = max(0.1, float(self.get_parameter("status_pub_hz").value))

        self._shutdown_event = threading.Event()

        self._client = SeamanClient(
            host=self._seaman_ip,
            command_port=self._command_port,
            telemetry_port=self._telemetry_port,
            telemetry_timeout_s=self._telemetry_timeout_s,
        )

        callback_group = ReentrantCallbackGroup()
        for stamp in self._sender_stamps:
            self.create_subscription(
                Float32,
                f"{self._command_topic_prefix}/stamp_{stamp}",
                partial(self._on_pedal_position_request, stamp),
                10,
                callback_group=callback_group,
            )
        self._status_pub = self.create_publisher(String, "/seaman/status", 10)
        self._telemetry_pub = self.create_publisher(String, "/seaman/telemetry", 10)

        self.create_timer(1.0 / self._status_pub_hz, self._status_tick)

        self._client.start()

        self.get_logger().info(
            "seaman_gateway ready "
            f"(commands=udp://{self._seaman_ip}:{self._command_port}, "
            f"telemetry=tcp://{self._seaman_ip}:{self._telemetry_port}, "
            f"stamps={self._sender_stamps})"
        )

    def _on_pedal_position_request(self, sender_stamp: int, msg: Float32) -> None:
        position = msg.data
        try:
            values = self._client.apply_pedal_position(sender_stamp, position)
        except OSError as exc:
            self.get_logger().error(f"Failed to send command frame: {exc}")
            return

        if values is None:
            self.get_logger().debug(f"Ignoring request {position!r} from sender stamp {sender_stamp}")
            return

        line = f"Sending {format_requests(values)}"
        if self._verbose:
            self.get_logger().info(line)
        else:
            self.get_logger().debug(line)

    def _on_telemetry(self, sample: TelemetrySample) -> None:
        line = f"Speed: {sample.speed_knots} knots, heading: {sample.heading_deg} deg"
        if self._verbose:
            self.get_logger().info(line)
        else:
            self.get_logger().debug(line)

        msg = String()
        msg.data = json.dumps({**sample.as_dict(), "timestamp": time.time()}, ensure_ascii=True)
        self._telemetry_pub.publish(msg)

    def _status_tick(self) -> None:
        telemetry = self._client.get_latest_telemetry()
        status = build_status(
            commands=self._client.get_command_state(),
            stats=asdict(self._client.get_stats()),
            telemetry=telemetry.as_dict() if telemetry is not None else None,
            timestamp=time.time(),
        )
        msg = String()
        msg.data = json.dumps(status, ensure_ascii=True)
        self._status_pub.publish(msg)

    def bus_running(self) -> bool:
        return rclpy.ok(context=self.context) and not self._shutdown_event.is_set()

    def run_telemetry_loop(self) -> None:
        self._client.run_telemetry_loop(
            should_continue=self.bus_running,
            on_sample=self._on_telemetry,
            logger=self.get_logger(),
        )

    def destroy_node(self) -> bool:
        self._shutdown_event.set()
        self._client.stop()
        return super().destroy_node()


def _spin(executor: MultiThreadedExecutor) -> None:
    try:
        executor.spin()
    except ExternalShutdownException:
        pass


def main(argv: Optional[List[str]] = None) -> int:
    argv = list(sys.argv if argv is None else argv)
    args = parse_args(remove_ros_args(args=argv)[1:])

    rclpy.init(args=argv, domain_id=args.cid)
    node: Optional[SeamanGatewayNode] = None
    try:
        node = SeamanGatewayNode(seaman_ip=args.seaman_ip, verbose=args.verbose)
    except (OSError, zmq.ZMQError) as exc:
        get_logger("seaman_gateway").error(f"Startup failed: {exc}")
        return 1
    finally:
        if node is None:
            rclpy.shutdown()

    executor = MultiThreadedExecutor()
    executor.add_node(node)
    spin_thread = threading.Thread(target=_spin, args=(executor,), daemon=True, name="seaman-bus")
    spin_thread.start()

    try:
        node.run_telemetry_loop()
    except KeyboardInterrupt:
        pass
    finally:
        executor.shutdown()
        node.destroy_node()
        if rclpy.ok():
            rclpy.shutdown()
        spin_thread.join(timeout=1.0)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
