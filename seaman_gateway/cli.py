from __future__ import annotations

import argparse
import sys
from typing import NoReturn, Optional, Sequence

DESCRIPTION = "ROS 2 interface to the SSPA Seaman ship simulator."
EPILOG = "Example: seaman_gateway --cid=111 --seaman_ip=192.168.0.1"


class GatewayArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _domain_id(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid session id: {raw!r}") from None
    if value < 0:
        raise argparse.ArgumentTypeError("session id must be >= 0")
    return value


def build_arg_parser() -> argparse.ArgumentParser:
    parser = GatewayArgumentParser(prog="seaman_gateway", description=DESCRIPTION, epilog=EPILOG)
    parser.add_argument(
        "--cid",
        type=_domain_id,
        required=True,
        help="Control bus session (ROS 2 domain id)",
    )
    parser.add_argument(
        "--seaman_ip",
        "--seaman-ip",
        dest="seaman_ip",
        required=True,
        help="IP of the Seaman simulation server",
    )
    parser.add_argument("--verbose", action="store_true", help="Log every command and telemetry sample")
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    return build_arg_parser().parse_args(argv)
