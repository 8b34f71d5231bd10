import argparse
import ipaddress
import socket
import sys
from pathlib import Path
from typing import List, Optional

import psutil
import uvicorn
from pydantic import ValidationError

from pfs import config
from pfs.app.services.lifecycle import LifecycleTimer
from pfs.config import Mode, ServerConfig
from pfs.main import create_app

HOST = "0.0.0.0"  # IPv4 only
UNKNOWN_ADDRESS = "<your-local-ip-address>"

COMMAND_MODES = {
    "up": Mode.UPLOAD,
    "down": Mode.DOWNLOAD,
    "updown": Mode.BOTH,
    "both": Mode.BOTH,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pfs",
        description="Share the current directory over HTTP for downloads and/or uploads, "
                    "then exit after a timeout",
    )
    subparsers = parser.add_subparsers(dest="command")

    serving_commands = [
        ("up", [], "Allow uploads to the current directory"),
        ("down", [], "Allow downloads from the current directory"),
        ("updown", ["both"], "Allow downloads from and uploads to the current directory"),
    ]
    for name, aliases, help_text in serving_commands:
        command = subparsers.add_parser(name, aliases=aliases, help=help_text)
        command.add_argument('-p', '--port', type=int, default=config.DEFAULT_PORT,
                             help='TCP port to listen on')
        command.add_argument('-t', '--timeout', type=float, default=config.DEFAULT_TIMEOUT_MINUTES,
                             help='Minutes before the server exits')
        command.add_argument('-i', '--insecure', action='store_true',
                             help='Do not require the generated secret username')

    subparsers.add_parser("version", help="Print the version and exit")
    subparsers.add_parser("help", help="Show this help and exit")
    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Create the ServerConfig for a serving command."""
    return ServerConfig.create(
        mode=COMMAND_MODES[args.command],
        port=args.port,
        timeout_minutes=args.timeout,
        insecure=args.insecure,
        directory=Path.cwd(),
    )


def get_local_address() -> str:
    """Return the last non-loopback IPv4 address of this host."""
    local_address = UNKNOWN_ADDRESS
    for addrs in psutil.net_if_addrs().values():
        for addr in addrs:
            if addr.family == socket.AF_INET and not ipaddress.ip_address(addr.address).is_loopback:
                local_address = addr.address
    return local_address


def bind_listener(port: int) -> socket.socket:
    """Bind the IPv4 listening socket on all interfaces."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((HOST, port))
    except OSError:
        sock.close()
        raise
    return sock


def print_address_and_port(server_config: ServerConfig) -> None:
    print()
    print(f"Use this address: http://{get_local_address()}:{server_config.port}")
    if server_config.auth_enabled:
        print(f" (Enter {server_config.token} for username when requested. Ignore password)")
    else:
        print(" (No secret username required)")
    print()


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command in (None, "help"):
        parser.print_help()
        return 0
    if args.command == "version":
        print(f"pfs {config.VERSION}")
        return 0

    try:
        server_config = config_from_args(args)
    except (ValidationError, OSError) as e:
        print(f"err= {e}", file=sys.stderr)
        return 1

    # Bind before anything starts so a busy port fails with status 1
    try:
        sock = bind_listener(server_config.port)
    except OSError as e:
        print(e, file=sys.stderr)
        return 1

    print_address_and_port(server_config)
    timer = LifecycleTimer(server_config.timeout_seconds)
    app = create_app(server_config, timer=timer)

    server = uvicorn.Server(uvicorn.Config(app))
    server.run(sockets=[sock])
    return 0


def run() -> None:
    sys.exit(main())
