# -*- coding: utf-8 -*-

# Simulation Gateway
# Copyright (C) 2025 Jwadow
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.

"""
Simulation Gateway entry point.

Usage:
    python main.py [--host HOST] [--port PORT]
    uvicorn main:app --host 0.0.0.0 --port 8000

Priority for host/port: CLI arguments > environment > defaults.
"""

import argparse
import sys
from typing import Tuple

import uvicorn
from loguru import logger

from simgate.app import create_app
from simgate.config import (
    APP_TITLE,
    APP_VERSION,
    DEFAULT_SERVER_HOST,
    DEFAULT_SERVER_PORT,
    LOG_LEVEL,
    SERVER_HOST,
    SERVER_PORT,
)

# Log calls put every diagnostic field in the message text; extra is not rendered
LOG_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>"

# Replace loguru's default sink with one honoring LOG_LEVEL
logger.remove()
logger.add(
    sys.stderr,
    level=LOG_LEVEL,
    format=LOG_FORMAT,
    colorize=True,
)


def parse_cli_args() -> argparse.Namespace:
    """
    Parse command-line arguments.

    Host and port default to None, meaning "use environment or default".
    """
    parser = argparse.ArgumentParser(
        description=f"{APP_TITLE} - request admission gateway",
    )
    parser.add_argument(
        "-H", "--host",
        type=str,
        default=None,
        help=f"Server host (default: {DEFAULT_SERVER_HOST}, env: SERVER_HOST)",
    )
    parser.add_argument(
        "-p", "--port",
        type=int,
        default=None,
        help=f"Server port (default: {DEFAULT_SERVER_PORT}, env: SERVER_PORT)",
    )
    parser.add_argument(
        "-v", "--version",
        action="version",
        version=f"%(prog)s {APP_VERSION}",
    )
    return parser.parse_args()


def resolve_server_config(args: argparse.Namespace) -> Tuple[str, int]:
    """
    Resolve the final host and port.

    Each value is resolved independently: CLI argument, then environment
    (SERVER_HOST / SERVER_PORT), then the built-in default.
    """
    if args.host is not None:
        host = args.host
    elif SERVER_HOST != DEFAULT_SERVER_HOST:
        host = SERVER_HOST
    else:
        host = DEFAULT_SERVER_HOST

    if args.port is not None:
        port = args.port
    elif SERVER_PORT != DEFAULT_SERVER_PORT:
        port = SERVER_PORT
    else:
        port = DEFAULT_SERVER_PORT

    return host, port


def print_startup_banner(host: str, port: int) -> None:
    """Prints the listening URL and the useful endpoints."""
    display_host = "localhost" if host == "0.0.0.0" else host
    base_url = f"http://{display_host}:{port}"
    print(f"{APP_TITLE} v{APP_VERSION}")
    print(f"  Server:  {base_url}")
    print(f"  Docs:    {base_url}/docs")
    print(f"  Health:  {base_url}/health")


app = create_app()


if __name__ == "__main__":
    cli_args = parse_cli_args()
    server_host, server_port = resolve_server_config(cli_args)
    print_startup_banner(server_host, server_port)
    uvicorn.run(app, host=server_host, port=server_port, log_level=LOG_LEVEL.lower())
