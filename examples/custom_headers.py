#!/usr/bin/env python3
"""
Example opening a WebSocket connection with custom handshake headers.

The connection is printed as raw bytes: framing belongs to the client
built on top of the Connection, so this only shows what the bootstrap
layer hands over.
"""

import argparse
import logging

import wsconnect
from wsconnect.exceptions import WSConnectError

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("custom_headers_example")


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("url", help="ws://, wss://, http:// or https:// URL")
    parser.add_argument("--token", help="Bearer token sent as the Authorization header")
    parser.add_argument("--timeout", type=float, default=10.0)
    parser.add_argument("--debug", action="store_true", help="Log wsconnect internals")
    args = parser.parse_args()

    if args.debug:
        wsconnect.add_stderr_logger()

    headers = {}
    if args.token:
        headers["Authorization"] = f"Bearer {args.token}"

    try:
        conn = wsconnect.create_connection(args.url, headers, timeout=args.timeout)
    except WSConnectError as e:
        logger.error("Could not connect: %s", e)
        return 1

    with conn:
        logger.info("Connected to %s, masking key %s", conn.url, conn.mask.hex())
        for name, value in conn.response.headers.items():
            logger.info("  %s: %s", name, value)

        try:
            chunk = conn.source.read_chunk(timeout=args.timeout)
        except wsconnect.exceptions.ReadTimeoutError:
            logger.info("Server sent nothing within %s seconds", args.timeout)
        else:
            logger.info("First inbound bytes: %s", chunk.hex())

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
