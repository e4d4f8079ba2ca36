"""
WebSocket opening handshake for wsconnect.

This module performs the client side of the HTTP Upgrade exchange
described in RFC 6455 section 4 over an already wrapped socket.
"""

from __future__ import annotations

import base64
import hashlib
import logging
import os
import typing
from dataclasses import dataclass

from ._collections import HTTPHeaderDict
from .exceptions import HandshakeError, ProtocolError, ReadTimeoutError, StreamError
from .util.url import Url

if typing.TYPE_CHECKING:
    from .streams import InboundSource, OutboundSink

log = logging.getLogger(__name__)

WS_VERSION = 13
WS_GUID = "258EAFA5-E914-47DA-95CA-C5AB0DC85B11"

# Upper bound on the response status line plus header block
MAX_RESPONSE_SIZE = 64 * 1024


@dataclass(frozen=True)
class HandshakeResponse:
    """The server's answer to a successful Upgrade request."""

    status: int
    reason: str
    headers: HTTPHeaderDict


def generate_key() -> str:
    """Return a fresh ``Sec-WebSocket-Key`` value."""
    return base64.b64encode(os.urandom(16)).decode("ascii")


def accept_key(key: str) -> str:
    """Compute the ``Sec-WebSocket-Accept`` value a server must send for ``key``."""
    digest = hashlib.sha1((key + WS_GUID).encode("ascii")).digest()
    return base64.b64encode(digest).decode("ascii")


def build_request(url: Url, headers: typing.Mapping[str, str], key: str) -> bytes:
    """
    Serialize the Upgrade request.

    Caller headers are layered over the defaults, so they may replace
    ``Host`` or add anything else. The Upgrade protocol headers are applied
    last and cannot be replaced: the response is validated against the
    generated key.
    """
    request_headers = HTTPHeaderDict({"Host": url.netloc})
    request_headers.extend(headers)

    protocol_headers = {
        "Upgrade": "websocket",
        "Connection": "Upgrade",
        "Sec-WebSocket-Key": key,
        "Sec-WebSocket-Version": str(WS_VERSION),
    }
    for name, value in protocol_headers.items():
        if name in request_headers:
            log.debug("Ignoring caller supplied %s header", name)
            del request_headers[name]
        request_headers[name] = value

    lines = [f"GET {url.request_target} HTTP/1.1"]
    lines.extend(f"{name}: {value}" for name, value in request_headers.items())
    return ("\r\n".join(lines) + "\r\n\r\n").encode("latin-1")


def parse_response(data: bytes) -> HandshakeResponse:
    """
    Parse a status line and header block.

    :raises HandshakeError: if the status line is malformed
    """
    text = data.decode("latin-1")
    status_line, _, header_block = text.partition("\r\n")

    parts = status_line.split(" ", 2)
    if len(parts) < 2 or not parts[0].startswith("HTTP/") or not parts[1].isdigit():
        raise HandshakeError(f"Malformed status line: {status_line!r}")
    status = int(parts[1])
    reason = parts[2] if len(parts) > 2 else ""

    headers = HTTPHeaderDict()
    for line in header_block.split("\r\n"):
        if not line:
            continue
        name, sep, value = line.partition(":")
        if not sep:
            raise HandshakeError(f"Malformed header line: {line!r}", status=status)
        headers.add(name.strip(), value.strip())

    return HandshakeResponse(status=status, reason=reason, headers=headers)


def validate_response(response: HandshakeResponse, key: str) -> None:
    """
    Check that ``response`` accepts the Upgrade request sent with ``key``.

    :raises HandshakeError: on the first check that fails
    """
    status, headers = response.status, response.headers

    if status != 101:
        raise HandshakeError(
            f"WebSocket handshake failed: {status} {response.reason}",
            status=status,
            headers=headers,
        )

    if headers.get("Upgrade", "").lower() != "websocket":
        raise HandshakeError(
            "WebSocket handshake failed: 'Upgrade' header is not 'websocket'",
            status=status,
            headers=headers,
        )

    if "upgrade" not in (token.lower() for token in headers.getlist("Connection")):
        raise HandshakeError(
            "WebSocket handshake failed: 'Connection' header is not 'upgrade'",
            status=status,
            headers=headers,
        )

    if headers.get("Sec-WebSocket-Accept") != accept_key(key):
        raise HandshakeError(
            "WebSocket handshake failed: Invalid 'Sec-WebSocket-Accept' header",
            status=status,
            headers=headers,
        )


def handshake(
    url: Url,
    headers: typing.Mapping[str, str],
    source: InboundSource,
    sink: OutboundSink,
    timeout: float | None = None,
) -> HandshakeResponse:
    """
    Negotiate the WebSocket Upgrade through a source/sink pair.

    Exactly the response status line and headers are consumed from
    ``source``; anything the server sent after them stays there.

    :param url: The parsed target
    :param headers: Extra request headers, layered over the protocol ones
    :param source: Inbound side of the connection
    :param sink: Outbound side of the connection
    :param timeout: Seconds to wait for the complete response
    :return: The accepted response
    :raises HandshakeError: if the server rejects the upgrade, answers with a
        malformed response or goes away before answering
    """
    key = generate_key()

    log.debug("Sending WebSocket upgrade request: GET %s", url.url)
    try:
        sink.write(build_request(url, headers, key))
        raw = source.read_until(b"\r\n\r\n", max_size=MAX_RESPONSE_SIZE, timeout=timeout)
    except ReadTimeoutError as e:
        raise HandshakeError(f"WebSocket handshake timed out: {e}") from e
    except ProtocolError as e:
        raise HandshakeError(f"WebSocket handshake response too large: {e}") from e
    except StreamError as e:
        raise HandshakeError(f"Connection closed during WebSocket handshake: {e}") from e

    response = parse_response(raw)
    validate_response(response, key)

    log.debug("WebSocket handshake with %s succeeded: %s %s", url.netloc, response.status, response.reason)
    return response
