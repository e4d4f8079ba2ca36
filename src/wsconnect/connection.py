"""
WebSocket connection bootstrap for wsconnect.

This module dials the target, wraps the socket into stream endpoints,
negotiates the Upgrade handshake through them and hands back the finished
:class:`Connection`.
"""

from __future__ import annotations

import logging
import os
import socket
import ssl
import typing
from dataclasses import dataclass, field

from ._collections import HTTPHeaderDict
from .dialer import dial as dial_transport
from .exceptions import HandshakeError, WSConnectError
from .handshake import HandshakeResponse, handshake
from .streams import InboundSource, OutboundSink, SocketHandle, StreamSettings, open_streams
from .util.timeout import Timeout
from .util.url import Url, parse_url

log = logging.getLogger(__name__)

MASK_SIZE = 4


def create_mask() -> bytes:
    """Return a 4 byte frame masking key from the OS random source."""
    return os.urandom(MASK_SIZE)


@dataclass(frozen=True)
class Connection:
    """
    An established WebSocket connection, ready for a frame codec.

    The connection owns ``sock``. Closing the sink, exhausting or
    cancelling the source, or calling :meth:`close` all close it.
    """

    sock: socket.socket
    source: InboundSource
    sink: OutboundSink
    mask: bytes
    url: Url
    response: HandshakeResponse
    _handle: SocketHandle = field(repr=False, compare=False)

    @property
    def closed(self) -> bool:
        return self._handle.closed

    def close(self) -> None:
        """Close the connection's socket. Safe to call more than once."""
        self._handle.close()

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def create_connection(
    url: str,
    headers: typing.Mapping[str, str] | None = None,
    *,
    timeout: Timeout | float | None = None,
    ssl_context: ssl.SSLContext | None = None,
    stream_settings: StreamSettings | None = None,
    dial: typing.Callable[..., socket.socket] = dial_transport,
    negotiate: typing.Callable[..., HandshakeResponse] = handshake,
) -> Connection:
    """
    Open a WebSocket connection with custom handshake headers.

    Either a fully negotiated :class:`Connection` is returned, or an error
    is raised after the socket has been closed.

    :param url: ``ws://``, ``wss://``, ``http://`` or ``https://`` URL
    :param headers: Extra headers for the Upgrade request. The mapping is
        copied, so changing it afterwards has no effect.
    :param timeout: Connect/read timeout for dialing and the handshake
    :param ssl_context: Context used for TLS targets
    :param stream_settings: Read loop settings for the inbound source
    :param dial: Transport dialer, ``dial(url, timeout=, ssl_context=)``
    :param negotiate: Handshake negotiator,
        ``negotiate(url, headers, source, sink, timeout=)``
    :raises UnsupportedProtocol: for an unknown scheme, before any I/O
    :raises InvalidHeader: for a header that could split the request,
        before any I/O
    :raises TransportError: if the socket could not be opened
    :raises HandshakeError: if the Upgrade was rejected or malformed

    Example::

        conn = create_connection("wss://example.com/feed", {
            "Authorization": "Bearer token",
        })
    """
    parsed_url = parse_url(url)
    request_headers = HTTPHeaderDict(headers or {})
    timeout = Timeout.from_float(timeout)

    sock = dial(parsed_url, timeout=timeout, ssl_context=ssl_context)
    handle, source, sink = open_streams(sock, stream_settings)
    mask = create_mask()

    try:
        response = negotiate(
            parsed_url, request_headers, source, sink, timeout=timeout.read_timeout
        )
    except WSConnectError:
        handle.close()
        raise
    except Exception as e:
        handle.close()
        raise HandshakeError(f"WebSocket handshake failed: {e}") from e
    except BaseException:
        handle.close()
        raise

    log.debug("WebSocket connection to %s established", parsed_url)
    return Connection(
        sock=sock,
        source=source,
        sink=sink,
        mask=mask,
        url=parsed_url,
        response=response,
        _handle=handle,
    )


def create_socket_connection(
    url: str,
    headers: typing.Mapping[str, str] | None = None,
    client_class: typing.Callable[[Connection], typing.Any] | None = None,
    **kwargs: typing.Any,
) -> typing.Any:
    """
    Open a connection and hand it to a WebSocket client.

    ``client_class`` is called with the new :class:`Connection` and should
    implement framing on top of its source, sink and mask. Without one the
    connection itself is returned.

    :param url: The WebSocket URL
    :param headers: Extra headers for the Upgrade request
    :param client_class: Factory taking a Connection
    :param kwargs: Passed through to :func:`create_connection`
    """
    connection = create_connection(url, headers, **kwargs)
    if client_class is None:
        return connection

    try:
        return client_class(connection)
    except BaseException:
        connection.close()
        raise
