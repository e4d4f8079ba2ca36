"""
Transport dialing for wsconnect.

This module turns a target URL into an open socket: plain TCP for the
``http``/``ws`` schemes and TLS for ``https``/``wss``.
"""

from __future__ import annotations

import logging
import socket
import ssl
import typing

from .exceptions import TransportError
from .util.ssl_ import ssl_wrap_socket
from .util.timeout import Timeout
from .util.url import Url, parse_url

log = logging.getLogger(__name__)


def _open_tcp(url: Url, timeout: Timeout) -> socket.socket:
    try:
        return socket.create_connection((url.host, url.port), timeout.connect_timeout)
    except socket.timeout as e:
        raise TransportError(
            f"Connection to {url.host}:{url.port} timed out (connect timeout={timeout.connect_timeout})",
            cause=e,
        ) from e
    except OSError as e:
        raise TransportError(
            f"Failed to establish a new connection to {url.host}:{url.port}: {e}", cause=e
        ) from e


def _negotiate_tls(
    sock: socket.socket, url: Url, ssl_context: ssl.SSLContext | None
) -> ssl.SSLSocket:
    try:
        return ssl_wrap_socket(sock, server_hostname=url.host, ssl_context=ssl_context)
    except OSError as e:
        # The TCP socket never reached the caller, so it is ours to close.
        sock.close()
        raise TransportError(f"TLS negotiation with {url.host}:{url.port} failed: {e}", cause=e) from e


def dial(
    url: str | Url,
    timeout: Timeout | float | None = None,
    ssl_context: ssl.SSLContext | None = None,
) -> socket.socket:
    """
    Open the transport for a WebSocket target.

    The scheme decides the transport: ``http`` and ``ws`` get a plain TCP
    connection, ``https`` and ``wss`` get TLS on top of it. Without an
    explicit port, 80 and 443 are used respectively. Nothing is retried.

    :param url: Target URL, as a string or already parsed
    :param timeout: Connect/read timeout, see :class:`~wsconnect.util.timeout.Timeout`
    :param ssl_context: Context for TLS targets; defaults to a verifying
        context backed by the certifi bundle
    :return: The connected socket, owned by the caller from here on
    :raises UnsupportedProtocol: for any other scheme, before any I/O
    :raises TransportError: when DNS, connect or TLS negotiation fails
    """
    if not isinstance(url, Url):
        url = parse_url(url)
    timeout = Timeout.from_float(timeout)

    log.debug("Starting new %s connection: %s:%s", url.scheme.upper(), url.host, url.port)
    sock: typing.Union[socket.socket, ssl.SSLSocket] = _open_tcp(url, timeout)

    if url.is_secure:
        sock = _negotiate_tls(sock, url, ssl_context)
        log.debug("TLS established with %s:%s using %s", url.host, url.port, sock.version())

    # The read loop blocks until data or close; handshake waits are bounded
    # by the inbound source instead.
    sock.settimeout(None)
    return sock
