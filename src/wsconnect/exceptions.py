"""
Exceptions for wsconnect.

This module contains all exceptions raised by wsconnect.
"""

from __future__ import annotations

import typing


class WSConnectError(Exception):
    """Base exception used by this module."""
    pass


class LocationValueError(ValueError, WSConnectError):
    """Raised when there is something wrong with a given URL input."""
    pass


class LocationParseError(LocationValueError):
    """Raised when parse_url or similar fails to parse the URL input."""

    def __init__(self, location):
        message = f"Failed to parse: {location}"
        super().__init__(message)

        self.location = location


class UnsupportedProtocol(LocationValueError):
    """Raised when a URL input has a scheme that cannot carry a WebSocket."""

    def __init__(self, scheme):
        message = f"Unknown protocol supplied to connect: {scheme!r}"
        super().__init__(message)

        self.scheme = scheme


class TransportError(WSConnectError):
    """
    Raised when the transport could not be established.

    This covers DNS failures, refused or unreachable connections, connect
    timeouts and TLS negotiation failures. The original error is kept in
    ``cause``.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class HandshakeError(WSConnectError):
    """
    Raised when the WebSocket Upgrade handshake fails.

    This can happen if the server doesn't support WebSockets, rejects the
    request, or answers with a malformed response.
    """

    def __init__(
        self,
        message: str,
        status: int | None = None,
        headers: typing.Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.headers = headers


class StreamError(WSConnectError):
    """Base class for errors raised by the stream endpoints."""
    pass


class StreamClosedError(StreamError):
    """
    Raised when using a stream endpoint whose socket is closed.

    When raised by a read that hit end-of-stream early, ``partial`` holds
    the bytes received before the end.
    """

    def __init__(self, message: str = "Stream is closed", partial: bytes = b"") -> None:
        super().__init__(message)
        self.partial = partial


class ReadTimeoutError(StreamError, TimeoutError):
    """Raised when no data arrived on an inbound source within the timeout."""
    pass


class ProtocolError(StreamError):
    """Raised when the peer sends something that exceeds a read limit."""
    pass


class InvalidHeader(ValueError, WSConnectError):
    """Raised when a header name is not an HTTP token or a value contains CR, LF or NUL."""
    pass
