"""
wsconnect - WebSocket connections with custom handshake headers.

wsconnect opens the transport for a WebSocket URL and negotiates the
Upgrade handshake, then hands back the socket as:
- an inbound byte source fed by a background read loop
- an outbound byte sink
- a per-connection frame masking key

Framing is left to the client built on top of the returned Connection.
"""

# Import version
from ._version import __version__

# Set default logging handler to avoid "No handler found" warnings.
import logging
from logging import NullHandler

logging.getLogger(__name__).addHandler(NullHandler())

# Import exceptions first to avoid circular imports
from . import exceptions

from ._collections import HTTPHeaderDict
from .connection import Connection, create_connection, create_mask, create_socket_connection
from .dialer import dial
from .handshake import HandshakeResponse
from .streams import InboundSource, OutboundSink, StreamSettings
from .util.timeout import Timeout
from .util.url import Url, parse_url

from .exceptions import (
    HandshakeError,
    InvalidHeader,
    LocationParseError,
    StreamClosedError,
    TransportError,
    UnsupportedProtocol,
    WSConnectError,
)

__all__ = (
    "__version__",
    "Connection",
    "HTTPHeaderDict",
    "HandshakeResponse",
    "InboundSource",
    "OutboundSink",
    "StreamSettings",
    "Timeout",
    "Url",
    "add_stderr_logger",
    "create_connection",
    "create_mask",
    "create_socket_connection",
    "dial",
    "parse_url",
    # Exceptions
    "HandshakeError",
    "InvalidHeader",
    "LocationParseError",
    "StreamClosedError",
    "TransportError",
    "UnsupportedProtocol",
    "WSConnectError",
)


def add_stderr_logger(level=logging.DEBUG):
    """
    Helper for quickly adding a StreamHandler to the logger. Useful for
    debugging.

    Returns the handler after adding it.
    """
    # This method needs to be in this __init__.py to get the __name__ correct
    logger = logging.getLogger(__name__)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.debug("Added a stderr logging handler to logger: %s", __name__)
    return handler
