"""
Timeout handling for wsconnect.

This module provides the timeout configuration used while dialing and
while waiting for the handshake response.
"""

from __future__ import annotations

import typing

_TYPE_TIMEOUT = typing.Union["Timeout", float, int, None]


class Timeout:
    """
    Timeout configuration.

    ``connect`` bounds the TCP connect and TLS negotiation. ``read`` only
    bounds the waits for the handshake response; the dialed socket is left
    in blocking mode, so an established connection never times out on
    reads. ``None`` means wait forever.
    """

    def __init__(self, connect=None, read=None):
        """
        Initialize a new Timeout.

        :param connect: Timeout for establishing the transport
        :param read: Timeout for reading
        """
        self._connect = connect
        self._read = read

    @classmethod
    def from_float(cls, timeout: _TYPE_TIMEOUT) -> "Timeout":
        """
        Create a Timeout from a float.

        :param timeout: Timeout value, an existing Timeout, or None
        :return: Timeout instance
        """
        if isinstance(timeout, Timeout):
            return timeout
        return Timeout(connect=timeout, read=timeout)

    @property
    def connect_timeout(self):
        """Get the connect timeout."""
        return self._connect

    @property
    def read_timeout(self):
        """Get the read timeout."""
        return self._read

    def __repr__(self):
        return f"{type(self).__name__}(connect={self._connect!r}, read={self._read!r})"
