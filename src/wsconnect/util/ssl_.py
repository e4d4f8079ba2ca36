"""
SSL utilities for wsconnect.
"""

from __future__ import annotations

import socket
import ssl
from typing import Optional, Union

import certifi

# For mocking in tests
SSLContext = ssl.SSLContext


def is_ipaddress(hostname: Union[str, bytes]) -> bool:
    """
    Detects whether the hostname given is an IP address.

    Args:
        hostname: The hostname to check.

    Returns:
        True if the hostname is an IP address, False otherwise.
    """
    if isinstance(hostname, bytes):
        # IDN A-label bytes are ASCII compatible.
        hostname = hostname.decode("ascii")

    # IPv6 addresses with zone IDs contain '%'
    if "%" in hostname:
        hostname = hostname.split("%")[0]

    for family in (socket.AF_INET, socket.AF_INET6):
        try:
            socket.inet_pton(family, hostname)
            return True
        except (OSError, ValueError):
            continue
    return False


def create_wsconnect_context(
    cert_reqs: Optional[int] = None,
    ca_certs: Optional[str] = None,
    ssl_minimum_version: Optional[int] = None,
    ciphers: Optional[str] = None,
) -> ssl.SSLContext:
    """
    Creates the client :class:`ssl.SSLContext` used for ``https`` and ``wss`` targets.

    Certificates are verified against the ``certifi`` bundle unless
    ``ca_certs`` names another file.

    Args:
        cert_reqs: The certificate requirements. Defaults to ``ssl.CERT_REQUIRED``.
        ca_certs: Path to a CA bundle.
        ssl_minimum_version: The minimum TLS version to accept.
        ciphers: The ciphers to use.

    Returns:
        The configured SSL context.
    """
    context = SSLContext(ssl.PROTOCOL_TLS_CLIENT)

    cert_reqs = ssl.CERT_REQUIRED if cert_reqs is None else cert_reqs
    if cert_reqs == ssl.CERT_NONE:
        context.check_hostname = False
    context.verify_mode = cert_reqs

    # Disable compression to prevent CRIME attacks
    context.options |= getattr(ssl, "OP_NO_COMPRESSION", 0)

    context.minimum_version = (
        ssl.TLSVersion.TLSv1_2 if ssl_minimum_version is None else ssl_minimum_version
    )

    if ciphers:
        context.set_ciphers(ciphers)

    if cert_reqs != ssl.CERT_NONE:
        context.load_verify_locations(cafile=ca_certs or certifi.where())

    return context


def ssl_wrap_socket(
    sock: socket.socket,
    server_hostname: Optional[str] = None,
    ssl_context: Optional[ssl.SSLContext] = None,
) -> ssl.SSLSocket:
    """
    Wraps a connected socket with TLS and performs the handshake.

    Args:
        sock: The socket to wrap.
        server_hostname: The server hostname, used for SNI and certificate
            matching.
        ssl_context: The SSL context to use. A default context is created
            when omitted.

    Returns:
        The wrapped socket.
    """
    if ssl_context is None:
        ssl_context = create_wsconnect_context()

    # An IP address must not be sent as SNI (RFC3546 Section 3.1). With
    # hostname checking on, the ssl module still needs it to match the
    # certificate and leaves it out of the ClientHello itself.
    if (
        server_hostname is not None
        and is_ipaddress(server_hostname)
        and not ssl_context.check_hostname
    ):
        return ssl_context.wrap_socket(sock)

    return ssl_context.wrap_socket(sock, server_hostname=server_hostname)
