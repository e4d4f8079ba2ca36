"""
Utility functions for wsconnect.
"""

from __future__ import annotations

from .ssl_ import create_wsconnect_context, is_ipaddress, ssl_wrap_socket
from .timeout import Timeout
from .url import DEFAULT_PORTS, PLAIN_SCHEMES, SECURE_SCHEMES, Url, parse_url

__all__ = (
    "DEFAULT_PORTS",
    "PLAIN_SCHEMES",
    "SECURE_SCHEMES",
    "Timeout",
    "Url",
    "create_wsconnect_context",
    "is_ipaddress",
    "parse_url",
    "ssl_wrap_socket",
)
