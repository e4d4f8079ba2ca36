"""
URL handling for wsconnect.
"""

from __future__ import annotations

import typing
from urllib.parse import urlsplit

import idna

from ..exceptions import LocationParseError, UnsupportedProtocol

PLAIN_SCHEMES = ("http", "ws")
SECURE_SCHEMES = ("https", "wss")

DEFAULT_PORTS = {
    "http": 80,
    "ws": 80,
    "https": 443,
    "wss": 443,
}


class Url(typing.NamedTuple):
    """
    A parsed WebSocket target.

    ``port`` is always filled in, using the scheme's default when the URL
    does not name one.
    """

    scheme: str
    host: str
    port: int
    path: str = "/"
    query: str | None = None

    @property
    def is_secure(self) -> bool:
        """Whether the scheme belongs to the TLS family."""
        return self.scheme in SECURE_SCHEMES

    @property
    def request_target(self) -> str:
        """Path and query as they appear on the HTTP request line."""
        if self.query:
            return f"{self.path}?{self.query}"
        return self.path

    @property
    def netloc(self) -> str:
        """Value for the ``Host`` header; the port is omitted when it is the default."""
        host = f"[{self.host}]" if ":" in self.host else self.host
        if self.port == DEFAULT_PORTS[self.scheme]:
            return host
        return f"{host}:{self.port}"

    @property
    def url(self) -> str:
        return f"{self.scheme}://{self.netloc}{self.request_target}"

    def __str__(self) -> str:
        return self.url


def _idna_encode(name: str) -> str:
    if not name.isascii():
        try:
            return idna.encode(name.lower(), strict=True, std3_rules=True).decode("ascii")
        except idna.IDNAError:
            raise LocationParseError(f"Name '{name}' is not a valid IDNA label") from None
    return name.lower()


def parse_url(url: str) -> Url:
    """
    Parse a WebSocket target URL.

    The scheme is checked before anything else so an unusable URL is
    rejected without touching the network.

    :param url: URL such as ``ws://example.com:8080/chat?room=1``
    :raises UnsupportedProtocol: if the scheme is not http, ws, https or wss
    :raises LocationParseError: if the host or port cannot be parsed
    """
    if not isinstance(url, str) or not url:
        raise LocationParseError(url)

    try:
        parts = urlsplit(url.strip())
    except ValueError:
        raise LocationParseError(url) from None

    scheme = parts.scheme.lower()
    if scheme not in DEFAULT_PORTS:
        raise UnsupportedProtocol(scheme)

    if not parts.hostname:
        raise LocationParseError(url)

    try:
        port = parts.port
    except ValueError:
        raise LocationParseError(url) from None

    if port is None:
        port = DEFAULT_PORTS[scheme]

    return Url(
        scheme=scheme,
        host=_idna_encode(parts.hostname),
        port=port,
        path=parts.path or "/",
        query=parts.query or None,
    )
