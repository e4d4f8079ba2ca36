"""
Tests for URL parsing.
"""

from __future__ import annotations

import pytest

from wsconnect.exceptions import LocationParseError, UnsupportedProtocol
from wsconnect.util.url import Url, parse_url


class TestParseUrl:
    """Tests for parse_url."""

    @pytest.mark.parametrize(
        "url, port",
        [
            ("http://example.test", 80),
            ("ws://example.test", 80),
            ("https://example.test", 443),
            ("wss://example.test", 443),
        ],
    )
    def test_default_ports(self, url, port):
        """Test that each scheme family gets its default port."""
        assert parse_url(url).port == port

    @pytest.mark.parametrize(
        "url", ["http://example.test:8080", "ws://example.test:8080", "wss://example.test:8080"]
    )
    def test_explicit_port(self, url):
        """Test that an explicit port is used verbatim."""
        assert parse_url(url).port == 8080

    def test_path_and_query(self):
        """Test that the request target keeps path and query."""
        url = parse_url("ws://example.test/chat?room=1&x=2")

        assert url.path == "/chat"
        assert url.query == "room=1&x=2"
        assert url.request_target == "/chat?room=1&x=2"

    def test_empty_path(self):
        """Test that an empty path becomes '/'."""
        assert parse_url("wss://example.test").request_target == "/"

    def test_scheme_and_host_are_lowercased(self):
        """Test that scheme and host are normalized."""
        url = parse_url("WSS://Example.TEST")

        assert url.scheme == "wss"
        assert url.host == "example.test"
        assert url.is_secure

    @pytest.mark.parametrize("url", ["ftp://example.test", "gopher://example.test:70", "example.test"])
    def test_unsupported_scheme(self, url):
        """Test that unknown schemes are rejected."""
        with pytest.raises(UnsupportedProtocol):
            parse_url(url)

    def test_unsupported_scheme_reports_scheme(self):
        """Test that the rejected scheme is kept on the error."""
        with pytest.raises(UnsupportedProtocol) as excinfo:
            parse_url("ftp://example.test")

        assert excinfo.value.scheme == "ftp"
        assert isinstance(excinfo.value, ValueError)

    @pytest.mark.parametrize("url", ["ws://", "ws://example.test:notaport", "ws://example.test:99999", ""])
    def test_unparseable(self, url):
        """Test that a missing host or bad port fails to parse."""
        with pytest.raises(LocationParseError):
            parse_url(url)

    def test_idna_host(self):
        """Test that internationalized hosts are IDNA encoded."""
        url = parse_url("wss://bücher.example/")

        assert url.host == "xn--bcher-kva.example"

    def test_ipv6_host(self):
        """Test that IPv6 literals are unbracketed for dialing and bracketed for Host."""
        url = parse_url("ws://[::1]:9000/")

        assert url.host == "::1"
        assert url.netloc == "[::1]:9000"


class TestUrl:
    """Tests for the Url value."""

    def test_netloc_omits_default_port(self):
        """Test that the Host value drops the scheme's default port."""
        assert Url("wss", "example.test", 443).netloc == "example.test"
        assert Url("ws", "example.test", 8080).netloc == "example.test:8080"

    def test_str(self):
        """Test the string form."""
        assert str(Url("ws", "example.test", 8080, "/a", "b=1")) == "ws://example.test:8080/a?b=1"
