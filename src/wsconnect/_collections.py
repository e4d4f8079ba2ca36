"""
Collections for wsconnect.

This module provides specialized container datatypes.
"""

from __future__ import annotations

import re
import typing
from collections.abc import Mapping, MutableMapping

from .exceptions import InvalidHeader

# RFC 9110 section 5.1: a field name is a token
_TOKEN_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+\Z")
_ILLEGAL_VALUE_RE = re.compile(r"[\r\n\x00]")


class HTTPHeaderDict(MutableMapping[str, str]):
    """
    A case-insensitive mapping of HTTP headers.

    Lookups ignore case while the case of the most recent write is kept for
    serialization. Assigning an existing name replaces its value, so a
    header set built from a caller mapping is unique by name with the last
    write winning.

    Assigned names must be HTTP tokens and values must not contain CR, LF
    or NUL, so nothing set here can split the serialized request.
    """

    def __init__(self, headers=None, **kwargs):
        """
        Initialize a new HTTPHeaderDict.

        :param headers: Initial headers to add
        :param kwargs: Additional headers to add
        """
        self._container: dict[str, tuple[str, str]] = {}
        if headers is not None:
            if isinstance(headers, HTTPHeaderDict):
                self._container = headers._container.copy()
            else:
                self.extend(headers)
        if kwargs:
            self.extend(kwargs)

    def __getitem__(self, key):
        return self._container[key.lower()][1]

    def __setitem__(self, key, value):
        if isinstance(key, bytes):
            key = key.decode("ascii")
        if not isinstance(value, str):
            raise TypeError(f"Header value for {key!r} must be str, not {type(value).__name__}")
        if not _TOKEN_RE.match(key):
            raise InvalidHeader(f"Illegal header name: {key!r}")
        if _ILLEGAL_VALUE_RE.search(value):
            raise InvalidHeader(f"Illegal header value for {key}: {value!r}")
        self._container[key.lower()] = (key, value)

    def __delitem__(self, key):
        del self._container[key.lower()]

    def __iter__(self):
        return (key for key, value in self._container.values())

    def __len__(self):
        return len(self._container)

    def __contains__(self, key):
        if not isinstance(key, str):
            return False
        return key.lower() in self._container

    def __eq__(self, other):
        if not isinstance(other, Mapping):
            return NotImplemented
        if isinstance(other, HTTPHeaderDict):
            other_items = dict(other.lower_items())
        else:
            other_items = {
                (key.decode("ascii") if isinstance(key, bytes) else key).lower(): value
                for key, value in other.items()
            }
        return dict(self.lower_items()) == other_items

    def __repr__(self):
        return f"{type(self).__name__}({dict(self.items())})"

    def copy(self):
        """Return a copy of this HTTPHeaderDict."""
        return HTTPHeaderDict(self)

    def add(self, key, value):
        """
        Add a header, combining with an existing value of the same name.

        Used when reading a response, where a field may legitimately appear
        more than once.

        :param key: The header name
        :param value: The header value
        """
        key_lower = key.lower()
        if key_lower in self._container:
            old_key, old_value = self._container[key_lower]
            self._container[key_lower] = (old_key, old_value + ", " + value)
        else:
            self._container[key_lower] = (key, value)

    def extend(self, headers=None, **kwargs):
        """
        Set headers from another mapping or an iterable of pairs.

        Later values replace earlier ones with the same name.
        """
        if headers is not None:
            if isinstance(headers, Mapping):
                pairs: typing.Iterable[tuple[str, str]] = headers.items()
            else:
                pairs = headers
            for key, value in pairs:
                self[key] = value
        for key, value in kwargs.items():
            self[key] = value

    def getlist(self, key):
        """
        Get the comma separated values of a header as a list.

        :param key: The header name
        :return: List of values for the header
        """
        key_lower = key.lower()
        if key_lower not in self._container:
            return []
        return [part.strip() for part in self._container[key_lower][1].split(",")]

    def lower_items(self):
        """Get all headers as lowercase key-value pairs."""
        return ((key.lower(), value) for key, value in self.items())

    def items(self):
        """Get all headers as key-value pairs, in insertion order."""
        return [(key, value) for key, value in self._container.values()]
