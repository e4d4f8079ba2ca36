from __future__ import annotations

import queue
import re

import pytest

from wsconnect.handshake import accept_key


class FakeSocket:
    """
    In-memory socket double.

    Reads are served from a script of byte strings (``b""`` means end of
    stream, an exception instance is raised). ``shutdown`` ends a blocked
    read the way a real socket does.
    """

    def __init__(self, reads=(), eof=True) -> None:
        self._reads: queue.Queue = queue.Queue()
        for data in reads:
            self._reads.put(data)
        if eof:
            self._reads.put(b"")
        self.sent = bytearray()
        self.writes: list[bytes] = []
        self.close_calls = 0
        self.shutdown_calls = 0

    @property
    def closed(self) -> bool:
        return self.close_calls > 0

    def feed(self, data) -> None:
        self._reads.put(data)

    def recv_into(self, buffer) -> int:
        data = self._reads.get()
        if isinstance(data, BaseException):
            raise data
        buffer[: len(data)] = data
        return len(data)

    def sendall(self, data: bytes) -> None:
        if self.closed:
            raise OSError(9, "Bad file descriptor")
        self.writes.append(bytes(data))
        self.sent += data
        self.on_send()

    def on_send(self) -> None:
        pass

    def shutdown(self, how) -> None:
        self.shutdown_calls += 1
        self._reads.put(b"")

    def close(self) -> None:
        self.close_calls += 1


class FakeServerSocket(FakeSocket):
    """
    Socket double that answers the Upgrade request once it is complete.

    ``trailer`` is delivered in the same read as the response, the way a
    server may send its first frame right behind the headers.
    """

    def __init__(
        self,
        status: int = 101,
        reason: str = "Switching Protocols",
        accept: str | None = None,
        extra_headers: tuple[str, ...] = (),
        trailer: bytes = b"",
        response: bytes | None = None,
    ) -> None:
        super().__init__(eof=False)
        self.status = status
        self.reason = reason
        self.accept = accept
        self.extra_headers = extra_headers
        self.trailer = trailer
        self.response = response
        self.answered = False

    @property
    def request(self) -> bytes:
        return bytes(self.sent).partition(b"\r\n\r\n")[0]

    def request_headers(self) -> dict[str, str]:
        lines = self.request.decode("latin-1").split("\r\n")[1:]
        return dict(line.split(": ", 1) for line in lines)

    def on_send(self) -> None:
        if self.answered or b"\r\n\r\n" not in self.sent:
            return
        self.answered = True

        if self.response is not None:
            self.feed(self.response)
            return

        key = re.search(rb"Sec-WebSocket-Key: (\S+)", self.sent).group(1).decode()
        accept = self.accept if self.accept is not None else accept_key(key)
        lines = [
            f"HTTP/1.1 {self.status} {self.reason}",
            "Upgrade: websocket",
            "Connection: Upgrade",
            f"Sec-WebSocket-Accept: {accept}",
            *self.extra_headers,
        ]
        self.feed(("\r\n".join(lines) + "\r\n\r\n").encode("latin-1") + self.trailer)


class RecordingDialer:
    """Dialer double that records its calls and returns a prepared socket."""

    def __init__(self, sock) -> None:
        self.sock = sock
        self.calls: list[tuple] = []

    def __call__(self, url, timeout=None, ssl_context=None):
        self.calls.append((url, timeout, ssl_context))
        return self.sock


@pytest.fixture
def fake_socket_cls():
    return FakeSocket


@pytest.fixture
def server_socket_cls():
    return FakeServerSocket


@pytest.fixture
def dialer_cls():
    return RecordingDialer
