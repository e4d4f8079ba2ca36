"""
Stream endpoints for wsconnect.

This module adapts one connected socket into two independent byte
endpoints: an :class:`OutboundSink` that writes to the socket and an
:class:`InboundSource` fed by a background read loop. Both endpoints share
a :class:`SocketHandle`; whichever side closes first closes the socket for
both.
"""

from __future__ import annotations

import logging
import queue
import socket
import threading
import time
import typing
from dataclasses import dataclass

from .exceptions import ProtocolError, ReadTimeoutError, StreamClosedError, StreamError

log = logging.getLogger(__name__)

# Marks the end of the inbound stream in the emission queue.
_EOF = object()

# How often a read loop waiting for queue space checks for a local close.
_SLOT_POLL_INTERVAL = 0.1


@dataclass
class StreamSettings:
    """Settings for the inbound read loop."""

    # Size of the buffer handed to each socket read
    read_size: int = 1024

    # Maximum number of unread chunks; 0 means unbounded
    max_queue_size: int = 0

    # Run the read loop as a daemon thread
    daemon: bool = True

    def __post_init__(self):
        if self.read_size <= 0:
            raise ValueError(f"read_size must be positive, got {self.read_size}")
        if self.max_queue_size < 0:
            raise ValueError(f"max_queue_size must not be negative, got {self.max_queue_size}")


class SocketHandle:
    """
    A socket shared by the two stream endpoints.

    ``close()`` may be called any number of times from either endpoint or
    thread; only the first call touches the socket.
    """

    def __init__(self, sock: socket.socket) -> None:
        self.sock = sock
        self._closed = False
        self._lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self._closed

    def send_all(self, data: bytes) -> None:
        self.sock.sendall(data)

    def recv_into(self, buffer: bytearray) -> int:
        return self.sock.recv_into(buffer)

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True

        # shutdown() wakes a read loop blocked in recv_into on another thread;
        # close() alone does not on every platform.
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # Already disconnected by the peer.
            pass
        self.sock.close()
        log.debug("Closed socket %r", self.sock)


class OutboundSink:
    """
    The writable side of a connection.

    Writes go straight to the socket and return once the transport has
    accepted every byte. Concurrent writes from several threads are not
    supported.
    """

    def __init__(self, handle: SocketHandle) -> None:
        self._handle = handle

    @property
    def closed(self) -> bool:
        return self._handle.closed

    def write(self, chunk: bytes | bytearray | memoryview | typing.Iterable[int]) -> None:
        """
        Write a chunk to the socket.

        :param chunk: The bytes to send
        :raises StreamClosedError: if the socket is closed, or fails while sending
        """
        if self._handle.closed:
            raise StreamClosedError("Cannot write to a closed stream")

        try:
            self._handle.send_all(bytes(chunk))
        except OSError as e:
            self._handle.close()
            raise StreamClosedError(f"Error writing to connection: {e}") from e

    def close(self) -> None:
        """Close the underlying socket."""
        self._handle.close()

    def abort(self, reason: object = None) -> None:
        """
        Abandon the stream and close the underlying socket.

        :param reason: Why the stream was aborted; only logged
        """
        log.error("Stream aborted: %s", reason)
        self._handle.close()


class InboundSource:
    """
    The readable side of a connection.

    Once started, a background thread reads the socket in ``read_size``
    pieces and queues every piece as one chunk, in read order. The thread
    stops on end-of-stream, on a read error (logged, never raised) or when
    the socket is closed locally; in every case the source is then marked
    exhausted and the socket closed.

    A single consumer reads the chunks with :meth:`read_chunk`,
    :meth:`read_until` or plain iteration. Bytes handed back with
    :meth:`unread` come out first on the next read.
    """

    def __init__(self, handle: SocketHandle, settings: StreamSettings | None = None) -> None:
        self._handle = handle
        self.settings = settings or StreamSettings()

        # The end marker never waits for space, so the queue itself is
        # unbounded and the bound is enforced with a semaphore instead.
        self._queue: queue.Queue[typing.Any] = queue.Queue()
        self._slots: threading.Semaphore | None = None
        if self.settings.max_queue_size:
            self._slots = threading.Semaphore(self.settings.max_queue_size)

        self._pending = bytearray()
        self._exhausted = False

        self._reader_thread: threading.Thread | None = None
        self._lock = threading.Lock()

    def start(self) -> None:
        """Start the background read loop."""
        with self._lock:
            if self._reader_thread is not None:
                return

            self._reader_thread = threading.Thread(
                target=self._read_loop,
                daemon=self.settings.daemon,
                name="wsconnect-reader",
            )
            self._reader_thread.start()

    def _wait_for_slot(self) -> bool:
        if self._slots is None:
            return True
        while not self._slots.acquire(timeout=_SLOT_POLL_INTERVAL):
            if self._handle.closed:
                return False
        return True

    def _read_loop(self) -> None:
        try:
            while True:
                buffer = bytearray(self.settings.read_size)
                bytes_read = self._handle.recv_into(buffer)
                if not bytes_read:
                    log.debug("Connection reached end of stream")
                    break

                if not self._wait_for_slot():
                    break
                self._queue.put(bytes(buffer[:bytes_read]))
        except OSError as e:
            if self._handle.closed:
                log.debug("Read loop stopped after local close: %s", e)
            else:
                log.error("Error reading from connection: %s", e, exc_info=True)
        finally:
            self._queue.put(_EOF)
            self._handle.close()

    @property
    def exhausted(self) -> bool:
        """True once the end of the stream was read and nothing is left."""
        return self._exhausted and not self._pending

    @property
    def running(self) -> bool:
        """Whether the background read loop is still active."""
        return self._reader_thread is not None and self._reader_thread.is_alive()

    def join(self, timeout: float | None = None) -> None:
        """Wait for the background read loop to finish."""
        if self._reader_thread is not None:
            self._reader_thread.join(timeout)

    def cancel(self) -> None:
        """Stop reading by closing the underlying socket."""
        self._handle.close()

    def unread(self, data: bytes) -> None:
        """Push ``data`` back so it is returned before anything else."""
        if data:
            self._pending[0:0] = data

    def read_chunk(self, timeout: float | None = None) -> bytes:
        """
        Return the next chunk, or ``b""`` once the stream is exhausted.

        :param timeout: Seconds to wait for a chunk; None waits forever
        :raises ReadTimeoutError: if nothing arrived within ``timeout``
        """
        if self._pending:
            data = bytes(self._pending)
            self._pending.clear()
            return data

        if self._exhausted:
            return b""

        try:
            item = self._queue.get(timeout=timeout)
        except queue.Empty:
            raise ReadTimeoutError(f"No data received within {timeout} seconds") from None

        if item is _EOF:
            self._exhausted = True
            return b""

        if self._slots is not None:
            self._slots.release()
        return item

    def read_until(
        self,
        delimiter: bytes,
        max_size: int = 65536,
        timeout: float | None = None,
    ) -> bytes:
        """
        Read up to and including ``delimiter``.

        Bytes received after the delimiter stay in the source for the next
        read. On any failure the bytes already read are pushed back, so a
        retry after a timeout sees them again.

        :param delimiter: The byte sequence to stop at
        :param max_size: Give up once this many bytes arrived without it
        :param timeout: Overall seconds to wait; None waits forever
        :raises StreamClosedError: if the stream ends first; ``partial``
            holds what was read
        :raises ProtocolError: if ``max_size`` is exceeded
        :raises ReadTimeoutError: if ``timeout`` elapses
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        buffer = bytearray()
        search_from = 0

        try:
            while True:
                index = buffer.find(delimiter, search_from)
                if index != -1:
                    end = index + len(delimiter)
                    self.unread(bytes(buffer[end:]))
                    return bytes(buffer[:end])

                if len(buffer) > max_size:
                    raise ProtocolError(f"Delimiter not found within {max_size} bytes")

                remaining = None if deadline is None else max(deadline - time.monotonic(), 0)
                chunk = self.read_chunk(timeout=remaining)
                if not chunk:
                    raise StreamClosedError(
                        "Stream ended before delimiter was received", partial=bytes(buffer)
                    )

                search_from = max(len(buffer) - len(delimiter) + 1, 0)
                buffer += chunk
        except StreamError:
            self.unread(bytes(buffer))
            raise

    def __iter__(self) -> typing.Iterator[bytes]:
        while True:
            chunk = self.read_chunk()
            if not chunk:
                return
            yield chunk


def open_streams(
    sock: socket.socket, settings: StreamSettings | None = None
) -> tuple[SocketHandle, InboundSource, OutboundSink]:
    """
    Wrap ``sock`` into a started inbound source and an outbound sink.

    The read loop starts immediately so the handshake response can be read
    through the same source as the data that follows it.
    """
    handle = SocketHandle(sock)
    source = InboundSource(handle, settings)
    sink = OutboundSink(handle)
    source.start()
    return handle, source, sink
