"""
respclient Transport Streams

The decoder and the command writer only see a byte stream with:

    write(data)      buffer outgoing bytes
    flush()          transmit everything buffered, in order
    read_line()      bytes up to and including the next LF
    read_exact(n)    exactly n bytes
    close()

SocketStream implements it over a connected socket, binding every read and
write operation to its own deadline. BufferStream implements it in memory.
"""

import socket
import time

from ..config import resolve
from ..core.constants import LF
from ..exceptions import (
    ProtocolError, TransportError, ConnectionClosedError, RespTimeoutError
)


class Stream:
    """Interface of the transport consumed by Connection."""

    __slots__ = ()

    def write(self, data):
        raise NotImplementedError

    def flush(self):
        raise NotImplementedError

    def read_line(self):
        raise NotImplementedError

    def read_exact(self, n):
        raise NotImplementedError

    def close(self):
        raise NotImplementedError


class SocketStream(Stream):
    """
    Buffered stream over a connected socket.

    Writes accumulate locally until flush(). Each read_line(), read_exact()
    and flush() call starts its own deadline; when it expires the call
    raises RespTimeoutError and whatever was partially received stays
    buffered. There is no resynchronization: treat the stream as broken.
    """

    __slots__ = (
        '_sock',            # socket.socket: Connected socket
        '_wbuf',            # bytearray: Outgoing bytes not yet flushed
        '_rbuf',            # bytearray: Received bytes not yet consumed
        'read_timeout',     # float or None: Seconds per read operation
        'write_timeout',    # float or None: Seconds per flush
        'buffer_size',      # int: recv() chunk size
        'max_line_size',    # int: Longest accepted line, CRLF included
        '_closed',          # bool: Stream closed flag
    )

    def __init__(self, sock, read_timeout=None, write_timeout=None,
                 buffer_size=None, config=None):
        """
        Args:
            sock: socket.socket - Already connected socket
            read_timeout: float - Seconds per read operation (config if None)
            write_timeout: float - Seconds per flush (config if None)
            buffer_size: int - recv() chunk size (config if None)
            config: Config - Source of defaults (global config if None)
        """
        config = resolve(config)
        self._sock = sock
        self._wbuf = bytearray()
        self._rbuf = bytearray()
        self.read_timeout = read_timeout if read_timeout is not None else config.get('read_timeout')
        self.write_timeout = write_timeout if write_timeout is not None else config.get('write_timeout')
        self.buffer_size = buffer_size if buffer_size is not None else config.get('buffer_size')
        # Marker, payload up to max_bulk_size, CRLF
        self.max_line_size = config.get('max_bulk_size') + 3
        self._closed = False

    def write(self, data):
        self._check_open()
        self._wbuf += data

    def flush(self):
        """
        Send all buffered bytes.

        The buffer is emptied before sending: on failure the unsent part of
        the batch is dropped, not retried.

        Raises:
            RespTimeoutError: If sending takes longer than write_timeout
            TransportError: On socket errors
        """
        self._check_open()
        if not self._wbuf:
            return
        data = bytes(self._wbuf)
        del self._wbuf[:]
        try:
            self._sock.settimeout(self.write_timeout)
            self._sock.sendall(data)
        except socket.timeout:
            raise RespTimeoutError(f'Write timed out after {self.write_timeout}s')
        except OSError as e:
            raise TransportError(f'Write failed: {e}') from e

    def read_line(self):
        self._check_open()
        deadline = self._deadline()
        start = 0
        while True:
            pos = self._rbuf.find(LF, start)
            if pos != -1:
                line = bytes(self._rbuf[:pos + 1])
                del self._rbuf[:pos + 1]
                return line
            start = len(self._rbuf)
            if start > self.max_line_size:
                raise ProtocolError(f'Reply line too long: over {self.max_line_size} bytes')
            self._fill(deadline, self.buffer_size)

    def read_exact(self, n):
        self._check_open()
        deadline = self._deadline()
        while len(self._rbuf) < n:
            self._fill(deadline, max(self.buffer_size, n - len(self._rbuf)))
        data = bytes(self._rbuf[:n])
        del self._rbuf[:n]
        return data

    def close(self):
        """Close the socket. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        del self._wbuf[:]
        del self._rbuf[:]
        try:
            self._sock.close()
        except OSError as e:
            raise TransportError(f'Close failed: {e}') from e

    @property
    def closed(self):
        return self._closed

    def _check_open(self):
        if self._closed:
            raise ConnectionClosedError('Stream is closed')

    def _deadline(self):
        if self.read_timeout is None:
            return None
        return time.monotonic() + self.read_timeout

    def _fill(self, deadline, size):
        """
        Receive one chunk into the read buffer.

        Raises:
            RespTimeoutError: If the deadline passed
            ConnectionClosedError: If the peer closed the connection
            TransportError: On socket errors
        """
        if deadline is None:
            timeout = None
        else:
            timeout = deadline - time.monotonic()
            if timeout <= 0:
                raise RespTimeoutError(f'Read timed out after {self.read_timeout}s')
        try:
            self._sock.settimeout(timeout)
            chunk = self._sock.recv(size)
        except socket.timeout:
            raise RespTimeoutError(f'Read timed out after {self.read_timeout}s')
        except OSError as e:
            raise TransportError(f'Read failed: {e}') from e
        if not chunk:
            raise ConnectionClosedError('Connection closed by peer')
        self._rbuf += chunk


class BufferStream(Stream):
    """
    In-memory stream.

    Incoming bytes are supplied up front or with feed(); flushed outgoing
    bytes are collected in written. Reading past the supplied data raises
    ConnectionClosedError, like a peer that hung up.

    Usage:
        stream = BufferStream(b':42\\r\\n')
        conn = Connection(stream)
        conn.send('INCR', 'counter')   # -> Integer(42)
        stream.written                 # -> b'*2\\r\\n$4\\r\\nINCR\\r\\n...'
    """

    __slots__ = ('_incoming', '_pending', 'written', '_closed')

    def __init__(self, incoming=b''):
        self._incoming = bytearray(incoming)
        self._pending = bytearray()
        self.written = bytearray()
        self._closed = False

    def feed(self, data):
        """Append bytes for subsequent reads."""
        self._incoming += data

    def write(self, data):
        self._check_open()
        self._pending += data

    def flush(self):
        self._check_open()
        self.written += self._pending
        del self._pending[:]

    @property
    def pending(self):
        """Bytes written but not flushed."""
        return bytes(self._pending)

    def read_line(self):
        self._check_open()
        pos = self._incoming.find(LF)
        if pos == -1:
            raise ConnectionClosedError('Connection closed by peer')
        line = bytes(self._incoming[:pos + 1])
        del self._incoming[:pos + 1]
        return line

    def read_exact(self, n):
        self._check_open()
        if len(self._incoming) < n:
            raise ConnectionClosedError('Connection closed by peer')
        data = bytes(self._incoming[:n])
        del self._incoming[:n]
        return data

    def close(self):
        self._closed = True

    @property
    def closed(self):
        return self._closed

    def _check_open(self):
        if self._closed:
            raise ConnectionClosedError('Stream is closed')
