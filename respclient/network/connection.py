"""
respclient Connection

A Connection binds the command writer and the reply decoder to one stream.

    send(name, *args)    pipe + flush + one receive_one, returns the reply
    pipe(name, *args)    buffer one command frame
    flush()              transmit buffered frames in call order
    receive_one()        decode exactly one reply
    close()

Pipelining: every pipe() issued before a flush() must be matched by exactly
one later receive_one(). Replies come back in the order the commands were
sent; RESP carries no request ids, so keeping the two counts equal is up to
the caller.

A connection has exactly one user at a time. Sharing one between threads
requires an external lock around every call; otherwise use one connection
per thread.

Once a ProtocolError or TransportError has been raised the connection is
marked broken and every further operation except close() fails.
"""

import logging
import socket
from urllib.parse import urlsplit, unquote

from .stream import SocketStream
from ..config import resolve
from ..core.command import encode_command
from ..core.constants import DEFAULT_HOST, DEFAULT_PORT
from ..core.protocol import ReplyReader
from ..exceptions import (
    ProtocolError, TransportError, ConnectionClosedError, RespTimeoutError
)

logger = logging.getLogger(__name__)


class Connection:
    """
    Synchronous RESP client connection over a Stream.

    Usage:
        conn = Connection(stream)
        conn.send('SET', 'key', 'value')    # SimpleString('OK')

        conn.pipe('INCR', 'a')
        conn.pipe('INCR', 'b')
        conn.flush()
        first = conn.receive_one()
        second = conn.receive_one()
    """

    __slots__ = (
        'stream',       # Stream: Transport
        'reader',       # ReplyReader: Decoder bound to the stream
        '_closed',      # bool: close() was called
        '_broken',      # Exception or None: Fault that made the connection unusable
    )

    def __init__(self, stream, config=None):
        """
        Args:
            stream: Stream - Transport with write/flush/read_line/read_exact/close
            config: Config - Source of decoder limits (global config if None)
        """
        self.stream = stream
        self.reader = ReplyReader(stream, config)
        self._closed = False
        self._broken = None

    def send(self, name, *args):
        """
        Synchronous round trip: pipe, flush, then read one reply.

        Args:
            name: str or bytes - Command name
            *args: Any - Command arguments

        Returns:
            Value: The reply, which is an Error value for server errors

        Raises:
            ProtocolError: On malformed reply
            TransportError: On I/O failure or timeout
        """
        self.pipe(name, *args)
        self.flush()
        return self.receive_one()

    def pipe(self, name, *args):
        """
        Buffer one command frame without sending it.

        The frame is fully encoded before anything reaches the stream.
        """
        self._check_usable()
        frame = encode_command(name, *args)
        self._call(self.stream.write, frame)

    def flush(self):
        """Transmit all buffered frames in the order they were piped."""
        self._check_usable()
        self._call(self.stream.flush)

    def receive_one(self):
        """
        Decode exactly one reply, blocking until it is complete.

        Returns:
            Value: Decoded reply
        """
        self._check_usable()
        return self._call(self.reader.read_reply)

    def close(self):
        """Close the underlying stream. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        logger.debug('Closing connection')
        self.stream.close()

    @property
    def closed(self):
        return self._closed

    @property
    def broken(self):
        """True after a protocol or transport fault."""
        return self._broken is not None

    def _check_usable(self):
        if self._closed:
            raise ConnectionClosedError('Connection is closed')
        if self._broken is not None:
            raise TransportError(f'Connection is unusable after: {self._broken}')

    def _call(self, func, *args):
        try:
            return func(*args)
        except (ProtocolError, TransportError) as e:
            self._mark_broken(e)
            raise
        except OSError as e:
            self._mark_broken(e)
            raise TransportError(str(e)) from e

    def _mark_broken(self, error):
        self._broken = error
        logger.warning('Connection marked unusable: %s', error)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def __repr__(self):
        state = 'closed' if self._closed else 'broken' if self._broken else 'open'
        return f'<Connection {state} stream={self.stream!r}>'


def parse_url(url):
    """
    Split a connection URL into its address.

    Supported forms:
        tcp://host:port    (redis:// is accepted as an alias)
        tcp://host         port defaults to 6379
        unix:///path/to/socket

    Args:
        url: str - Connection URL

    Returns:
        tuple: ('tcp', (host, port)) or ('unix', path)

    Raises:
        ValueError: If the scheme is not supported
    """
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    if scheme in ('tcp', 'redis'):
        host = parts.hostname or DEFAULT_HOST
        port = parts.port or DEFAULT_PORT
        return 'tcp', (host, port)
    if scheme == 'unix':
        path = unquote(parts.path)
        if not path:
            raise ValueError(f'Missing socket path in {url!r}')
        return 'unix', path
    raise ValueError(f'Unsupported URL scheme {parts.scheme!r} in {url!r}')


def dial(url=None, config=None):
    """
    Open a socket and wrap it in a Connection.

    Args:
        url: str - Connection URL (config 'url' if None)
        config: Config - Timeouts and limits (global config if None)

    Returns:
        Connection: Ready to use

    Raises:
        ValueError: If the URL is not supported
        TransportError: If the connection cannot be established
    """
    config = resolve(config)
    url = url or config.get('url')
    kind, address = parse_url(url)
    timeout = config.get('connect_timeout')

    logger.debug('Dialing %s', url)
    try:
        if kind == 'tcp':
            sock = socket.create_connection(address, timeout=timeout)
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        else:
            sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
            try:
                sock.settimeout(timeout)
                sock.connect(address)
            except OSError:
                sock.close()
                raise
    except socket.timeout:
        raise RespTimeoutError(f'Connect to {url} timed out after {timeout}s')
    except OSError as e:
        raise TransportError(f'Could not connect to {url}: {e}') from e

    return Connection(SocketStream(sock, config=config), config)
