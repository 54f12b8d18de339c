"""
respclient asyncio Connection

Same contract as respclient.network.connection.Connection, awaited:

    reply = await conn.send('GET', 'key')

    conn.pipe('INCR', 'a')
    conn.pipe('INCR', 'b')
    await conn.flush()
    a = await conn.receive_one()
    b = await conn.receive_one()

pipe() only buffers and is therefore a plain method. Each awaited operation
gets its own deadline from the configured read/write timeouts.

One task at a time: concurrent receive_one() calls on the same connection
would split replies between tasks.
"""

import asyncio
import logging

from .connection import parse_url
from ..config import resolve
from ..core.command import CommandBuilder
from ..core.protocol import ReplyParser, INCOMPLETE
from ..exceptions import (
    ProtocolError, TransportError, ConnectionClosedError, RespTimeoutError
)

logger = logging.getLogger(__name__)


class AsyncConnection:
    """
    RESP client connection over asyncio StreamReader/StreamWriter.
    """

    __slots__ = (
        'reader',           # StreamReader: Async reader for socket
        'writer',           # StreamWriter: Async writer for socket
        'parser',           # ReplyParser: Incremental reply decoder
        'builder',          # CommandBuilder: Frames piped but not flushed
        'read_timeout',     # float or None: Seconds per receive_one
        'write_timeout',    # float or None: Seconds per flush
        'buffer_size',      # int: read() chunk size
        '_closed',          # bool: Connection closed flag
        '_broken',          # Exception or None: Fault that made the connection unusable
    )

    def __init__(self, reader, writer, config=None):
        """
        Args:
            reader: asyncio.StreamReader for reading from socket
            writer: asyncio.StreamWriter for writing to socket
            config: Config - Timeouts and decoder limits (global config if None)
        """
        config = resolve(config)
        self.reader = reader
        self.writer = writer
        self.parser = ReplyParser(config)
        self.builder = CommandBuilder()
        self.read_timeout = config.get('read_timeout')
        self.write_timeout = config.get('write_timeout')
        self.buffer_size = config.get('buffer_size')
        self._closed = False
        self._broken = None

    async def send(self, name, *args):
        """
        Round trip: pipe, flush, then read one reply.

        Returns:
            Value: The reply, which is an Error value for server errors
        """
        self.pipe(name, *args)
        await self.flush()
        return await self.receive_one()

    def pipe(self, name, *args):
        """Buffer one command frame."""
        self._check_usable()
        self.builder.add_command(name, args)

    async def flush(self):
        """
        Write all buffered frames and wait for the transport to drain.

        Raises:
            RespTimeoutError: If draining exceeds write_timeout
            TransportError: On socket errors
        """
        self._check_usable()
        if not len(self.builder):
            return
        count = self.builder.pending
        data = self.builder.get_commands()
        try:
            self.writer.write(data)
            await asyncio.wait_for(self.writer.drain(), timeout=self.write_timeout)
        except asyncio.TimeoutError:
            raise self._mark_broken(
                RespTimeoutError(f'Write timed out after {self.write_timeout}s'))
        except OSError as e:
            raise self._mark_broken(TransportError(f'Write failed: {e}')) from e
        logger.debug('Flushed %d command(s), %d bytes', count, len(data))

    async def receive_one(self):
        """
        Read exactly one reply.

        Returns:
            Value: Decoded reply

        Raises:
            ProtocolError: On malformed reply
            RespTimeoutError: If the reply is not complete within read_timeout
            ConnectionClosedError: If the peer closed the connection
        """
        self._check_usable()
        loop = asyncio.get_running_loop()
        deadline = None if self.read_timeout is None else loop.time() + self.read_timeout

        while True:
            try:
                reply = self.parser.get_reply()
            except ProtocolError as e:
                raise self._mark_broken(e)
            if reply is not INCOMPLETE:
                return reply

            timeout = None
            if deadline is not None:
                timeout = deadline - loop.time()
                if timeout <= 0:
                    raise self._mark_broken(
                        RespTimeoutError(f'Read timed out after {self.read_timeout}s'))
            try:
                data = await asyncio.wait_for(self.reader.read(self.buffer_size), timeout=timeout)
            except asyncio.TimeoutError:
                raise self._mark_broken(
                    RespTimeoutError(f'Read timed out after {self.read_timeout}s'))
            except OSError as e:
                raise self._mark_broken(TransportError(f'Read failed: {e}')) from e

            if not data:
                raise self._mark_broken(ConnectionClosedError('Connection closed by peer'))
            self.parser.feed(data)

    async def close(self):
        """Close the writer. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self.builder.reset()
        self.parser.reset()
        logger.debug('Closing connection')
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except OSError as e:
            # Peer already gone, nothing left to release
            logger.debug('Error while closing: %s', e)

    @property
    def closed(self):
        return self._closed

    @property
    def broken(self):
        return self._broken is not None

    def _check_usable(self):
        if self._closed:
            raise ConnectionClosedError('Connection is closed')
        if self._broken is not None:
            raise TransportError(f'Connection is unusable after: {self._broken}')

    def _mark_broken(self, error):
        self._broken = error
        logger.warning('Connection marked unusable: %s', error)
        return error

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_value, traceback):
        await self.close()


async def open_connection(url=None, config=None):
    """
    Dial and return an AsyncConnection.

    Args:
        url: str - tcp://host:port or unix:///path (config 'url' if None)
        config: Config - Timeouts and limits (global config if None)

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
            opening = asyncio.open_connection(*address)
        else:
            opening = asyncio.open_unix_connection(address)
        reader, writer = await asyncio.wait_for(opening, timeout=timeout)
    except asyncio.TimeoutError:
        raise RespTimeoutError(f'Connect to {url} timed out after {timeout}s')
    except OSError as e:
        raise TransportError(f'Could not connect to {url}: {e}') from e
    return AsyncConnection(reader, writer, config)
