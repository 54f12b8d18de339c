"""
Shared fixtures: in-memory transports that behave like a tiny server.
"""

import asyncio

import pytest

from respclient.core.protocol import ReplyParser, INCOMPLETE
from respclient.core.value import BulkString, Error, SimpleString
from respclient.network.stream import BufferStream


def answer(command):
    """
    Reply a mock server gives to one decoded command.

    ECHO returns its argument, PING returns PONG, anything else is an
    unknown command error.
    """
    name = command[0].data.upper()
    if name == b'ECHO':
        return BulkString(command[1].data)
    if name == b'PING':
        return SimpleString('PONG')
    return Error(f"ERR unknown command '{name.decode()}'")


class EchoStream(BufferStream):
    """
    BufferStream that answers every flushed command like a server would.

    Commands are decoded from the flushed bytes (a command frame is an array
    of bulk strings) and the replies are queued for reading in order.
    """

    __slots__ = ('_server_parser', 'flushes')

    def __init__(self):
        super().__init__()
        self._server_parser = ReplyParser()
        self.flushes = 0

    def flush(self):
        super().flush()
        self.flushes += 1
        self._server_parser.feed(bytes(self.written))
        del self.written[:]
        while True:
            command = self._server_parser.get_reply()
            if command is INCOMPLETE:
                break
            self.feed(answer(command).encode())


@pytest.fixture
def echo_stream():
    return EchoStream()


class MockStreamReader:
    """asyncio.StreamReader stand-in returning data in fixed-size chunks."""

    def __init__(self, data=b'', chunk=3):
        self.data = bytearray(data)
        self.chunk = chunk

    def feed(self, data):
        self.data += data

    async def read(self, n):
        await asyncio.sleep(0)  # Yield to event loop
        size = min(n, self.chunk)
        part = bytes(self.data[:size])
        del self.data[:size]
        return part


class MockStreamWriter:
    """asyncio.StreamWriter stand-in; echo=True feeds replies to a reader."""

    def __init__(self, reader=None):
        self.buffer = bytearray()
        self.closed = False
        self.drains = 0
        self.reader = reader
        self._server_parser = ReplyParser()

    def write(self, data):
        self.buffer.extend(data)
        if self.reader is not None:
            self._server_parser.feed(data)
            while True:
                command = self._server_parser.get_reply()
                if command is INCOMPLETE:
                    break
                self.reader.feed(answer(command).encode())

    async def drain(self):
        self.drains += 1
        await asyncio.sleep(0)

    def close(self):
        self.closed = True

    async def wait_closed(self):
        await asyncio.sleep(0)


@pytest.fixture
def mock_streams():
    reader = MockStreamReader()
    writer = MockStreamWriter(reader)
    return reader, writer


@pytest.fixture
def answer_command():
    return answer
