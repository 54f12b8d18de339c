"""respclient network layer: transport streams and connections."""

from .stream import Stream, SocketStream, BufferStream
from .connection import Connection, dial, parse_url
from .aio import AsyncConnection, open_connection

__all__ = [
    'Stream',
    'SocketStream',
    'BufferStream',
    'Connection',
    'dial',
    'parse_url',
    'AsyncConnection',
    'open_connection',
]
