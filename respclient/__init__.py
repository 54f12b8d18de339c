"""
respclient - A small RESP2 (Redis Serialization Protocol) client.

Encodes commands, decodes replies and supports pipelining over any byte
stream. Connection pooling, authentication and per-command helpers are left
to the caller.

Usage:
    from respclient import dial

    with dial('tcp://127.0.0.1:6379') as conn:
        conn.send('SET', 'greeting', 'hello')     # SimpleString('OK')
        conn.send('GET', 'greeting')              # BulkString(b'hello')
        conn.send('GET', 'missing')               # BulkString(None)
"""

from .exceptions import (
    RespError,
    ProtocolError,
    TransportError,
    ConnectionClosedError,
    RespTimeoutError,
    ServerError,
)
# core first: core.protocol imports config, which reads core.constants
from .core import (
    Value,
    SimpleString,
    Error,
    Integer,
    BulkString,
    Array,
    NULL_BULK,
    NULL_ARRAY,
    Arg,
    encode_command,
    decode_reply,
    raise_for_error,
    to_int,
    to_float,
    to_str,
    to_strings,
)
from .config import Config, get_config, init_config
from .network import (
    BufferStream,
    SocketStream,
    Connection,
    dial,
    AsyncConnection,
    open_connection,
)

__version__ = '1.0.0'
__all__ = [
    '__version__',
    'RespError',
    'ProtocolError',
    'TransportError',
    'ConnectionClosedError',
    'RespTimeoutError',
    'ServerError',
    'Config',
    'get_config',
    'init_config',
    'Value',
    'SimpleString',
    'Error',
    'Integer',
    'BulkString',
    'Array',
    'NULL_BULK',
    'NULL_ARRAY',
    'Arg',
    'encode_command',
    'decode_reply',
    'raise_for_error',
    'to_int',
    'to_float',
    'to_str',
    'to_strings',
    'BufferStream',
    'SocketStream',
    'Connection',
    'dial',
    'AsyncConnection',
    'open_connection',
]
