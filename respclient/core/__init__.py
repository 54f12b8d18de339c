"""
respclient Core Module

The RESP2 protocol engine, independent of any transport:

- constants: Protocol markers, default timeouts, decoder limits
- value: Reply value model and conversion helpers
- arguments: Argument marshaler
- command: Command framing
- protocol: Reply decoders
"""

# Export public API
from .constants import (
    # RESP2 Protocol markers
    SIMPLE_STRING,
    ERROR,
    INTEGER,
    BULK_STRING,
    ARRAY,
    # Protocol terminators
    CRLF,
    # Network defaults
    DEFAULT_PORT,
    DEFAULT_URL,
)

from .value import (
    Value,
    SimpleString,
    Error,
    Integer,
    BulkString,
    Array,
    NULL_BULK,
    NULL_ARRAY,
    raise_for_error,
    to_int,
    to_float,
    to_str,
    to_strings,
)

from .arguments import Arg, ArgKind, format_float, marshal
from .command import CommandBuilder, encode_command
from .protocol import ReplyReader, ReplyParser, INCOMPLETE, decode_reply

__all__ = [
    # Constants
    'SIMPLE_STRING',
    'ERROR',
    'INTEGER',
    'BULK_STRING',
    'ARRAY',
    'CRLF',
    'DEFAULT_PORT',
    'DEFAULT_URL',
    # Values
    'Value',
    'SimpleString',
    'Error',
    'Integer',
    'BulkString',
    'Array',
    'NULL_BULK',
    'NULL_ARRAY',
    'raise_for_error',
    'to_int',
    'to_float',
    'to_str',
    'to_strings',
    # Encoding
    'Arg',
    'ArgKind',
    'format_float',
    'marshal',
    'CommandBuilder',
    'encode_command',
    # Decoding
    'ReplyReader',
    'ReplyParser',
    'INCOMPLETE',
    'decode_reply',
]
