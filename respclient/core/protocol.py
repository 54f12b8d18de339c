"""
respclient RESP2 Reply Decoder

Two decoders with identical rules:

- ReplyReader: blocking, recursive. Pulls exactly one reply per read_reply()
  call from a stream exposing read_line() and read_exact(n).
- ReplyParser: sans-I/O. Bytes are fed in as they arrive; get_reply()
  returns the next complete reply or INCOMPLETE, and resumes from the
  last complete element on the next call.

Decoding rules, by leading type byte:

    +  SimpleString(text)
    -  Error(text)                 returned, never raised
    :  Integer(n)
    $  BulkString(bytes)           $-1 -> BulkString(None)
    *  Array([child, ...])         *-1 -> Array(None), children decoded recursively

Anything else, a malformed number, an integer outside the signed 64-bit
range, a header line longer than max_bulk_size, or a declared size over the
limits raises ProtocolError. The stream is unusable afterwards.
"""

import re

from .constants import (
    SIMPLE_STRING, ERROR, INTEGER, BULK_STRING, ARRAY, CRLF, LF, NULL_LENGTH,
    INT64_MIN, INT64_MAX
)
from .value import SimpleString, Error, Integer, BulkString, Array, NULL_BULK, NULL_ARRAY
from ..config import resolve
from ..exceptions import ProtocolError

_NUMBER = re.compile(rb'-?[0-9]+')

# Sign plus the 19 digits of a signed 64-bit integer
_MAX_NUMBER_LEN = 20


class _Incomplete(Exception):
    """Internal signal: the parser buffer ends in the middle of a reply."""


class _Marker:
    __slots__ = ()

    def __repr__(self):
        return 'INCOMPLETE'

    def __bool__(self):
        return False


# Returned by ReplyParser.get_reply() when more data is needed
INCOMPLETE = _Marker()


def _split_line(line):
    """
    Split a header line into type byte and payload.

    Args:
        line: bytes - Line including its CRLF terminator

    Returns:
        tuple: (marker: int, payload: bytes)

    Raises:
        ProtocolError: If the line is empty or not CRLF terminated
    """
    if line == CRLF:
        raise ProtocolError('Empty reply line')
    if not line.endswith(CRLF):
        raise ProtocolError(f'Reply line not terminated by CRLF: {bytes(line)!r}')
    return line[0], bytes(line[1:-2])


def _parse_number(payload, what):
    if len(payload) > _MAX_NUMBER_LEN or not _NUMBER.fullmatch(payload):
        raise ProtocolError(f'Invalid {what}: {payload!r}')
    return int(payload)


def _parse_length(payload, what, limit):
    """
    Parse a declared bulk length or array count.

    Raises:
        ProtocolError: If malformed, negative other than -1, or over limit
    """
    length = _parse_number(payload, what)
    if length < NULL_LENGTH:
        raise ProtocolError(f'Invalid {what}: {length}')
    if length > limit:
        raise ProtocolError(f'{what.capitalize()} too large: {length} > {limit}')
    return length


def _decode_text(payload):
    return payload.decode('utf-8', errors='replace')


def _scalar(marker, payload):
    """Build the value for a single-line reply, or None for $ and *."""
    if marker == SIMPLE_STRING:
        return SimpleString(_decode_text(payload))
    if marker == ERROR:
        return Error(_decode_text(payload))
    if marker == INTEGER:
        n = _parse_number(payload, 'integer')
        if not INT64_MIN <= n <= INT64_MAX:
            raise ProtocolError(f'Integer out of 64-bit range: {n}')
        return Integer(n)
    if marker == BULK_STRING or marker == ARRAY:
        return None
    raise ProtocolError(f'Unknown reply type byte: {bytes((marker,))!r}')


class _Limits:
    __slots__ = ('max_bulk_size', 'max_array_size', 'max_depth')

    def __init__(self, config, max_bulk_size, max_array_size, max_depth):
        config = resolve(config)
        self.max_bulk_size = max_bulk_size if max_bulk_size is not None else config.get('max_bulk_size')
        self.max_array_size = max_array_size if max_array_size is not None else config.get('max_array_size')
        self.max_depth = max_depth if max_depth is not None else config.get('max_depth')

    def check_depth(self, depth):
        if depth >= self.max_depth:
            raise ProtocolError(f'Array nesting too deep: {depth + 1} > {self.max_depth}')

    def check_line(self, length):
        # Marker, payload up to max_bulk_size, CRLF
        if length > self.max_bulk_size + 3:
            raise ProtocolError(f'Reply line too long: {length} bytes')


class ReplyReader:
    """
    Blocking recursive decoder over a stream.

    Each read_reply() call consumes exactly one complete reply, including all
    nested children, before returning. The stream must not be read by anyone
    else while a call is in progress.

    Usage:
        reader = ReplyReader(stream)
        value = reader.read_reply()
    """

    __slots__ = ('_stream', '_limits')

    def __init__(self, stream, config=None, max_bulk_size=None,
                 max_array_size=None, max_depth=None):
        """
        Args:
            stream: Object with read_line() and read_exact(n)
            config: Config - Source of default limits (global config if None)
            max_bulk_size: int - Override for the bulk length cap
            max_array_size: int - Override for the array count cap
            max_depth: int - Override for the nesting cap
        """
        self._stream = stream
        self._limits = _Limits(config, max_bulk_size, max_array_size, max_depth)

    def read_reply(self):
        """
        Read one reply.

        Returns:
            Value: Decoded reply

        Raises:
            ProtocolError: On malformed input
            TransportError: Propagated from the stream
        """
        return self._read(0)

    def _read(self, depth):
        line = self._stream.read_line()
        self._limits.check_line(len(line))
        marker, payload = _split_line(line)
        value = _scalar(marker, payload)
        if value is not None:
            return value

        limits = self._limits
        if marker == BULK_STRING:
            length = _parse_length(payload, 'bulk length', limits.max_bulk_size)
            if length == NULL_LENGTH:
                return NULL_BULK
            data = self._stream.read_exact(length + 2)
            if data[length:] != CRLF:
                raise ProtocolError('Bulk string not terminated by CRLF')
            return BulkString(data[:length])

        count = _parse_length(payload, 'array length', limits.max_array_size)
        if count == NULL_LENGTH:
            return NULL_ARRAY
        limits.check_depth(depth)
        return Array([self._read(depth + 1) for _ in range(count)])


class ReplyParser:
    """
    Incremental RESP2 reply parser.

    Bytes are appended with feed(); get_reply() decodes the next complete
    reply. Progress through a partially received reply is kept between
    calls: finished elements sit in a stack of open arrays, a bulk string
    header is remembered until its body arrives, and the search for the
    next line resumes where the last one stopped. Each received byte is
    decoded once.

    Usage:
        parser = ReplyParser()
        parser.feed(chunk)
        reply = parser.get_reply()
        if reply is not INCOMPLETE:
            handle(reply)
    """

    __slots__ = (
        '_buffer',      # bytearray: Received bytes
        '_offset',      # int: Start of the first undecoded byte
        '_scan',        # int: Position where the search for LF resumes
        '_bulk_len',    # int or None: Declared length of a pending bulk body
        '_stack',       # list: (items, count) of arrays still being filled
        '_limits',      # _Limits: Size and depth caps
    )

    def __init__(self, config=None, max_bulk_size=None, max_array_size=None,
                 max_depth=None):
        self._limits = _Limits(config, max_bulk_size, max_array_size, max_depth)
        self.reset()

    def feed(self, data):
        """
        Append received bytes.

        Args:
            data: bytes, bytearray, or memoryview
        """
        if not data:
            return
        # Drop decoded bytes before growing
        if self._offset:
            del self._buffer[:self._offset]
            self._scan -= self._offset
            self._offset = 0
        self._buffer += data

    def get_reply(self):
        """
        Decode the next complete reply.

        Returns:
            Value: Next reply, or INCOMPLETE when more data is needed

        Raises:
            ProtocolError: On malformed input
        """
        stack = self._stack
        while True:
            value = self._step()
            if value is INCOMPLETE:
                return INCOMPLETE
            if value is None:
                continue

            # Attach to the innermost open array, closing every array it fills
            while stack:
                items, count = stack[-1]
                items.append(value)
                if len(items) < count:
                    break
                stack.pop()
                value = Array(items)
            else:
                return value

    @property
    def buffered(self) -> int:
        """Number of received bytes not yet decoded."""
        return len(self._buffer) - self._offset

    def reset(self):
        """Clear the buffer and any partial reply. Call after a connection error."""
        self._buffer = bytearray()
        self._offset = 0
        self._scan = 0
        self._bulk_len = None
        self._stack = []

    def _consume(self, pos):
        self._offset = pos
        self._scan = pos

    def _step(self):
        """
        Decode one element at the current offset.

        Returns:
            Value: A finished element (scalar, null, empty array, bulk string)
            None: A header was consumed (array opened, bulk length read)
            INCOMPLETE: More data is needed
        """
        buf = self._buffer
        limits = self._limits

        if self._bulk_len is not None:
            start = self._offset
            end = start + self._bulk_len
            if end + 2 > len(buf):
                return INCOMPLETE
            if buf[end:end + 2] != CRLF:
                raise ProtocolError('Bulk string not terminated by CRLF')
            self._bulk_len = None
            self._consume(end + 2)
            return BulkString(buf[start:end])

        lf = buf.find(LF, self._scan)
        line_end = len(buf) if lf == -1 else lf + 1
        limits.check_line(line_end - self._offset)
        if lf == -1:
            self._scan = line_end
            return INCOMPLETE

        marker, payload = _split_line(buf[self._offset:line_end])
        self._consume(line_end)

        value = _scalar(marker, payload)
        if value is not None:
            return value

        if marker == BULK_STRING:
            length = _parse_length(payload, 'bulk length', limits.max_bulk_size)
            if length == NULL_LENGTH:
                return NULL_BULK
            self._bulk_len = length
            return None

        count = _parse_length(payload, 'array length', limits.max_array_size)
        if count == NULL_LENGTH:
            return NULL_ARRAY
        limits.check_depth(len(self._stack))
        if count == 0:
            return Array([])
        self._stack.append(([], count))
        return None


def decode_reply(data, config=None):
    """
    Decode exactly one reply from a complete byte string.

    Args:
        data: bytes - Wire bytes of one reply
        config: Config - Source of decoder limits

    Returns:
        Value: Decoded reply

    Raises:
        ProtocolError: If data is malformed, truncated, or has trailing bytes
    """
    parser = ReplyParser(config)
    parser.feed(data)
    value = parser.get_reply()
    if value is INCOMPLETE:
        raise ProtocolError('Incomplete reply')
    if parser.buffered:
        raise ProtocolError(f'Trailing bytes after reply: {parser.buffered}')
    return value
