"""
respclient Value Model

Decoded RESP replies as a closed set of value classes:

    SimpleString(text)     +OK\\r\\n
    Error(text)            -ERR message\\r\\n
    Integer(value)         :42\\r\\n
    BulkString(data)       $5\\r\\nhello\\r\\n   or   $-1\\r\\n (data is None)
    Array(items)           *2\\r\\n...          or   *-1\\r\\n (items is None)

A null bulk string and an empty bulk string are different values, and so are
a null array and an empty array. Server errors are plain values: the decoder
never raises them.

Each variant can encode itself back to wire bytes (encode()), which is what
a server would send. Conversion helpers at the bottom of the module turn
values into host types.
"""

from .constants import CRLF
from ..exceptions import ProtocolError, ServerError, error_code

# Pre-allocated wire forms
RESP_NULL = b'$-1\r\n'          # Null bulk string
RESP_NULL_ARRAY = b'*-1\r\n'    # Null array
RESP_EMPTY_ARRAY = b'*0\r\n'    # Empty array


class Value:
    """
    Base class of all decoded replies.

    Subclasses compare equal when they are the same variant carrying an
    equal payload.
    """

    __slots__ = ()

    @property
    def is_null(self):
        """True for the null bulk string and the null array."""
        return False

    @property
    def is_error(self):
        return False

    def _payload(self):
        raise NotImplementedError

    def encode(self) -> bytes:
        """Return the RESP2 wire encoding of this value."""
        raise NotImplementedError

    def to_python(self):
        """Unwrap into plain Python objects (see subclasses)."""
        raise NotImplementedError

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return self._payload() == other._payload()

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self):
        payload = self._payload()
        if isinstance(payload, list):
            payload = tuple(payload)
        return hash((type(self).__name__, payload))

    def __repr__(self):
        return f'{type(self).__name__}({self._payload()!r})'


class SimpleString(Value):
    """Short status reply, e.g. OK or PONG."""

    __slots__ = ('text',)

    def __init__(self, text: str):
        self.text = text

    def _payload(self):
        return self.text

    def encode(self) -> bytes:
        return b'+' + self.text.encode('utf-8') + CRLF

    def to_python(self):
        return self.text


class Error(Value):
    """
    Error reply sent by the server.

    Carried as data. Use to_exception() or raise_for_error() to turn it
    into a ServerError.
    """

    __slots__ = ('text',)

    def __init__(self, text: str):
        self.text = text

    @property
    def is_error(self):
        return True

    @property
    def prefix(self):
        """
        Error code: the first word of the text when it is upper case.

        Returns:
            str: e.g. 'ERR', 'WRONGTYPE', or '' when the text has no code
        """
        return error_code(self.text)

    def to_exception(self) -> ServerError:
        return ServerError(self.text)

    def _payload(self):
        return self.text

    def encode(self) -> bytes:
        return b'-' + self.text.encode('utf-8') + CRLF

    def to_python(self):
        return self.to_exception()


class Integer(Value):
    """Signed 64-bit integer reply."""

    __slots__ = ('value',)

    def __init__(self, value: int):
        self.value = value

    def _payload(self):
        return self.value

    def encode(self) -> bytes:
        return b':' + str(self.value).encode('ascii') + CRLF

    def to_python(self):
        return self.value


class BulkString(Value):
    """
    Length-prefixed binary string reply.

    data is None for the null bulk string ($-1), b'' for the empty one ($0).
    """

    __slots__ = ('data',)

    def __init__(self, data):
        self.data = data if data is None else bytes(data)

    @property
    def is_null(self):
        return self.data is None

    def _payload(self):
        return self.data

    def encode(self) -> bytes:
        if self.data is None:
            return RESP_NULL
        return b'$' + str(len(self.data)).encode('ascii') + CRLF + self.data + CRLF

    def to_python(self):
        return self.data


class Array(Value):
    """
    Ordered, possibly nested reply.

    items is None for the null array (*-1), [] for the empty one (*0).
    Elements can be any Value, including Error and other arrays.
    """

    __slots__ = ('items',)

    def __init__(self, items):
        self.items = items if items is None else list(items)

    @property
    def is_null(self):
        return self.items is None

    def _payload(self):
        return self.items

    def encode(self) -> bytes:
        if self.items is None:
            return RESP_NULL_ARRAY
        if not self.items:
            return RESP_EMPTY_ARRAY
        result = bytearray(b'*')
        result += str(len(self.items)).encode('ascii')
        result += CRLF
        for item in self.items:
            result += item.encode()
        return bytes(result)

    def to_python(self):
        if self.items is None:
            return None
        return [item.to_python() for item in self.items]

    def __len__(self):
        return 0 if self.items is None else len(self.items)

    def __iter__(self):
        return iter(self.items or ())

    def __getitem__(self, index):
        if self.items is None:
            raise IndexError('null array')
        return self.items[index]


# Shared instances for the two null replies
NULL_BULK = BulkString(None)
NULL_ARRAY = Array(None)


# =============================================================================
# Conversion Helpers
# =============================================================================

def raise_for_error(value):
    """
    Raise ServerError if value is an Error reply, otherwise return it.

    Args:
        value: Value - Decoded reply

    Returns:
        Value: The same value when it is not an error

    Raises:
        ServerError: If value is an Error
    """
    if isinstance(value, Error):
        raise value.to_exception()
    return value


def _text_of(value):
    if isinstance(value, BulkString):
        if value.data is None:
            raise ValueError('null bulk string')
        return value.data.decode('ascii')
    if isinstance(value, SimpleString):
        return value.text
    raise ValueError(f'{type(value).__name__} reply is not numeric text')


def to_int(value) -> int:
    """
    Convert a reply to int.

    Integer replies are returned directly; bulk and simple strings are
    parsed as base-10.

    Raises:
        ValueError: If the reply holds no integer
    """
    if isinstance(value, Integer):
        return value.value
    return int(_text_of(value), 10)


def to_float(value) -> float:
    """
    Convert a reply to float (e.g. INCRBYFLOAT, ZSCORE replies).

    Raises:
        ValueError: If the reply holds no number
    """
    if isinstance(value, Integer):
        return float(value.value)
    return float(_text_of(value))


def to_str(value, encoding='utf-8'):
    """
    Convert a string reply to str.

    Args:
        value: Value - BulkString or SimpleString
        encoding: str - Encoding of bulk string bytes

    Returns:
        str, or None for the null bulk string

    Raises:
        ProtocolError: If the reply is not a string variant
    """
    if isinstance(value, BulkString):
        if value.data is None:
            return None
        return value.data.decode(encoding)
    if isinstance(value, SimpleString):
        return value.text
    raise ProtocolError(f'{type(value).__name__} reply is not a string')


def to_strings(value, encoding='utf-8'):
    """
    Convert an array reply to a list of str.

    Elements that are not strings (or are null) become None.

    Returns:
        list, or None for the null array

    Raises:
        ProtocolError: If the reply is not an Array
    """
    if not isinstance(value, Array):
        raise ProtocolError(f'{type(value).__name__} reply is not an array')
    if value.items is None:
        return None
    result = []
    for item in value.items:
        if isinstance(item, (BulkString, SimpleString)):
            result.append(to_str(item, encoding))
        else:
            result.append(None)
    return result
