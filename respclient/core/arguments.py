"""
respclient Argument Marshaler

Turns one command argument into its RESP bulk string: $<length>\\r\\n<bytes>\\r\\n

Arguments are classified once into an Arg, a closed tagged variant with one
kind per supported input, and each kind has exactly one encoder:

    TEXT      str                      UTF-8 bytes
    BYTES     bytes/bytearray/memoryview  verbatim
    INTEGER   int                      base-10 digits, '-' for negatives
    FLOAT     float                    shortest round-trip text, general format
    BOOLEAN   bool                     b'1' / b'0'
    NIL       None                     zero-length bulk string
    OTHER     anything else            str(value), UTF-8

Encoding never fails: unknown kinds use their default text conversion.
"""

import enum
import math
from decimal import Decimal

from .constants import CRLF


class ArgKind(enum.Enum):
    TEXT = 'text'
    BYTES = 'bytes'
    INTEGER = 'integer'
    FLOAT = 'float'
    BOOLEAN = 'boolean'
    NIL = 'nil'
    OTHER = 'other'


def format_float(f: float) -> str:
    """
    Format a float as the shortest text that parses back to the same value.

    Uses plain notation when the decimal exponent is in [-4, 6), scientific
    notation with a signed two-digit-minimum exponent otherwise:

        1.0     -> '1'
        0.1     -> '0.1'
        123456. -> '123456'
        1e6     -> '1e+06'
        1e-05   -> '1e-05'

    Infinities and NaN become '+inf', '-inf' and 'nan', which Redis accepts
    for float arguments.

    Args:
        f: float - Value to format

    Returns:
        str: Decimal representation
    """
    if math.isnan(f):
        return 'nan'
    if math.isinf(f):
        return '+inf' if f > 0 else '-inf'

    # float.__repr__ yields the shortest round-trip digits, even for subclasses
    sign, digits, exponent = Decimal(float.__repr__(f)).normalize().as_tuple()
    mantissa = ''.join(str(d) for d in digits)
    sign_text = '-' if sign else ''
    if mantissa == '0':
        return sign_text + '0'

    # Position of the decimal point relative to the first digit
    point = len(mantissa) + exponent
    exp10 = point - 1

    if exp10 < -4 or exp10 >= 6:
        text = mantissa[0]
        if len(mantissa) > 1:
            text += '.' + mantissa[1:]
        exp_sign = '-' if exp10 < 0 else '+'
        return f'{sign_text}{text}e{exp_sign}{abs(exp10):02d}'

    if point <= 0:
        return f'{sign_text}0.{"0" * -point}{mantissa}'
    if point >= len(mantissa):
        return sign_text + mantissa + '0' * (point - len(mantissa))
    return f'{sign_text}{mantissa[:point]}.{mantissa[point:]}'


def _encode_text(value):
    return value.encode('utf-8')


def _encode_bytes(value):
    return bytes(value)


def _encode_integer(value):
    # int.__repr__ skips subclass __str__ overrides (IntEnum, custom types)
    return int.__repr__(value).encode('ascii')


def _encode_float(value):
    return format_float(value).encode('ascii')


def _encode_boolean(value):
    return b'1' if value else b'0'


def _encode_nil(value):
    return b''


def _encode_other(value):
    return str(value).encode('utf-8')


_ENCODERS = {
    ArgKind.TEXT: _encode_text,
    ArgKind.BYTES: _encode_bytes,
    ArgKind.INTEGER: _encode_integer,
    ArgKind.FLOAT: _encode_float,
    ArgKind.BOOLEAN: _encode_boolean,
    ArgKind.NIL: _encode_nil,
    ArgKind.OTHER: _encode_other,
}


class Arg:
    """
    One classified command argument.

    Build with Arg.of(value) for automatic classification, or with an
    explicit constructor (Arg.text, Arg.binary, Arg.integer, ...) to force a kind.
    """

    __slots__ = ('kind', 'value')

    def __init__(self, kind, value):
        self.kind = kind
        self.value = value

    @classmethod
    def text(cls, value):
        return cls(ArgKind.TEXT, value)

    @classmethod
    def binary(cls, value):
        return cls(ArgKind.BYTES, value)

    @classmethod
    def integer(cls, value):
        return cls(ArgKind.INTEGER, value)

    @classmethod
    def floating(cls, value):
        return cls(ArgKind.FLOAT, value)

    @classmethod
    def boolean(cls, value):
        return cls(ArgKind.BOOLEAN, value)

    @classmethod
    def nil(cls):
        return cls(ArgKind.NIL, None)

    @classmethod
    def other(cls, value):
        return cls(ArgKind.OTHER, value)

    @classmethod
    def of(cls, value):
        """
        Classify a Python value.

        bool is checked before int since bool subclasses int.

        Args:
            value: Any - Caller-supplied argument (an Arg is returned as is)

        Returns:
            Arg: Classified argument
        """
        if isinstance(value, Arg):
            return value
        if value is None:
            return cls.nil()
        if isinstance(value, bool):
            return cls.boolean(value)
        if isinstance(value, int):
            return cls.integer(value)
        if isinstance(value, float):
            return cls.floating(value)
        if isinstance(value, str):
            return cls.text(value)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return cls.binary(value)
        return cls.other(value)

    def payload(self) -> bytes:
        """Return the argument bytes without bulk framing."""
        return _ENCODERS[self.kind](self.value)

    def encode(self) -> bytes:
        """Return the full bulk string: $<len>\\r\\n<payload>\\r\\n"""
        return bulk_string(self.payload())

    def __eq__(self, other):
        if not isinstance(other, Arg):
            return NotImplemented
        return self.kind is other.kind and self.value == other.value

    def __hash__(self):
        return hash((self.kind, self.value))

    def __repr__(self):
        return f'Arg({self.kind.name}, {self.value!r})'


def bulk_string(data: bytes) -> bytes:
    """
    Build a RESP2 bulk string.

    Format: $<length>\\r\\n<data>\\r\\n
    Example: bulk_string(b'hello') -> b'$5\\r\\nhello\\r\\n'
    """
    return b'$' + str(len(data)).encode('ascii') + CRLF + data + CRLF


def marshal(value) -> bytes:
    """
    Encode any argument as a bulk string.

    Args:
        value: Any - Argument or Arg

    Returns:
        bytes: Bulk string wire bytes
    """
    return Arg.of(value).encode()
