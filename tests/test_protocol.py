"""
Tests for respclient/core/protocol.py

Both decoders must agree: ReplyReader pulls from a stream, ReplyParser is
fed bytes incrementally.
"""

import pytest

from respclient.config import Config
from respclient.core.protocol import ReplyReader, ReplyParser, INCOMPLETE, decode_reply
from respclient.core.value import (
    SimpleString, Error, Integer, BulkString, Array, NULL_BULK, NULL_ARRAY
)
from respclient.exceptions import ProtocolError, ConnectionClosedError
from respclient.network.stream import BufferStream


CASES = [
    (b'+OK\r\n', SimpleString('OK')),
    (b'+\r\n', SimpleString('')),
    (b'-ERR unknown command\r\n', Error('ERR unknown command')),
    (b':42\r\n', Integer(42)),
    (b':-9223372036854775808\r\n', Integer(-9223372036854775808)),
    (b'$5\r\nhello\r\n', BulkString(b'hello')),
    (b'$4\r\na\r\nb\r\n', BulkString(b'a\r\nb')),
    (b'$0\r\n\r\n', BulkString(b'')),
    (b'$-1\r\n', NULL_BULK),
    (b'*0\r\n', Array([])),
    (b'*-1\r\n', NULL_ARRAY),
    (b'*2\r\n*1\r\n:1\r\n$-1\r\n', Array([Array([Integer(1)]), NULL_BULK])),
    (b'*3\r\n:1\r\n-ERR inner\r\n+OK\r\n', Array([Integer(1), Error('ERR inner'), SimpleString('OK')])),
]


@pytest.mark.parametrize('data, expected', CASES)
def test_reader_decodes(data, expected):
    """Blocking reader produces the expected value and consumes everything."""
    stream = BufferStream(data)
    assert ReplyReader(stream).read_reply() == expected
    with pytest.raises(ConnectionClosedError):
        stream.read_exact(1)


@pytest.mark.parametrize('data, expected', CASES)
def test_parser_decodes(data, expected):
    """Incremental parser agrees with the blocking reader."""
    assert decode_reply(data) == expected


@pytest.mark.parametrize('data, expected', CASES)
def test_parser_byte_by_byte(data, expected):
    """Feeding one byte at a time yields the value only once complete."""
    parser = ReplyParser()
    for i in range(len(data) - 1):
        parser.feed(data[i:i + 1])
        assert parser.get_reply() is INCOMPLETE
    parser.feed(data[-1:])
    assert parser.get_reply() == expected
    assert parser.buffered == 0


def test_null_versus_empty():
    """$-1 / $0 and *-1 / *0 decode to distinct values."""
    assert decode_reply(b'$-1\r\n') != decode_reply(b'$0\r\n\r\n')
    assert decode_reply(b'*-1\r\n') != decode_reply(b'*0\r\n')
    assert decode_reply(b'$-1\r\n').data is None
    assert decode_reply(b'$0\r\n\r\n').data == b''


def test_error_is_returned_not_raised():
    """Server errors are ordinary values."""
    value = ReplyReader(BufferStream(b'-WRONGTYPE bad\r\n')).read_reply()
    assert isinstance(value, Error)
    assert value.prefix == 'WRONGTYPE'


def test_values_round_trip_through_encode():
    """encode() output decodes back to an equal value."""
    value = Array([
        SimpleString('OK'), Integer(-1), BulkString(b'\x00\xff'), NULL_BULK,
        NULL_ARRAY, Array([]), Array([Array([Integer(7)])]), Error('ERR e'),
    ])
    assert decode_reply(value.encode()) == value
    assert ReplyReader(BufferStream(value.encode())).read_reply() == value


def test_reader_reads_replies_in_order():
    """Consecutive calls return consecutive replies."""
    reader = ReplyReader(BufferStream(b'$1\r\na\r\n:2\r\n*1\r\n+c\r\n'))
    assert reader.read_reply() == BulkString(b'a')
    assert reader.read_reply() == Integer(2)
    assert reader.read_reply() == Array([SimpleString('c')])


def test_parser_keeps_following_replies():
    """Bytes after the first reply stay buffered for the next call."""
    parser = ReplyParser()
    parser.feed(b':1\r\n:2\r\n$3\r\nab')
    assert parser.get_reply() == Integer(1)
    assert parser.get_reply() == Integer(2)
    assert parser.get_reply() is INCOMPLETE
    parser.feed(b'c\r\n')
    assert parser.get_reply() == BulkString(b'abc')
    assert parser.get_reply() is INCOMPLETE


def test_partial_array_resumes():
    """Finished elements of a partial array are kept, not decoded again."""
    parser = ReplyParser()
    parser.feed(b'*2\r\n:1\r\n')
    assert parser.get_reply() is INCOMPLETE
    assert parser.buffered == 0
    parser.feed(b':2\r\n')
    assert parser.get_reply() == Array([Integer(1), Integer(2)])


@pytest.mark.parametrize('data', [
    b'Z\r\n',                 # Unknown type byte
    b'?hello\r\n',
    b':12a\r\n',              # Non-numeric integer
    b':\r\n',
    b': 1\r\n',
    b'$abc\r\n',              # Non-numeric length
    b'$-2\r\n',               # Negative length other than -1
    b'*x\r\n',
    b'*-5\r\n',
    b'$3\r\nabcd\r\n',        # Payload longer than declared
    b'+OK\n',                 # Missing CR
    b'\r\n',                  # Empty line
])
def test_protocol_errors(data):
    """Malformed input raises ProtocolError in both decoders."""
    with pytest.raises(ProtocolError):
        ReplyReader(BufferStream(data)).read_reply()
    with pytest.raises(ProtocolError):
        decode_reply(data)


def test_unknown_type_byte_message():
    """The offending byte is named."""
    with pytest.raises(ProtocolError) as info:
        decode_reply(b'Zoops\r\n')
    assert "b'Z'" in str(info.value)


def test_nested_error_inside_array_is_data():
    """An embedded error does not stop decoding of later elements."""
    value = decode_reply(b'*2\r\n-ERR a\r\n:5\r\n')
    assert value == Array([Error('ERR a'), Integer(5)])


def test_bulk_size_limit():
    """Declared bulk length over the cap fails before reading the payload."""
    stream = BufferStream(b'$100\r\n')
    with pytest.raises(ProtocolError):
        ReplyReader(stream, max_bulk_size=10).read_reply()
    with pytest.raises(ProtocolError):
        _parse_limited(b'$100\r\n', max_bulk_size=10)
    assert decode_reply(b'$10\r\n0123456789\r\n', Config({'max_bulk_size': 10})) == BulkString(b'0123456789')


def _parse_limited(data, **limits):
    parser = ReplyParser(**limits)
    parser.feed(data)
    return parser.get_reply()


def test_array_size_limit():
    """Declared array count over the cap fails immediately."""
    with pytest.raises(ProtocolError):
        ReplyReader(BufferStream(b'*99999999\r\n'), max_array_size=1000).read_reply()
    with pytest.raises(ProtocolError):
        _parse_limited(b'*99999999\r\n', max_array_size=1000)


def test_depth_limit():
    """Nesting deeper than max_depth is rejected."""
    two_levels = b'*1\r\n*1\r\n:1\r\n'
    three_levels = b'*1\r\n*1\r\n*1\r\n:1\r\n'
    assert ReplyReader(BufferStream(two_levels), max_depth=2).read_reply() == Array([Array([Integer(1)])])
    with pytest.raises(ProtocolError):
        ReplyReader(BufferStream(three_levels), max_depth=2).read_reply()
    with pytest.raises(ProtocolError):
        _parse_limited(three_levels, max_depth=2)


def test_default_depth_limit_from_config():
    """The limit defaults to the configured max_depth."""
    deep = b'*1\r\n' * 40 + b':1\r\n'
    with pytest.raises(ProtocolError):
        decode_reply(deep)
    assert decode_reply(deep, Config({'max_depth': 64})) is not None


def test_truncated_stream():
    """Running out of data mid-reply surfaces the stream error."""
    with pytest.raises(ConnectionClosedError):
        ReplyReader(BufferStream(b'*2\r\n:1\r\n')).read_reply()
    with pytest.raises(ConnectionClosedError):
        ReplyReader(BufferStream(b'$5\r\nab')).read_reply()


def test_decode_reply_requires_exactly_one():
    """decode_reply() rejects truncated input and trailing bytes."""
    with pytest.raises(ProtocolError):
        decode_reply(b'$5\r\nab')
    with pytest.raises(ProtocolError):
        decode_reply(b':1\r\n:2\r\n')


def test_parser_reset():
    """reset() drops buffered bytes."""
    parser = ReplyParser()
    parser.feed(b'$5\r\nab')
    parser.reset()
    assert parser.buffered == 0
    parser.feed(b':1\r\n')
    assert parser.get_reply() == Integer(1)


def test_parser_resumes_nested_arrays_across_feeds():
    """Open arrays at several depths survive between feeds."""
    parser = ReplyParser()
    parser.feed(b'*2\r\n*2\r\n$3\r\nfo')
    assert parser.get_reply() is INCOMPLETE
    parser.feed(b'o\r\n:7\r\n')
    assert parser.get_reply() is INCOMPLETE
    parser.feed(b'*0\r\n+OK\r\n')
    assert parser.get_reply() == Array([Array([BulkString(b'foo'), Integer(7)]), Array([])])
    assert parser.get_reply() == SimpleString('OK')


def test_parser_waits_for_declared_bulk_body():
    """A bulk header is decoded once; the body is taken when fully present."""
    parser = ReplyParser()
    parser.feed(b'$10\r\n01234')
    assert parser.get_reply() is INCOMPLETE
    assert parser.buffered == 5
    parser.feed(b'56789')
    assert parser.get_reply() is INCOMPLETE
    parser.feed(b'\r\n')
    assert parser.get_reply() == BulkString(b'0123456789')


def test_large_array_in_small_chunks():
    """Chunked input of a large array decodes to the same value."""
    count = 50000
    data = b'*%d\r\n' % count + b':1\r\n' * count
    parser = ReplyParser()
    reply = INCOMPLETE
    for i in range(0, len(data), 4096):
        assert reply is INCOMPLETE
        parser.feed(data[i:i + 4096])
        reply = parser.get_reply()
    assert len(reply) == count
    assert all(item == Integer(1) for item in reply)
    assert parser.buffered == 0


@pytest.mark.parametrize('data', [
    b':9223372036854775808\r\n',
    b':-9223372036854775809\r\n',
    b':99999999999999999999999\r\n',
    b'$000000000000000000000001\r\na\r\n',
])
def test_numbers_outside_64_bit_range(data):
    """Integers and lengths must fit a signed 64-bit integer."""
    with pytest.raises(ProtocolError):
        ReplyReader(BufferStream(data)).read_reply()
    with pytest.raises(ProtocolError):
        decode_reply(data)


def test_int64_bounds_accepted():
    assert decode_reply(b':9223372036854775807\r\n') == Integer(2 ** 63 - 1)
    assert decode_reply(b':-9223372036854775808\r\n') == Integer(-2 ** 63)


def test_line_length_limit():
    """Header and status lines are capped by max_bulk_size."""
    parser = ReplyParser(max_bulk_size=10)
    parser.feed(b'+0123456789\r\n')
    assert parser.get_reply() == SimpleString('0123456789')

    parser.feed(b'+' + b'a' * 8)
    assert parser.get_reply() is INCOMPLETE
    parser.feed(b'a' * 8)
    with pytest.raises(ProtocolError):
        parser.get_reply()

    with pytest.raises(ProtocolError):
        ReplyReader(BufferStream(b'-' + b'e' * 20 + b'\r\n'), max_bulk_size=10).read_reply()
