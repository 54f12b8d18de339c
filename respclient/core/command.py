"""
respclient Command Framing Module

Frames commands as RESP2 arrays of bulk strings:

    *<1 + argc>\\r\\n$<len>\\r\\n<name>\\r\\n$<len>\\r\\n<arg1>\\r\\n...

The command name goes through the same marshaler as its arguments, so it may
be given as str or bytes.
"""

from .arguments import Arg
from .constants import ARRAY, CRLF


def array_header(count: int) -> bytes:
    """
    Build a RESP2 array header.

    Format: *<count>\\r\\n
    Example: array_header(3) -> b'*3\\r\\n'
    """
    return bytes((ARRAY,)) + str(count).encode('ascii') + CRLF


def encode_command(name, *args) -> bytes:
    """
    Encode a single command frame.

    Example:
        encode_command('SET', 'key', 1)
        -> b'*3\\r\\n$3\\r\\nSET\\r\\n$3\\r\\nkey\\r\\n$1\\r\\n1\\r\\n'

    Args:
        name: str or bytes - Command name
        *args: Any - Command arguments, see respclient.core.arguments

    Returns:
        bytes: Complete command frame
    """
    builder = CommandBuilder()
    builder.add_command(name, args)
    return builder.get_commands()


class CommandBuilder:
    """
    Accumulates one or more framed commands in a single bytearray.

    Frames are appended in call order and never interleave, which is what
    pipelining relies on.

    Typical usage:
        builder = CommandBuilder()
        builder.add_command('SET', ('key', 'value'))
        builder.add_command('GET', ('key',))
        data = builder.get_commands()   # two frames, ready to write
    """

    __slots__ = ('_buffer', '_pending')

    def __init__(self, initial_capacity: int = 256):
        """
        Initialize CommandBuilder with optional initial capacity.

        Args:
            initial_capacity: Pre-allocated buffer size in bytes (default 256)
        """
        self._buffer = bytearray(initial_capacity)
        # Reset length to 0 but keep capacity
        del self._buffer[:]
        self._pending = 0

    def add_command(self, name, args=()) -> None:
        """
        Append one command frame.

        The frame is encoded completely before it touches the buffer, so a
        failing argument leaves previously added frames intact.

        Args:
            name: str or bytes - Command name
            args: iterable - Command arguments
        """
        parts = [Arg.of(name).encode()]
        for arg in args:
            parts.append(Arg.of(arg).encode())
        self._buffer += array_header(len(parts))
        for part in parts:
            self._buffer += part
        self._pending += 1

    @property
    def pending(self) -> int:
        """Number of frames added since the last get_commands()/reset()."""
        return self._pending

    def get_commands(self) -> bytes:
        """
        Return all framed commands and reset the builder.

        Returns:
            bytes: Concatenated frames in the order they were added
        """
        result = bytes(self._buffer)
        del self._buffer[:]
        self._pending = 0
        return result

    def reset(self) -> None:
        """Discard buffered frames."""
        del self._buffer[:]
        self._pending = 0

    def __len__(self) -> int:
        """Return current buffer size in bytes."""
        return len(self._buffer)
