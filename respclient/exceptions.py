"""
respclient Exceptions Module

Defines the exception hierarchy raised by the RESP client.

Server error replies (RESP '-' lines) are NOT raised by the decoder: they are
returned as ordinary Error values. ServerError exists so callers that prefer
exceptions can convert an Error value on demand.
"""


class RespError(Exception):
    """
    Base exception for all respclient errors.

    Attributes:
        prefix: str - Error category (e.g., 'PROTOCOL', 'TRANSPORT')
    """

    prefix = 'ERR'

    def __init__(self, message=None):
        """
        Initialize error.

        Args:
            message: str - Error message (without prefix)
        """
        self.message = message
        if message:
            super().__init__(f'{self.prefix} {message}')
        else:
            super().__init__(self.prefix)


class ProtocolError(RespError):
    """
    Raised when the reply stream violates RESP framing.

    Unknown type byte, malformed length or integer, missing CRLF, or a
    declared size over the configured limits. The connection's framing
    state is lost; the connection must not be reused.
    """

    prefix = 'PROTOCOL'

    def __init__(self, message='Protocol error'):
        super().__init__(message)


class TransportError(RespError):
    """
    Raised on I/O failure of the underlying stream.
    """

    prefix = 'TRANSPORT'

    def __init__(self, message='Transport error'):
        super().__init__(message)


class ConnectionClosedError(TransportError):
    """
    Raised when the peer closed the stream, or the connection was closed locally.
    """

    def __init__(self, message='Connection closed'):
        super().__init__(message)


class RespTimeoutError(TransportError, TimeoutError):
    """
    Raised when a read or write operation exceeds its deadline.

    Named RespTimeoutError to avoid shadowing Python's builtin TimeoutError,
    which it also subclasses.
    """

    prefix = 'TIMEOUT'

    def __init__(self, message='Operation timed out'):
        super().__init__(message)


def error_code(text):
    """
    Return the error code of a server error text.

    The code is the first word when it is upper case, e.g. 'WRONGTYPE'.
    Text without one ('something went wrong') has the code ''.
    """
    head = text.split(' ', 1)[0]
    return head if head.isupper() else ''


class ServerError(RespError):
    """
    Exception form of a server error reply.

    The prefix is the error code of the reply text (see error_code()), the
    message is the remainder. Text without a code has prefix '' and the
    whole text as message.

    Example:
        '-WRONGTYPE Operation against a key holding the wrong kind of value'
        -> prefix='WRONGTYPE', message='Operation against a key ...'
    """

    def __init__(self, text):
        """
        Initialize from the raw error reply text.

        Args:
            text: str - Error text as sent by the server (without '-')
        """
        self.text = text
        self.prefix = error_code(text)
        if self.prefix:
            self.message = text.partition(' ')[2] or None
        else:
            self.message = text or None
        Exception.__init__(self, text)

    def __str__(self):
        return self.text
