"""
respclient Constants Module

Defines protocol constants, default transport parameters and decoder limits
for the RESP client.
"""

# =============================================================================
# RESP2 Protocol Markers
# =============================================================================
# Redis Serialization Protocol (RESP2) type indicators
# Using ord() to get byte values for protocol parsing

SIMPLE_STRING = ord('+')  # Simple string reply: +OK\r\n
ERROR = ord('-')          # Error reply: -ERR message\r\n
INTEGER = ord(':')        # Integer reply: :1000\r\n
BULK_STRING = ord('$')    # Bulk string: $6\r\nfoobar\r\n
ARRAY = ord('*')          # Array: *2\r\n$3\r\nfoo\r\n$3\r\nbar\r\n

TYPE_MARKERS = (SIMPLE_STRING, ERROR, INTEGER, BULK_STRING, ARRAY)

# Length value that marks a null bulk string or null array
NULL_LENGTH = -1

# =============================================================================
# Protocol Line Terminators
# =============================================================================

CRLF = b'\r\n'  # Carriage Return + Line Feed
LF = b'\n'

# =============================================================================
# Network Defaults
# =============================================================================

DEFAULT_HOST = '127.0.0.1'
DEFAULT_PORT = 6379
DEFAULT_URL = f'tcp://{DEFAULT_HOST}:{DEFAULT_PORT}'

CONNECT_TIMEOUT = 10.0   # Seconds allowed for dialing
READ_TIMEOUT = 10.0      # Seconds allowed per read operation
WRITE_TIMEOUT = 10.0     # Seconds allowed per write/flush operation

BUFFER_SIZE = 4096       # Socket receive chunk size

# =============================================================================
# Decoder Limits
# =============================================================================
# Declared sizes are checked before any allocation or read

MAX_ARRAY_DEPTH = 32                 # Maximum nesting depth for arrays
MAX_BULK_SIZE = 512 * 1024 * 1024    # Maximum bulk string size (server proto-max-bulk-len)
MAX_ARRAY_SIZE = 2 ** 32 - 1         # Maximum array elements

# Integer replies are signed 64-bit
INT64_MIN = -2 ** 63
INT64_MAX = 2 ** 63 - 1
