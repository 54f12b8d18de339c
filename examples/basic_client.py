"""
Basic respclient Example

Round trips, server errors and a pipelined batch against a running Redis
(or any RESP2 server).

Usage:
    python examples/basic_client.py [tcp://127.0.0.1:6379]
"""

import logging
import sys

from respclient import (
    dial, Error, TransportError, raise_for_error, to_int, to_str, to_strings
)


def run(url):
    """Run a few commands and print the decoded replies."""
    with dial(url) as conn:
        print('\n=== Round trips ===\n')

        print('1. PING')
        print(f'   Reply: {conn.send("PING")!r}')

        print('\n2. SET / GET')
        conn.send('SET', 'example:key', 'value')
        print(f'   Reply: {to_str(conn.send("GET", "example:key"))}')

        print('\n3. GET missing key')
        reply = conn.send('GET', 'example:missing')
        print(f'   Reply: {reply!r} (null: {reply.is_null})')

        print('\n4. INCRBY with an int argument')
        print(f'   Reply: {to_int(conn.send("INCRBY", "example:counter", 5))}')

        print('\n5. Server error is a value')
        reply = conn.send('NOSUCHCOMMAND')
        if isinstance(reply, Error):
            print(f'   Error prefix: {reply.prefix}')

        print('\n=== Pipeline ===\n')
        for i in range(3):
            conn.pipe('RPUSH', 'example:list', i)
        conn.pipe('LRANGE', 'example:list', 0, -1)
        conn.pipe('DEL', 'example:key', 'example:counter', 'example:list')
        conn.flush()

        # One receive per piped command, in the same order
        for _ in range(3):
            raise_for_error(conn.receive_one())
        print(f'   LRANGE: {to_strings(conn.receive_one())}')
        print(f'   DEL: {to_int(conn.receive_one())}')


if __name__ == '__main__':
    logging.basicConfig(level=logging.DEBUG)
    target = sys.argv[1] if len(sys.argv) > 1 else None
    try:
        run(target)
    except TransportError as e:
        print(f'Error: {e}')
        print('Make sure a RESP server is listening (default tcp://127.0.0.1:6379)')
        sys.exit(1)
