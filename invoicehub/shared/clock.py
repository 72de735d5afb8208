"""Strictly increasing millisecond timestamps.

Used for record ids and blob paths, where two values taken in the same
millisecond must still differ.
"""

import threading
import time

_lock = threading.Lock()
_last_ms = 0


def next_timestamp_ms() -> int:
    """Return the current epoch time in milliseconds, bumped past the previous value."""
    global _last_ms
    with _lock:
        now = time.time_ns() // 1_000_000
        _last_ms = max(now, _last_ms + 1)
        return _last_ms
