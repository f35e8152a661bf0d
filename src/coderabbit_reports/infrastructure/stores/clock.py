from __future__ import annotations

import threading
import time

_lock = threading.Lock()
_last_ms = 0


def now_ms() -> int:
    """
    Epoch milliseconds, strictly increasing within this process.

    Newest-first listings order by creation time, so two records created in
    the same millisecond must still get distinct timestamps.
    """
    global _last_ms
    with _lock:
        current = int(time.time() * 1000)
        if current <= _last_ms:
            current = _last_ms + 1
        _last_ms = current
        return current
