"""Unique per-story suffixes for fresh usernames."""

from __future__ import annotations

import logging
import threading
import time

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_last_issued_us = 0


def fresh_suffix() -> str:
    """
    Return a token such as ``"32.632506"`` for disambiguating usernames.

    The token is the wall-clock seconds modulo 100, a dot, and the
    microsecond component.  Two calls in the same process never reuse a
    microsecond reading: a call that lands on the same (or an earlier)
    reading as the previous one is moved one microsecond forward.
    """
    global _last_issued_us

    with _lock:
        now_us = time.time_ns() // 1_000
        if now_us <= _last_issued_us:
            now_us = _last_issued_us + 1
        _last_issued_us = now_us

    seconds, micros = divmod(now_us, 1_000_000)
    suffix = f"{seconds % 100}.{micros}"
    logger.debug("Generated fresh suffix %s", suffix)
    return suffix
