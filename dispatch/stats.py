from __future__ import annotations

import threading


class EngineStats:
    """Thread-safe counters describing what the engine did, including best-effort store failures."""

    CALLS = "calls"
    INVALID_REQUESTS = "invalid_requests"
    CANCELLED = "cancelled"
    FRESH_SESSIONS = "fresh_sessions"
    REDIRECTS = "redirects"
    TERMINATIONS = "terminations"
    ROUTING_MISSES = "routing_misses"
    HANDLER_FAULTS = "handler_faults"
    STORE_READ_ERRORS = "store_read_errors"
    STORE_WRITE_ERRORS = "store_write_errors"
    STORE_DELETE_ERRORS = "store_delete_errors"

    NAMES = (
        CALLS,
        INVALID_REQUESTS,
        CANCELLED,
        FRESH_SESSIONS,
        REDIRECTS,
        TERMINATIONS,
        ROUTING_MISSES,
        HANDLER_FAULTS,
        STORE_READ_ERRORS,
        STORE_WRITE_ERRORS,
        STORE_DELETE_ERRORS,
    )

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: dict[str, int] = {name: 0 for name in self.NAMES}

    def incr(self, name: str, amount: int = 1) -> None:
        with self._lock:
            self._counts[name] = self._counts.get(name, 0) + amount

    def __getitem__(self, name: str) -> int:
        with self._lock:
            return self._counts.get(name, 0)

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return dict(self._counts)
