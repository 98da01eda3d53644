from __future__ import annotations

import logging
import threading
import time
from copy import deepcopy
from dataclasses import dataclass
from typing import Any, Callable

from store.store_interface import SessionStoreProtocol

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Record:
    data: dict[str, Any]
    expires_at: float


class InMemorySessionStore(SessionStoreProtocol):
    """Process-local session records with TTL expiry.

    - one lock guards the whole map;
    - expired records read as absent (lazy eviction);
    - a background sweeper removes expired records on a fixed interval.

    Two concurrent calls for the same session id are not serialized here:
    the later put wins.
    """

    def __init__(
        self,
        default_ttl_seconds: float = 60.0,
        sweep_interval_seconds: float = 60.0,
        clock: Callable[[], float] | None = None,
        start_sweeper: bool = True,
    ) -> None:
        if default_ttl_seconds <= 0:
            raise ValueError("default_ttl_seconds must be positive")
        self.default_ttl_seconds = float(default_ttl_seconds)
        self.sweep_interval_seconds = max(0.01, float(sweep_interval_seconds))
        self._clock = clock or time.monotonic
        self._lock = threading.Lock()
        self._records: dict[str, _Record] = {}
        self._stop = threading.Event()
        self._sweeper: threading.Thread | None = None
        if start_sweeper:
            self.start()

    def get(self, session_id: str) -> dict[str, Any]:
        with self._lock:
            record = self._records.get(session_id)
            if record is None or record.expires_at <= self._clock():
                return {}
            return deepcopy(record.data)

    def put(self, session_id: str, data: dict[str, Any], ttl_seconds: float = 0) -> None:
        ttl = float(ttl_seconds) if ttl_seconds and ttl_seconds > 0 else self.default_ttl_seconds
        snapshot = deepcopy(data) if data else {}
        with self._lock:
            self._records[session_id] = _Record(data=snapshot, expires_at=self._clock() + ttl)

    def delete(self, session_id: str) -> None:
        with self._lock:
            self._records.pop(session_id, None)

    def sweep(self) -> int:
        with self._lock:
            now = self._clock()
            expired = [sid for sid, record in self._records.items() if record.expires_at <= now]
            for sid in expired:
                del self._records[sid]
        if expired:
            logger.debug("session-sweep removed=%d", len(expired))
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    @property
    def sweeper_running(self) -> bool:
        return self._sweeper is not None and self._sweeper.is_alive()

    def start(self) -> None:
        if self.sweeper_running:
            return
        self._stop.clear()
        self._sweeper = threading.Thread(
            target=self._sweep_loop,
            name="session-store-sweeper",
            daemon=True,
        )
        self._sweeper.start()

    def close(self) -> None:
        self._stop.set()
        sweeper = self._sweeper
        if sweeper is not None and sweeper is not threading.current_thread():
            sweeper.join(timeout=max(1.0, self.sweep_interval_seconds))
        self._sweeper = None

    def __enter__(self) -> InMemorySessionStore:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _sweep_loop(self) -> None:
        while not self._stop.wait(self.sweep_interval_seconds):
            try:
                self.sweep()
            except Exception:  # noqa: BLE001
                logger.exception("session-sweep-failed")
