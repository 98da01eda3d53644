from __future__ import annotations

import hashlib
import hmac
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

from core.enums import ReplyText
from core.models import Reply, end
from routing.chain import Handler
from routing.context import Ctx

logger = logging.getLogger(__name__)


class Recover:
    """Turns an exception raised by the inner handler into a terminating reply."""

    def __init__(self, message: str = ReplyText.SERVICE_UNAVAILABLE) -> None:
        self.message = message

    def wrap(self, handler: Handler) -> Handler:
        def recovered(ctx: Ctx) -> Reply:
            try:
                return handler(ctx)
            except Exception:  # noqa: BLE001
                logger.exception(
                    "handler-recovered sid=%s path=%s in=%r",
                    ctx.session.session_id,
                    ctx.path,
                    ctx.input,
                )
                return end(self.message)

        return recovered


class Logging:
    def __init__(self, log: logging.Logger | None = None, clock: Callable[[], float] | None = None) -> None:
        self.log = log or logging.getLogger("ussdflow.access")
        self._clock = clock or time.perf_counter

    def wrap(self, handler: Handler) -> Handler:
        def logged(ctx: Ctx) -> Reply:
            started = self._clock()
            reply = handler(ctx)
            latency_ms = int((self._clock() - started) * 1000)
            self.log.info(
                "sid=%s msisdn=%s path=%s in=%r continue=%s latency_ms=%d",
                ctx.session.session_id,
                ctx.request.msisdn,
                ctx.path,
                ctx.input,
                reply.continue_session,
                latency_ms,
            )
            return reply

        return logged


def request_signature(secret: str, session_id: str, msisdn: str, text: str) -> str:
    message = f"{session_id}{msisdn}{text}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


class HmacSignature:
    """Rejects calls whose ``meta["sig"]`` is not the HMAC-SHA256 of session id, msisdn and text."""

    def __init__(self, secret: str, meta_key: str = "sig") -> None:
        if not (secret or "").strip():
            raise ValueError("hmac secret is required")
        self.secret = secret
        self.meta_key = meta_key

    def wrap(self, handler: Handler) -> Handler:
        def verified(ctx: Ctx) -> Reply:
            received = str(ctx.request.meta.get(self.meta_key, "") or "").strip()
            expected = request_signature(
                self.secret,
                ctx.session.session_id,
                ctx.request.msisdn,
                ctx.request.text,
            )
            if not received or not hmac.compare_digest(expected, received):
                logger.info("signature-rejected sid=%s msisdn=%s", ctx.session.session_id, ctx.request.msisdn)
                return end(ReplyText.UNAUTHORIZED)
            return handler(ctx)

        return verified


@dataclass(slots=True)
class _Window:
    count: int
    reset_at: float


class RateLimitPerMsisdn:
    """Fixed-window counter per caller: ``limit`` calls per ``window_seconds``.

    Expired windows are pruned at most once per window length, so the map
    only holds callers seen during the last window or two.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.limit = max(1, int(limit))
        self.window_seconds = max(0.001, float(window_seconds))
        self._clock = clock or time.monotonic
        self._lock = threading.Lock()
        self._windows: dict[str, _Window] = {}
        self._next_prune_at = 0.0

    def allow(self, key: str) -> bool:
        now = self._clock()
        with self._lock:
            if now >= self._next_prune_at:
                self._prune(now)
            window = self._windows.get(key)
            if window is None or now >= window.reset_at:
                self._windows[key] = _Window(count=1, reset_at=now + self.window_seconds)
                return True
            if window.count < self.limit:
                window.count += 1
                return True
            return False

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def _prune(self, now: float) -> None:
        expired = [key for key, window in self._windows.items() if window.reset_at <= now]
        for key in expired:
            del self._windows[key]
        self._next_prune_at = now + self.window_seconds

    def wrap(self, handler: Handler) -> Handler:
        def limited(ctx: Ctx) -> Reply:
            if not self.allow(ctx.request.msisdn):
                return end(ReplyText.BUSY)
            return handler(ctx)

        return limited


def tight_route_limit() -> RateLimitPerMsisdn:
    return RateLimitPerMsisdn(limit=2, window_seconds=3.0)
