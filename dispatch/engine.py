from __future__ import annotations

import logging
import threading
from contextlib import contextmanager, nullcontext
from dataclasses import dataclass
from typing import Any, ContextManager, Iterator

from core.enums import ReplyText, SessionKey
from core.errors import MissingSessionError, RouteNotFoundError
from core.models import Reply, Request, end
from core.session import Session
from dispatch.stats import EngineStats
from routing.context import Ctx
from routing.router import RouteConfig, Router
from store.store_interface import SessionStoreProtocol

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL_SECONDS = 60.0


@dataclass(frozen=True, slots=True)
class DispatchResult:
    reply: Reply
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class DispatchEngine:
    """Runs one step of a conversation per call.

    A call loads the session record, decides between screen entry and input
    continuation, runs the matching handler, follows at most one redirect,
    then persists the session or deletes it when the reply terminates the
    conversation. Store failures never abort a call; they are counted in
    ``stats`` and logged.
    """

    def __init__(
        self,
        routes: RouteConfig | Router,
        store: SessionStoreProtocol,
        session_ttl_seconds: float = DEFAULT_SESSION_TTL_SECONDS,
        serialize_sessions: bool = False,
    ) -> None:
        self.routes = routes.freeze() if isinstance(routes, Router) else routes
        self.store = store
        self.session_ttl_seconds = float(session_ttl_seconds) if session_ttl_seconds > 0 else DEFAULT_SESSION_TTL_SECONDS
        self.serialize_sessions = bool(serialize_sessions)
        self.stats = EngineStats()
        self._session_locks = _SessionLocks()

    @property
    def start_path(self) -> str:
        return self.routes.start_path

    def handle(self, request: Request, cancel: threading.Event | None = None) -> DispatchResult:
        # blank ids are rejected; any other id is kept verbatim as the store key
        session_id = request.session_id or ""
        if not session_id.strip():
            self.stats.incr(EngineStats.INVALID_REQUESTS)
            return DispatchResult(reply=end(ReplyText.INVALID_SESSION), error=MissingSessionError("missing session id"))

        guard: ContextManager[Any] = self._session_locks.hold(session_id) if self.serialize_sessions else nullcontext()
        with guard:
            return DispatchResult(reply=self._dispatch(session_id, request, cancel))

    def _dispatch(self, session_id: str, request: Request, cancel: threading.Event | None) -> Reply:
        self.stats.incr(EngineStats.CALLS)
        session = Session(session_id, self._load(session_id))
        if cancel is not None and cancel.is_set():
            self.stats.incr(EngineStats.CANCELLED)
            return end(ReplyText.REQUEST_CANCELLED)

        try:
            reply = self._step(session, request, cancel)
        except RouteNotFoundError as exc:
            self.stats.incr(EngineStats.ROUTING_MISSES)
            logger.warning("route-miss sid=%s %s", session_id, exc)
            reply = end(ReplyText.SERVICE_UNAVAILABLE)
        except Exception:  # noqa: BLE001
            self.stats.incr(EngineStats.HANDLER_FAULTS)
            logger.exception("handler-fault sid=%s path=%s", session_id, session.get_str(SessionKey.CURRENT_PATH))
            reply = end(ReplyText.SERVICE_UNAVAILABLE)

        if reply.terminating:
            self.stats.incr(EngineStats.TERMINATIONS)
            self._delete(session_id)
        else:
            self._save(session_id, session.data())
        return reply

    def _step(self, session: Session, request: Request, cancel: threading.Event | None) -> Reply:
        path = session.get_str(SessionKey.CURRENT_PATH)
        if not path:
            self.stats.incr(EngineStats.FRESH_SESSIONS)
            path = self.routes.start_path
            session.set(SessionKey.CURRENT_PATH, path)
            return self._run(session, request, path, display=True, cancel=cancel)

        token = request.input_token()
        if not token:
            return self._run(session, request, path, display=True, cancel=cancel)

        reply = self._run(session, request, path, display=False, cancel=cancel, token=token)
        if reply.terminating:
            return reply

        next_path = session.get_str(SessionKey.NEXT_PATH)
        if next_path:
            self.stats.incr(EngineStats.REDIRECTS)
            session.set(SessionKey.CURRENT_PATH, next_path)
            session.delete(SessionKey.NEXT_PATH)
            return self._run(session, request, next_path, display=True, cancel=cancel)
        return self._run(session, request, path, display=True, cancel=cancel)

    def _run(
        self,
        session: Session,
        request: Request,
        path: str,
        *,
        display: bool,
        cancel: threading.Event | None,
        token: str = "",
    ) -> Reply:
        match = self.routes.table.match(path, want_display=display)
        if match is None:
            raise RouteNotFoundError(path, display)
        ctx = Ctx(
            session=session,
            request=request,
            path=path,
            input=token,
            params=dict(match.params),
            cancel=cancel,
        )
        reply = match.handler(ctx)
        if not isinstance(reply, Reply):
            raise TypeError(f"handler for {match.pattern!r} returned {type(reply).__name__}, expected Reply")
        if not display and ctx.redirect_to:
            session.set(SessionKey.NEXT_PATH, ctx.redirect_to)
        return reply

    def _load(self, session_id: str) -> dict[str, Any]:
        try:
            data = self.store.get(session_id)
        except Exception as exc:  # noqa: BLE001
            self.stats.incr(EngineStats.STORE_READ_ERRORS)
            logger.warning("session-read-failed sid=%s error=%s", session_id, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, session_id: str, data: dict[str, Any]) -> None:
        try:
            self.store.put(session_id, data, self.session_ttl_seconds)
        except Exception as exc:  # noqa: BLE001
            self.stats.incr(EngineStats.STORE_WRITE_ERRORS)
            logger.warning("session-write-failed sid=%s error=%s", session_id, exc)

    def _delete(self, session_id: str) -> None:
        try:
            self.store.delete(session_id)
        except Exception as exc:  # noqa: BLE001
            self.stats.incr(EngineStats.STORE_DELETE_ERRORS)
            logger.warning("session-delete-failed sid=%s error=%s", session_id, exc)


@dataclass(slots=True)
class _LockEntry:
    lock: threading.Lock
    holders: int = 0


class _SessionLocks:
    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, _LockEntry] = {}

    @contextmanager
    def hold(self, session_id: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.get(session_id)
            if entry is None:
                entry = _LockEntry(lock=threading.Lock())
                self._locks[session_id] = entry
            entry.holders += 1
        entry.lock.acquire()
        try:
            yield
        finally:
            entry.lock.release()
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    self._locks.pop(session_id, None)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
