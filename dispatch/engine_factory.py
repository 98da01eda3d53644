from __future__ import annotations

from typing import Any

from dispatch.engine import DEFAULT_SESSION_TTL_SECONDS, DispatchEngine
from routing.router import Router
from store.store_factory import create_session_store
from store.store_interface import SessionStoreProtocol


def create_engine(
    config: dict[str, Any],
    router: Router,
    store: SessionStoreProtocol | None = None,
) -> DispatchEngine:
    engine_conf = config.get("engine", {})
    return DispatchEngine(
        routes=router,
        store=store or create_session_store(config),
        session_ttl_seconds=float(engine_conf.get("session_ttl_seconds", DEFAULT_SESSION_TTL_SECONDS) or 0),
        serialize_sessions=bool(engine_conf.get("serialize_sessions", False)),
    )
