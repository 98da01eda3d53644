from __future__ import annotations

from typing import Any

from core.enums import StoreBackend
from store.dynamo_store import DynamoSessionStore
from store.memory_store import InMemorySessionStore
from store.store_interface import SessionStoreProtocol


def create_session_store(config: dict[str, Any]) -> SessionStoreProtocol:
    store_conf = config.get("session_store", {})
    backend = str(store_conf.get("backend", StoreBackend.MEMORY.value) or StoreBackend.MEMORY.value).strip().lower()
    default_ttl = float(store_conf.get("default_ttl_seconds", 60) or 60)

    if backend == StoreBackend.DYNAMODB.value:
        ddb_conf = store_conf.get("dynamodb", {}) if isinstance(store_conf, dict) else {}
        return DynamoSessionStore(
            region_name=_as_optional_str(ddb_conf.get("region")),
            table_name=str(ddb_conf.get("table_name", "ussdflow-sessions")),
            default_ttl_seconds=default_ttl,
        )
    if backend != StoreBackend.MEMORY.value:
        raise ValueError(f"unsupported session_store.backend: {backend}")

    return InMemorySessionStore(
        default_ttl_seconds=default_ttl,
        sweep_interval_seconds=float(store_conf.get("sweep_interval_seconds", 60) or 60),
    )


def _as_optional_str(value: Any) -> str | None:
    text = str(value or "").strip()
    return text or None
