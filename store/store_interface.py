from __future__ import annotations

from typing import Any, Protocol


class SessionStoreProtocol(Protocol):
    def get(self, session_id: str) -> dict[str, Any]: ...

    def put(self, session_id: str, data: dict[str, Any], ttl_seconds: float = 0) -> None: ...

    def delete(self, session_id: str) -> None: ...

    def close(self) -> None: ...
