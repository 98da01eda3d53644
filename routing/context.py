from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from core.models import Request
from core.session import Session


@dataclass(slots=True)
class Ctx:
    """Per-call view handed to display and input handlers."""

    session: Session
    request: Request
    path: str
    input: str = ""
    params: dict[str, str] = field(default_factory=dict)
    cancel: threading.Event | None = None
    redirect_to: str = ""

    def redirect(self, path: str) -> None:
        self.redirect_to = path

    def get(self, key: str, default: Any = None) -> Any:
        return self.session.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.session.set(key, value)

    def param(self, name: str) -> str:
        return self.params.get(name, "")

    @property
    def cancelled(self) -> bool:
        return self.cancel is not None and self.cancel.is_set()
