from __future__ import annotations


class UssdFlowError(RuntimeError):
    pass


class MissingSessionError(UssdFlowError):
    pass


class RouteNotFoundError(UssdFlowError):
    def __init__(self, path: str, display: bool) -> None:
        kind = "display" if display else "input"
        super().__init__(f"no {kind} handler registered for path={path!r}")
        self.path = path
        self.display = display


class StoreError(UssdFlowError):
    pass
