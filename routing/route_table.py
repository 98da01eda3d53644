from __future__ import annotations

from dataclasses import dataclass, field

from routing.chain import Handler

PARAM_PREFIX = ":"


@dataclass(slots=True)
class Route:
    pattern: str
    display: Handler | None = None
    on_input: Handler | None = None

    def handler(self, display: bool) -> Handler | None:
        return self.display if display else self.on_input


@dataclass(frozen=True, slots=True)
class RouteMatch:
    pattern: str
    handler: Handler
    params: dict[str, str] = field(default_factory=dict)


class RouteTable:
    """Screen path registry.

    Literal patterns resolve by exact lookup; parametrized patterns (segments
    starting with ``:``) are scanned in registration order and the first one
    that matches wins.
    """

    def __init__(self) -> None:
        self._literal: dict[str, Route] = {}
        self._parametrized: list[Route] = []

    def register(self, pattern: str, is_display: bool, handler: Handler) -> None:
        if is_parametrized(pattern):
            route = next((r for r in self._parametrized if r.pattern == pattern), None)
            if route is None:
                route = Route(pattern=pattern)
                self._parametrized.append(route)
        else:
            route = self._literal.setdefault(pattern, Route(pattern=pattern))
        if is_display:
            route.display = handler
        else:
            route.on_input = handler

    def match(self, path: str, want_display: bool) -> RouteMatch | None:
        route = self._literal.get(path)
        if route is not None:
            handler = route.handler(want_display)
            if handler is None:
                return None
            return RouteMatch(pattern=route.pattern, handler=handler)

        for route in self._parametrized:
            params = match_params(path, route.pattern)
            if params is None:
                continue
            handler = route.handler(want_display)
            if handler is None:
                return None
            return RouteMatch(pattern=route.pattern, handler=handler, params=params)
        return None

    def routes(self) -> list[Route]:
        return list(self._literal.values()) + list(self._parametrized)

    def __len__(self) -> int:
        return len(self._literal) + len(self._parametrized)


def is_parametrized(pattern: str) -> bool:
    return any(segment.startswith(PARAM_PREFIX) for segment in split_path(pattern))


def split_path(path: str) -> list[str]:
    text = (path or "").strip()
    if not text:
        return []
    if text.startswith("/"):
        text = text[1:]
    return text.split("/")


def match_params(path: str, pattern: str) -> dict[str, str] | None:
    path_segments = split_path(path)
    pattern_segments = split_path(pattern)
    if len(path_segments) != len(pattern_segments):
        return None
    params: dict[str, str] = {}
    for actual, expected in zip(path_segments, pattern_segments):
        if expected.startswith(PARAM_PREFIX):
            params[expected[len(PARAM_PREFIX):]] = actual
            continue
        if actual != expected:
            return None
    return params
