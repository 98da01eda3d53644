from __future__ import annotations

from dataclasses import dataclass

from routing.chain import Handler, InterceptorLike, wrap
from routing.route_table import RouteTable


@dataclass(frozen=True, slots=True)
class RouteConfig:
    start_path: str
    table: RouteTable


class Router:
    """Builds the route table at startup.

    Interceptors are bound when a route is registered: the composed order is
    global, then group, then route-specific, first registered outermost.
    """

    def __init__(self, start_path: str) -> None:
        if not (start_path or "").strip():
            raise ValueError("start_path is required")
        self.start_path = start_path
        self._table = RouteTable()
        self._interceptors: list[InterceptorLike] = []
        self._frozen = False

    def use(self, *interceptors: InterceptorLike) -> None:
        self._check_mutable()
        self._interceptors.extend(interceptors)

    def display(self, path: str, handler: Handler, *interceptors: InterceptorLike) -> None:
        self._add(path, handler, True, (), interceptors)

    def on_input(self, path: str, handler: Handler, *interceptors: InterceptorLike) -> None:
        self._add(path, handler, False, (), interceptors)

    def group(self, prefix: str, *interceptors: InterceptorLike) -> Group:
        return Group(self, clean_prefix(prefix), tuple(interceptors))

    def freeze(self) -> RouteConfig:
        self._frozen = True
        return RouteConfig(start_path=self.start_path, table=self._table)

    @property
    def table(self) -> RouteTable:
        return self._table

    def _add(
        self,
        path: str,
        handler: Handler,
        is_display: bool,
        group_interceptors: tuple[InterceptorLike, ...],
        route_interceptors: tuple[InterceptorLike, ...],
    ) -> None:
        self._check_mutable()
        chain = [*self._interceptors, *group_interceptors, *route_interceptors]
        self._table.register(path, is_display, wrap(handler, chain))

    def _check_mutable(self) -> None:
        if self._frozen:
            raise RuntimeError("router is frozen; register routes before building the engine")


class Group:
    def __init__(self, router: Router, prefix: str, interceptors: tuple[InterceptorLike, ...]) -> None:
        self.router = router
        self.prefix = prefix
        self.interceptors = interceptors

    def group(self, prefix: str, *interceptors: InterceptorLike) -> Group:
        return Group(
            self.router,
            join_path(self.prefix, clean_prefix(prefix)),
            (*self.interceptors, *interceptors),
        )

    def display(self, path: str, handler: Handler, *interceptors: InterceptorLike) -> None:
        full_path = join_path(self.prefix, clean_prefix(path))
        self.router._add(full_path, handler, True, self.interceptors, interceptors)

    def on_input(self, path: str, handler: Handler, *interceptors: InterceptorLike) -> None:
        full_path = join_path(self.prefix, clean_prefix(path))
        self.router._add(full_path, handler, False, self.interceptors, interceptors)


def clean_prefix(prefix: str) -> str:
    if prefix in ("", "/"):
        return ""
    if not prefix.startswith("/"):
        prefix = "/" + prefix
    if len(prefix) > 1 and prefix.endswith("/"):
        prefix = prefix[:-1]
    return prefix


def join_path(base: str, suffix: str) -> str:
    if not base:
        return suffix
    if not suffix:
        return base
    return base.rstrip("/") + "/" + suffix.lstrip("/")
