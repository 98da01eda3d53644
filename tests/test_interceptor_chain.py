from __future__ import annotations

import unittest

from core.models import Reply, Request, con, end
from core.session import Session
from middleware.interceptors import Recover
from routing.chain import FunctionInterceptor, Handler, as_interceptor, wrap
from routing.context import Ctx
from routing.router import Router


class _Tracer:
    def __init__(self, name: str, events: list[str], short_circuit: bool = False) -> None:
        self.name = name
        self.events = events
        self.short_circuit = short_circuit

    def wrap(self, handler: Handler) -> Handler:
        def traced(ctx: Ctx) -> Reply:
            self.events.append(f"{self.name}:before")
            if self.short_circuit:
                return end(f"blocked by {self.name}")
            reply = handler(ctx)
            self.events.append(f"{self.name}:after")
            return reply

        return traced


def _ctx(path: str = "/home") -> Ctx:
    return Ctx(session=Session("s1"), request=Request(session_id="s1"), path=path)


class InterceptorChainTest(unittest.TestCase):
    def test_first_interceptor_is_outermost(self) -> None:
        events: list[str] = []

        def core_handler(ctx: Ctx) -> Reply:
            events.append("handler")
            return con("ok")

        handler = wrap(core_handler, [_Tracer("A", events), _Tracer("B", events)])
        reply = handler(_ctx())

        self.assertEqual(reply, con("ok"))
        self.assertEqual(events, ["A:before", "B:before", "handler", "B:after", "A:after"])

    def test_short_circuit_skips_inner_interceptors_and_handler(self) -> None:
        events: list[str] = []

        def core_handler(ctx: Ctx) -> Reply:
            events.append("handler")
            return con("ok")

        handler = wrap(core_handler, [_Tracer("A", events, short_circuit=True), _Tracer("B", events)])
        reply = handler(_ctx())

        self.assertEqual(reply, end("blocked by A"))
        self.assertEqual(events, ["A:before"])

    def test_plain_functions_are_accepted(self) -> None:
        def shout(inner: Handler) -> Handler:
            return lambda ctx: con(inner(ctx).message.upper())

        interceptor = as_interceptor(shout)
        self.assertIsInstance(interceptor, FunctionInterceptor)
        handler = wrap(lambda ctx: con("hello"), [shout])
        self.assertEqual(handler(_ctx()).message, "HELLO")

    def test_non_callable_is_rejected(self) -> None:
        with self.assertRaises(TypeError):
            as_interceptor(42)  # type: ignore[arg-type]

    def test_interceptor_class_is_rejected_with_hint(self) -> None:
        with self.assertRaises(TypeError) as raised:
            as_interceptor(Recover)  # type: ignore[arg-type]
        self.assertIn("Recover()", str(raised.exception))

        router = Router("/home")
        router.use(Recover)  # type: ignore[arg-type]
        with self.assertRaises(TypeError):
            router.display("/home", lambda ctx: con("home"))

    def test_router_composes_global_group_route_order(self) -> None:
        events: list[str] = []
        router = Router("/home")
        router.use(_Tracer("global", events))
        group = router.group("/shop", _Tracer("group", events))
        nested = group.group("/cart", _Tracer("nested", events))

        def handler(ctx: Ctx) -> Reply:
            events.append("handler")
            return con("cart")

        nested.display("/view", handler, _Tracer("route", events))
        match = router.freeze().table.match("/shop/cart/view", want_display=True)
        match.handler(_ctx("/shop/cart/view"))

        self.assertEqual(
            events,
            [
                "global:before",
                "group:before",
                "nested:before",
                "route:before",
                "handler",
                "route:after",
                "nested:after",
                "group:after",
                "global:after",
            ],
        )

    def test_global_interceptors_bind_at_registration(self) -> None:
        events: list[str] = []
        router = Router("/home")
        router.display("/early", lambda ctx: con("early"))
        router.use(_Tracer("late", events))
        router.display("/late", lambda ctx: con("late"))
        table = router.freeze().table

        table.match("/early", True).handler(_ctx("/early"))
        self.assertEqual(events, [])
        table.match("/late", True).handler(_ctx("/late"))
        self.assertEqual(events, ["late:before", "late:after"])


if __name__ == "__main__":
    unittest.main()
