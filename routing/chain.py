from __future__ import annotations

from typing import Callable, Iterable, Protocol, Union, runtime_checkable

from core.models import Reply
from routing.context import Ctx

Handler = Callable[[Ctx], Reply]


@runtime_checkable
class Interceptor(Protocol):
    def wrap(self, handler: Handler) -> Handler: ...


InterceptorLike = Union[Interceptor, Callable[[Handler], Handler]]


class FunctionInterceptor:
    def __init__(self, func: Callable[[Handler], Handler]) -> None:
        self.func = func

    def wrap(self, handler: Handler) -> Handler:
        return self.func(handler)

    def __repr__(self) -> str:
        return f"FunctionInterceptor({getattr(self.func, '__name__', self.func)!r})"


def as_interceptor(value: InterceptorLike) -> Interceptor:
    if isinstance(value, type):
        raise TypeError(f"interceptor class {value.__name__} passed; register an instance, e.g. {value.__name__}()")
    if isinstance(value, Interceptor):
        return value
    if callable(value):
        return FunctionInterceptor(value)
    raise TypeError(f"not an interceptor: {value!r}")


def wrap(handler: Handler, interceptors: Iterable[InterceptorLike]) -> Handler:
    """Compose interceptors around handler so that the first one is outermost.

    wrap(h, [a, b]) behaves as a(b(h)).
    """
    chain = [as_interceptor(item) for item in interceptors]
    for interceptor in reversed(chain):
        handler = interceptor.wrap(handler)
    return handler
