"""
Chain Composer

Route annotations are stacked decorators, and Python evaluates stacked
decorators bottom-up. Each annotation therefore *prepends* its handlers to
the ``RouteMember`` it wraps, so the finished chain reads top-to-bottom:

    @Wares(a)          # runs first
    @Status(201)       # runs second
    @POST("/items")    # method body, always last
    async def create(self, rev): ...

The verb binding is kept apart from the middleware handlers and its
handler (the method body) is appended after all of them, wherever the
binding annotation is written.

When the class body is complete, ``RouteMember.__set_name__`` flushes the
composed chain into the registry under the owner key of the class.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple

from .controller import Endpoint
from .paths import RoutePath
from .registry import Handler, Registry, default_registry

logger = logging.getLogger("routemark.chain")


class RouteMember:
    """
    Class-body placeholder of a routed method.

    Behaves like the wrapped function for attribute access and calls; its
    only job is to carry the composed chain until the class is created.
    """

    def __init__(self, func: Callable[..., Any], registry: Optional[Registry] = None):
        if not callable(func):
            raise TypeError(f"Route annotations apply to callables, got {func!r}")
        functools.update_wrapper(self, func)
        self.func = func
        self.registry = registry
        self.handlers: List[Handler] = []
        self.bindings: List[Tuple[str, RoutePath, bool]] = []

    @classmethod
    def of(cls, target: Any) -> "RouteMember":
        """Return ``target`` if it is already a member, else wrap it."""
        if isinstance(target, cls):
            return target
        return cls(target)

    def prepend(self, *handlers: Handler) -> "RouteMember":
        """Insert ``handlers`` (in the given order) ahead of the chain so far."""
        self.handlers[0:0] = handlers
        return self

    def bind(self, verb: str, path: RoutePath, *, override: bool = False) -> "RouteMember":
        """Record a verb binding; bindings replay in evaluation order."""
        self.bindings.append((verb, path, override))
        return self

    @property
    def is_bound(self) -> bool:
        return bool(self.bindings)

    def __set_name__(self, owner: type, name: str) -> None:
        registry = self.registry or default_registry
        key = registry.issue_key(owner)

        for handler in self.handlers:
            registry.record_handler(key, name, handler)
        for verb, path, override in self.bindings:
            registry.record_route(key, name, verb, path, override=override)
        if self.bindings:
            registry.record_handler(key, name, Endpoint(owner, self.func))

        logger.debug(
            "Recorded %s.%s: %d handlers, %d bindings",
            owner.__qualname__, name, len(self.handlers), len(self.bindings),
        )

    def __get__(self, instance: Any, owner: Optional[type] = None) -> Any:
        if hasattr(self.func, "__get__"):
            return self.func.__get__(instance, owner)
        return self.func

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self.func(*args, **kwargs)

    def __repr__(self) -> str:
        return f"<RouteMember {getattr(self.func, '__qualname__', self.func)!r}>"


def flatten_handlers(items: Sequence[Any]) -> List[Handler]:
    """Flatten nested lists/tuples of handlers, dropping non-callables."""
    found: List[Handler] = []
    for item in items:
        if isinstance(item, (list, tuple)):
            found.extend(flatten_handlers(item))
        elif callable(item):
            found.append(item)
    return found


class Continuation:
    """
    The ``next`` capability of one chain step.

    Calling ``next()`` schedules the rest of the chain right away and
    returns this object; awaiting it yields the downstream result. A step
    that calls ``next()`` without awaiting it is awaited by the runner.
    """

    def __init__(self, start: Callable[[], Awaitable[Any]]):
        self._start = start
        self.task: Optional[asyncio.Future] = None
        self.awaited = False

    def __call__(self) -> "Continuation":
        if self.task is None:
            self.task = asyncio.ensure_future(self._start())
        return self

    @property
    def called(self) -> bool:
        return self.task is not None

    def __await__(self):
        self.awaited = True
        return self().task.__await__()

    def cancel(self) -> None:
        if self.task is not None and not self.task.done():
            self.task.cancel()


async def run_chain(handlers: Sequence[Handler], rev: Any) -> Any:
    """
    Execute ``handlers`` in order on ``rev``.

    Each handler is called as ``handler(rev, next)``. Calling ``next()``
    passes control to the rest of the chain, whether or not the handler
    awaits or returns it; a handler that never calls it ends the chain
    there.
    """
    async def dispatch(index: int) -> Any:
        if index >= len(handlers):
            return None

        next_ = Continuation(lambda: dispatch(index + 1))
        try:
            result = handlers[index](rev, next_)
            if inspect.isawaitable(result):
                result = await result
        except BaseException:
            next_.cancel()
            raise

        if next_.called and not next_.awaited:
            downstream = await next_
            if result is None:
                result = downstream
        return result

    return await dispatch(0)
