"""
Controller finalization.

A class becomes a controller either by subclassing ``Controller`` or by
decorating it with ``@controller(prefix)``. Finalization reads the methods
recorded in the registry for the class, joins each path with the class
prefix and attaches the resulting route list to the class.

Example:
    class UsersController(Controller, prefix="/users"):

        @GET("/")
        async def index(self, rev):
            return await self.repo.list_all()

        @Status(201)
        @POST("/")
        async def create(self, rev):
            return await self.repo.create(rev.json())
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Dict, Optional, Tuple, TypeVar

from .config import get_config
from .faults import UnfinalizedControllerFault
from .paths import normalize
from .registry import Registry, RouteDescriptor, default_registry
from .response import shape_result

logger = logging.getLogger("routemark.controller")

ROUTES_ATTR = "__routes__"

C = TypeVar("C", bound=type)


_singletons: Dict[type, Any] = {}


def _wants_next(func: Callable[..., Any]) -> bool:
    """True when the method takes ``(self, rev, next)``."""
    params = list(inspect.signature(func).parameters.values())[1:]
    if any(p.name == "next" for p in params):
        return True
    if any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in params):
        return True
    required = [
        p for p in params
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
        and p.default is inspect.Parameter.empty
    ]
    return len(required) >= 2


class Endpoint:
    """
    Verb-binding handler: runs the method body and shapes its result.

    Always the last handler of a chain. The method receives ``(rev)`` or
    ``(rev, next)`` depending on its signature. Singleton controllers are
    shared by every route of the class.
    """

    def __init__(self, owner: type, func: Callable[..., Any]):
        self.owner = owner
        self.func = func
        self.__name__ = getattr(func, "__name__", "endpoint")
        self._pass_next = _wants_next(func)

    @property
    def instantiation_mode(self) -> str:
        return getattr(self.owner, "instantiation_mode", None) or get_config().default_instantiation

    def resolve_instance(self) -> Any:
        """Return the controller instance the method is called on."""
        if self.instantiation_mode == "per_request":
            return self.owner()
        instance = _singletons.get(self.owner)
        if instance is None:
            instance = _singletons[self.owner] = self.owner()
        return instance

    async def __call__(self, rev, next):
        instance = self.resolve_instance()
        args = (rev, next) if self._pass_next else (rev,)
        result = self.func(instance, *args)
        return await shape_result(result, rev)

    def __repr__(self) -> str:
        return f"<Endpoint {self.owner.__qualname__}.{self.__name__}>"


def finalize_class(
    cls: type,
    prefix: str = "",
    registry: Optional[Registry] = None,
) -> Tuple[RouteDescriptor, ...]:
    """
    Finalize ``cls``: collect its recorded routes and apply ``prefix``.

    Routes are ordered by method declaration. Finalizing an already
    finalized class composes the new prefix in front of the existing paths.
    """
    registry = registry or default_registry
    key = registry.issue_key(cls)

    routes = cls.__dict__.get(ROUTES_ATTR, ()) + tuple(registry.finalize(key).values())
    routes = tuple(route.with_path(normalize(prefix, route.path)) for route in routes)

    setattr(cls, ROUTES_ATTR, routes)
    logger.debug("Finalized %s with %d routes (prefix=%r)", cls.__qualname__, len(routes), prefix)
    return routes


def controller(prefix: str = "") -> Callable[[C], C]:
    """
    Class decorator that finalizes a plain class as a controller.

    Example:
        @controller("/health")
        class Health:
            @GET()
            def check(self, rev):
                return {"ok": True}
    """
    def decorator(cls: C) -> C:
        finalize_class(cls, prefix)
        return cls

    return decorator


def routes_of(cls: type) -> Tuple[RouteDescriptor, ...]:
    """
    Return the finalized route list attached to ``cls``.

    Raises:
        UnfinalizedControllerFault: If ``cls`` was never finalized.
    """
    routes = cls.__dict__.get(ROUTES_ATTR)
    if routes is None:
        raise UnfinalizedControllerFault(cls)
    return routes


class Controller:
    """
    Base controller class.

    Subclasses are finalized as soon as their class body is complete.

    Class Attributes:
        prefix: Path prefix for every route of the class
        instantiation_mode: "singleton" or "per_request"; None uses the
            configured default

    The prefix can also be given as a class keyword:
        class Users(Controller, prefix="/users"): ...
    """

    prefix: str = ""
    instantiation_mode: Optional[str] = None

    def __init_subclass__(cls, prefix: Optional[str] = None, **kwargs):
        super().__init_subclass__(**kwargs)
        if prefix is not None:
            cls.prefix = prefix
        finalize_class(cls, cls.__dict__.get("prefix", ""))

    @classmethod
    def routes(cls) -> Tuple[RouteDescriptor, ...]:
        return routes_of(cls)
