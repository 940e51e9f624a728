"""
Aggregator

Concatenates the finalized route lists of several controllers into one
route table, in the order the controllers are given. No reordering and no
de-duplication happen here; resolving conflicts is left to the router.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Type, overload

from .controller import routes_of
from .paths import RoutePath, is_pattern
from .registry import RouteDescriptor
from .router import Router

logger = logging.getLogger("routemark.aggregate")


class RouteTable(Sequence[RouteDescriptor]):
    """Immutable ordered sequence of route descriptors."""

    __slots__ = ("_routes",)

    def __init__(self, routes: Iterable[RouteDescriptor] = ()):
        self._routes = tuple(routes)

    @overload
    def __getitem__(self, index: int) -> RouteDescriptor: ...

    @overload
    def __getitem__(self, index: slice) -> "RouteTable": ...

    def __getitem__(self, index):
        if isinstance(index, slice):
            return RouteTable(self._routes[index])
        return self._routes[index]

    def __len__(self) -> int:
        return len(self._routes)

    def __iter__(self) -> Iterator[RouteDescriptor]:
        return iter(self._routes)

    def __add__(self, other: Iterable[RouteDescriptor]) -> "RouteTable":
        return RouteTable(self._routes + tuple(other))

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, RouteTable):
            return self._routes == other._routes
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._routes)

    def __repr__(self) -> str:
        return f"RouteTable({len(self._routes)} routes)"

    def find(self, verb: str, path: RoutePath) -> List[RouteDescriptor]:
        """Every descriptor declared with exactly ``verb`` and ``path``."""
        return [r for r in self._routes if r.verb == verb.upper() and r.path == path]

    def describe(self) -> List[Dict[str, Any]]:
        """Plain-data summary of the table, in order."""
        return [
            {
                "verb": route.verb,
                "path": route.path.pattern if is_pattern(route.path) else route.path,
                "controller": route.owner.qualname,
                "method": route.method_name,
                "handlers": [getattr(h, "__name__", repr(h)) for h in route.handlers],
            }
            for route in self._routes
        ]


def aggregate(classes: Iterable[type]) -> RouteTable:
    """
    Build the route table of ``classes``, preserving their order.

    Raises:
        UnfinalizedControllerFault: If a class was never finalized.
    """
    classes = list(classes)
    table = RouteTable(itertools.chain.from_iterable(routes_of(cls) for cls in classes))
    logger.info("Aggregated %d routes from %d controllers", len(table), len(classes))
    return table


def add_controllers(
    classes: Iterable[type],
    router_cls: Optional[Type[Router]] = None,
    **options: Any,
) -> Router:
    """Aggregate ``classes`` and hand the table to a router."""
    return (router_cls or Router)(aggregate(classes), **options)
