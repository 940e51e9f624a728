"""
Route Registry

Process-wide keyed storage of the route metadata accumulated while class
bodies are evaluated. Entries are keyed by an explicit ``OwnerKey`` issued
once per class at class-definition time, then by method name.

Lifecycle of an entry:
    record_handler / record_route   (while the class body is evaluated)
    finalize                        (class-level finalization reads and detaches)
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Tuple

from .config import get_config
from .faults import (
    DuplicateBindingFault,
    OwnerKeyCollisionFault,
    UnboundRouteFault,
)
from .paths import RoutePath

logger = logging.getLogger("routemark.registry")

Handler = Callable[..., Any]

OWNER_ATTR = "__routemark_owner__"

_tokens = itertools.count(1)


@dataclass(frozen=True)
class OwnerKey:
    """
    Identity token of a declaring class.

    Only ``token`` takes part in equality, so two classes sharing a module
    and qualname still get distinct keys.
    """
    token: int
    module: str = field(default="", compare=False)
    qualname: str = field(default="", compare=False)

    def __str__(self) -> str:
        return f"{self.module}:{self.qualname}#{self.token}"


@dataclass(frozen=True)
class RouteDescriptor:
    """
    A finalized route: verb, path and handler chain of one annotated method.

    Attributes:
        owner: Key of the declaring class
        method_name: Name of the annotated method
        verb: HTTP verb ("GET", "POST", ..., or "ANY")
        path: Literal path or compiled pattern
        handlers: Ordered handler chain; the method body is always last
    """
    owner: OwnerKey
    method_name: str
    verb: str
    path: RoutePath
    handlers: Tuple[Handler, ...]

    def with_path(self, path: RoutePath) -> "RouteDescriptor":
        """Return a copy with a rewritten path (prefix composition)."""
        return replace(self, path=path)

    def __repr__(self) -> str:
        path = self.path if isinstance(self.path, str) else f"re({self.path.pattern!r})"
        return (
            f"RouteDescriptor({self.verb} {path} -> {self.owner.qualname}.{self.method_name}, "
            f"{len(self.handlers)} handlers)"
        )


@dataclass
class RouteDraft:
    """In-progress metadata of one method, mutated while annotations are recorded."""
    method_name: str
    handlers: List[Handler] = field(default_factory=list)
    verb: Optional[str] = None
    path: Optional[RoutePath] = None

    @property
    def is_bound(self) -> bool:
        return self.verb is not None

    def build(self, owner: OwnerKey) -> RouteDescriptor:
        if not self.is_bound:
            raise UnboundRouteFault(owner.qualname, self.method_name)
        return RouteDescriptor(
            owner=owner,
            method_name=self.method_name,
            verb=self.verb,
            path=self.path,
            handlers=tuple(self.handlers),
        )


class Registry:
    """
    Keyed storage: owner key -> method name -> RouteDraft.

    Registration happens synchronously at class-definition time, one class
    body at a time, so no locking is needed.
    """

    def __init__(self):
        self._entries: Dict[OwnerKey, Dict[str, RouteDraft]] = {}
        self._owners: Dict[OwnerKey, type] = {}

    # ------------------------------------------------------------------
    # Owner keys
    # ------------------------------------------------------------------

    def issue_key(self, cls: type) -> OwnerKey:
        """
        Issue the owner key of ``cls``, or return the one already issued.

        The key lives in the class ``__dict__`` so a subclass never inherits
        its parent's key.
        """
        key = cls.__dict__.get(OWNER_ATTR)
        if key is None:
            key = OwnerKey(next(_tokens), cls.__module__, cls.__qualname__)
            setattr(cls, OWNER_ATTR, key)
            logger.debug("Issued owner key %s", key)
        self.claim(key, cls)
        return key

    def claim(self, key: OwnerKey, cls: type) -> None:
        """
        Associate ``key`` with ``cls``.

        Raises:
            OwnerKeyCollisionFault: If a different class already holds the key.
        """
        holder = self._owners.get(key)
        if holder is not None and holder is not cls:
            raise OwnerKeyCollisionFault(key, holder, cls)
        self._owners[key] = cls

    def owner_of(self, key: OwnerKey) -> Optional[type]:
        return self._owners.get(key)

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def _draft(self, key: OwnerKey, method_name: str) -> RouteDraft:
        methods = self._entries.setdefault(key, {})
        draft = methods.get(method_name)
        if draft is None:
            draft = methods[method_name] = RouteDraft(method_name)
        return draft

    def record_handler(self, key: OwnerKey, method_name: str, handler: Handler) -> None:
        """Append ``handler`` to the in-progress chain of a method."""
        self._draft(key, method_name).handlers.append(handler)

    def record_route(
        self,
        key: OwnerKey,
        method_name: str,
        verb: str,
        path: RoutePath,
        *,
        override: bool = False,
    ) -> None:
        """
        Set verb and path of a method.

        Recording the same binding twice is a no-op. A different binding
        raises DuplicateBindingFault unless ``override`` is set or
        ``strict_bindings`` is disabled, in which case the last one wins.
        """
        draft = self._draft(key, method_name)
        if draft.is_bound and (draft.verb, draft.path) != (verb, path) and not override:
            if get_config().strict_bindings:
                raise DuplicateBindingFault(method_name, (draft.verb, draft.path), (verb, path))
            logger.warning(
                "%s.%s rebound from %s %r to %s %r",
                key.qualname, method_name, draft.verb, draft.path, verb, path,
            )
        draft.verb = verb
        draft.path = path

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def pending(self, key: OwnerKey) -> Tuple[str, ...]:
        """Names of methods with in-progress metadata for ``key``."""
        return tuple(self._entries.get(key, ()))

    def finalize(self, key: OwnerKey) -> Dict[str, RouteDescriptor]:
        """
        Build the descriptors recorded for ``key`` and detach the entry.

        Methods keep the order in which they were first recorded. A second
        call sees an empty entry.

        Raises:
            UnboundRouteFault: If a method has handlers but no verb binding.
        """
        drafts = self._entries.pop(key, {})
        routes = {name: draft.build(key) for name, draft in drafts.items()}
        logger.debug("Finalized %d routes for %s", len(routes), key)
        return routes

    def clear(self) -> None:
        """Drop every entry and owner claim."""
        self._entries.clear()
        self._owners.clear()


default_registry = Registry()
