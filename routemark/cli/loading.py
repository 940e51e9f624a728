"""Resolve ``module[:attr]`` command-line targets into route tables."""

from __future__ import annotations

import importlib
import inspect
import sys
from pathlib import Path
from typing import Any, List

from ..aggregate import RouteTable, aggregate
from ..controller import ROUTES_ATTR
from ..router import Router


def import_target(target: str) -> Any:
    """Import ``module`` or ``module:attr`` (attr may be dotted)."""
    cwd = str(Path.cwd())
    if cwd not in sys.path:
        sys.path.insert(0, cwd)

    module_name, _, attr = target.partition(":")
    obj: Any = importlib.import_module(module_name)
    for part in filter(None, attr.split(".")):
        obj = getattr(obj, part)
    return obj


def module_controllers(module: Any) -> List[type]:
    """Finalized classes defined in ``module``, in definition order."""
    return [
        value for value in vars(module).values()
        if inspect.isclass(value)
        and value.__module__ == module.__name__
        and ROUTES_ATTR in value.__dict__
    ]


def load_table(target: str) -> RouteTable:
    """
    Build the route table named by ``target``.

    A module yields its controllers; an attribute may be a Router, a
    RouteTable, a controller class or a sequence of controller classes.
    """
    obj = import_target(target)

    if inspect.ismodule(obj):
        return aggregate(module_controllers(obj))
    if isinstance(obj, Router):
        return RouteTable(obj.routes)
    if isinstance(obj, RouteTable):
        return obj
    if inspect.isclass(obj):
        return aggregate([obj])
    if isinstance(obj, (list, tuple)):
        return aggregate(obj)
    raise TypeError(f"{target} is not a module, router, route table or controller")
