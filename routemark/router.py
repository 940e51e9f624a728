"""
Router - Dispatches requests over a route table.

Routes are tried in table order; the first whose verb and path match wins.
``ANY`` routes match every verb. Conflicting routes are kept as given, so
table order decides.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Pattern, Tuple

from .asgi import ASGIAdapter
from .chain import run_chain
from .context import RequestEvent, Response
from .faults import Fault, RouteNotFoundFault, Severity
from .paths import compile_path
from .registry import RouteDescriptor

logger = logging.getLogger("routemark.router")

_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.WARN: logging.WARNING,
    Severity.ERROR: logging.ERROR,
    Severity.FATAL: logging.CRITICAL,
}


class Router:
    """
    Route-table router with an ASGI entry point.

    Example:
        router = add_controllers([UsersController, HealthController])
        uvicorn.run(router)
    """

    def __init__(self, routes: Iterable[RouteDescriptor] = ()):
        self.routes: List[RouteDescriptor] = []
        self._matchers: List[Tuple[RouteDescriptor, Pattern[str]]] = []
        self._asgi = ASGIAdapter(self)
        for route in routes:
            self.add(route)

    def add(self, route: RouteDescriptor) -> None:
        """Append ``route`` to the table."""
        self.routes.append(route)
        self._matchers.append((route, compile_path(route.path)))

    def match(self, method: str, path: str) -> Optional[Tuple[RouteDescriptor, Dict[str, str]]]:
        """Return the first route matching ``method`` and ``path`` with its params."""
        method = method.upper()
        for route, matcher in self._matchers:
            if route.verb != "ANY" and route.verb != method:
                continue
            found = matcher.match(path)
            if found is None:
                continue
            params = {k: v for k, v in found.groupdict().items() if v is not None}
            return route, params
        return None

    async def handle(self, rev: RequestEvent) -> Response:
        """Run the chain of the matching route and return the response."""
        try:
            matched = self.match(rev.method, rev.path)
            if matched is None:
                raise RouteNotFoundFault(rev.path, rev.method)

            route, params = matched
            rev.params.update(params)
            await run_chain(route.handlers, rev)

            if rev.response is None:
                raise RouteNotFoundFault(rev.path, rev.method)
            return rev.response
        except Fault as fault:
            return self.fault_response(fault)
        except Exception:
            logger.exception("Unhandled error in %s %s", rev.method, rev.path)
            return self._json({"code": "INTERNAL_ERROR", "message": "Internal Server Error"}, 500)

    def fault_response(self, fault: Fault) -> Response:
        """Convert a fault into a JSON error response."""
        logger.log(_LOG_LEVELS.get(fault.severity, logging.ERROR), "%s", fault)
        if fault.public:
            body = {"code": fault.code, "message": fault.message, "metadata": fault.metadata}
        else:
            body = {"code": fault.code, "message": "Internal Server Error"}
        return self._json(body, fault.status)

    @staticmethod
    def _json(body: Any, status: int) -> Response:
        return Response(
            body=json.dumps(body, default=str).encode("utf-8"),
            status=status,
            headers={"content-type": "application/json; charset=utf-8"},
        )

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        await self._asgi(scope, receive, send)

    def __len__(self) -> int:
        return len(self.routes)
