"""
ASGI adapter - Bridges the ASGI protocol to a Router.

Reads the request body, builds a RequestEvent, lets the router handle it
and sends the produced Response (bytes or streamed).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable

from .context import RequestEvent, Response

if TYPE_CHECKING:
    from .router import Router


async def read_body(receive: Callable) -> bytes:
    """Read the whole HTTP request body."""
    chunks = []
    more_body = True
    while more_body:
        message = await receive()
        if message["type"] == "http.disconnect":
            break
        chunks.append(message.get("body", b""))
        more_body = message.get("more_body", False)
    return b"".join(chunks)


async def send_response(send: Callable, response: Response) -> None:
    """Send ``response`` as ASGI ``http.response.*`` messages."""
    await send({
        "type": "http.response.start",
        "status": response.status,
        "headers": response.header_list(),
    })

    if not response.is_stream:
        await send({"type": "http.response.body", "body": bytes(response.body)})
        return

    async for chunk in response.body:
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        await send({"type": "http.response.body", "body": chunk, "more_body": True})
    await send({"type": "http.response.body", "body": b""})


class ASGIAdapter:
    """ASGI 3 application serving a Router (HTTP and lifespan scopes)."""

    def __init__(self, router: "Router"):
        self.router = router
        self.logger = logging.getLogger("routemark.asgi")

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        scope_type = scope["type"]
        if scope_type == "http":
            await self.handle_http(scope, receive, send)
        elif scope_type == "lifespan":
            await self.handle_lifespan(scope, receive, send)
        else:
            self.logger.warning("Unsupported ASGI scope type: %s", scope_type)

    async def handle_http(self, scope: dict, receive: Callable, send: Callable) -> None:
        body = await read_body(receive)
        rev = RequestEvent.from_scope(scope, body)
        response = await self.router.handle(rev)
        await send_response(send, response)

    async def handle_lifespan(self, scope: dict, receive: Callable, send: Callable) -> None:
        """Handle ASGI lifespan events; routes are static so there is nothing to start."""
        while True:
            message: Any = await receive()
            if message["type"] == "lifespan.startup":
                self.logger.debug("Serving %d routes", len(self.router.routes))
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                break
