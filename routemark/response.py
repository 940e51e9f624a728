"""
Method body shaping.

Turns whatever a routed method returns into a response on the request
event:

- ``Response``                         -> used as is
- ``str``                              -> text body
- ``bytes`` / ``bytearray`` / ``memoryview`` / async iterator -> raw body
- ``None``                             -> nothing (the method responded or delegated)
- mapping with a bound view            -> rendered view
- anything else                        -> JSON
"""

from __future__ import annotations

import inspect
import json
import logging
from typing import Any, Mapping, Optional

from .config import get_config
from .context import RequestEvent, Response
from .faults import ViewRendererMissingFault
from .views import get_view_renderer

logger = logging.getLogger("routemark.response")

OCTET_STREAM = "application/octet-stream"
HTML = "text/html; charset=utf-8"


def _default_type(rev: RequestEvent, content_type: str) -> dict:
    if rev.response_init.get_header("content-type"):
        return {}
    return {"content-type": content_type}


async def render_view(rev: RequestEvent, context: Mapping[str, Any]) -> Response:
    """Render the view bound on ``rev`` with ``context``."""
    renderer = rev.state.get("view_renderer") or get_view_renderer()
    if renderer is None:
        raise ViewRendererMissingFault(rev.view)
    body = renderer.render(rev.view, context)
    if inspect.isawaitable(body):
        body = await body
    return rev.respond_with(body, headers=_default_type(rev, HTML))


async def shape_result(result: Any, rev: RequestEvent) -> Optional[Response]:
    """Respond on ``rev`` according to the type of ``result``."""
    if inspect.isawaitable(result):
        result = await result

    if result is None:
        if rev.view is not None and not rev.responded:
            return await render_view(rev, {})
        return rev.response

    if isinstance(result, Response):
        return rev.respond_with(result)

    config = get_config()

    if isinstance(result, str):
        return rev.respond_with(result, headers=_default_type(rev, config.text_content_type))

    if isinstance(result, (bytes, bytearray, memoryview)) or hasattr(result, "__aiter__"):
        return rev.respond_with(result, headers=_default_type(rev, OCTET_STREAM))

    if rev.view is not None and isinstance(result, Mapping):
        return await render_view(rev, result)

    body = json.dumps(result, default=str)
    return rev.respond_with(body, headers=_default_type(rev, config.json_content_type))
