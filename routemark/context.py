"""
Request context handed to every handler of a chain.

``RequestEvent`` carries the incoming request, the response state that
shaping annotations mutate (``response_init``) and, once a handler has
responded, the final ``Response``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Union
from urllib.parse import parse_qsl

Body = Union[bytes, AsyncIterator[bytes]]


@dataclass
class ResponseInit:
    """Status and headers accumulated before the body is produced."""
    status: int = 200
    headers: Dict[str, str] = field(default_factory=dict)

    def set_header(self, name: str, value: Any) -> None:
        self.headers[name.lower()] = str(value)

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.headers.get(name.lower(), default)


@dataclass
class Response:
    """A produced response. ``body`` is bytes or an async iterator of bytes."""
    body: Body = b""
    status: int = 200
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def is_stream(self) -> bool:
        return not isinstance(self.body, (bytes, bytearray))

    def header_list(self) -> List[tuple]:
        """Headers as ASGI ``(name, value)`` byte pairs."""
        return [
            (name.lower().encode("latin-1"), str(value).encode("latin-1"))
            for name, value in self.headers.items()
        ]


@dataclass
class RequestEvent:
    """
    Per-request context.

    Attributes:
        method: Request method (upper case)
        path: Request path
        headers: Request headers with lower-case names
        query: Query parameters (last value wins)
        params: Path parameters captured by the router
        body: Raw request body
        response_init: Status and headers set by shaping handlers
        view: View name bound by the View annotation
        form: Parsed form fields (multipart only)
        files: Parsed uploads by field name, None until parsed
        state: Free-form per-request state
        response: The response, once a handler has responded
        scope: The ASGI scope, when dispatched through ASGI
    """
    method: str = "GET"
    path: str = "/"
    headers: Dict[str, str] = field(default_factory=dict)
    query: Dict[str, str] = field(default_factory=dict)
    params: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    response_init: ResponseInit = field(default_factory=ResponseInit)
    view: Optional[str] = None
    form: Dict[str, List[str]] = field(default_factory=dict)
    files: Optional[Dict[str, list]] = None
    state: Dict[str, Any] = field(default_factory=dict)
    response: Optional[Response] = None
    scope: Optional[Mapping[str, Any]] = None

    @classmethod
    def from_scope(cls, scope: Mapping[str, Any], body: bytes = b"") -> "RequestEvent":
        """Build an event from an ASGI HTTP scope and the fully read body."""
        headers = {
            name.decode("latin-1").lower(): value.decode("latin-1")
            for name, value in scope.get("headers", ())
        }
        query_string = scope.get("query_string", b"").decode("latin-1")
        return cls(
            method=scope.get("method", "GET").upper(),
            path=scope.get("path", "/"),
            headers=headers,
            query=dict(parse_qsl(query_string, keep_blank_values=True)),
            body=body,
            scope=scope,
        )

    @property
    def responded(self) -> bool:
        return self.response is not None

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "")

    def text(self, encoding: str = "utf-8") -> str:
        return self.body.decode(encoding)

    def json(self) -> Any:
        return json.loads(self.body or b"null")

    def respond_with(
        self,
        body: Union[Body, str, "Response"] = b"",
        *,
        status: Optional[int] = None,
        headers: Optional[Mapping[str, Any]] = None,
    ) -> Response:
        """
        Finish the request.

        The status and headers accumulated in ``response_init`` are applied,
        then ``status`` and ``headers`` override them.
        """
        if isinstance(body, Response):
            self.response = body
            return body

        merged = dict(self.response_init.headers)
        for name, value in (headers or {}).items():
            merged[name.lower()] = str(value)

        if isinstance(body, str):
            body = body.encode("utf-8")
        elif isinstance(body, (bytearray, memoryview)):
            body = bytes(body)

        self.response = Response(
            body=body,
            status=status if status is not None else self.response_init.status,
            headers=merged,
        )
        return self.response
