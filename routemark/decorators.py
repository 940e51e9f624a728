"""
Controller Method Decorators

Verb binders (GET, POST, ...) and handler-contributing annotations (Wares,
Status, Header, ContentType, View, Upload). All of them compose through
the Chain Composer: annotations run top-to-bottom, the method body last.

Inject binds a class attribute when the class is created.
"""

from __future__ import annotations

import inspect
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Union

from .chain import RouteMember, flatten_handlers
from .mime import resolve_content_type
from .paths import RoutePath
from .registry import Handler
from .uploads import UploadOptions, get_upload_factory


# ============================================================================
# Verb binders
# ============================================================================

class RouteDecorator:
    """
    Base verb-binding decorator.

    Binds the method to an HTTP verb and a path (literal or compiled
    pattern). A method takes one binding; a second, different one is
    rejected at class creation unless ``override=True``.
    """

    method: Optional[str] = None

    def __init__(self, path: RoutePath = "", *, override: bool = False):
        self.path = path
        self.override = override

    def __call__(self, func: Callable[..., Any]) -> RouteMember:
        return RouteMember.of(func).bind(self.method, self.path, override=self.override)


class GET(RouteDecorator):
    """GET request decorator."""
    method = "GET"


class POST(RouteDecorator):
    """POST request decorator."""
    method = "POST"


class PUT(RouteDecorator):
    """PUT request decorator."""
    method = "PUT"


class PATCH(RouteDecorator):
    """PATCH request decorator."""
    method = "PATCH"


class DELETE(RouteDecorator):
    """DELETE request decorator."""
    method = "DELETE"


class HEAD(RouteDecorator):
    """HEAD request decorator."""
    method = "HEAD"


class OPTIONS(RouteDecorator):
    """OPTIONS request decorator."""
    method = "OPTIONS"


class TRACE(RouteDecorator):
    """TRACE request decorator."""
    method = "TRACE"


class CONNECT(RouteDecorator):
    """CONNECT request decorator."""
    method = "CONNECT"


class ANY(RouteDecorator):
    """Matches every request method."""
    method = "ANY"


def route(method: str, path: RoutePath = "", *, override: bool = False) -> RouteDecorator:
    """
    Generic verb binder.

    Example:
        @route("PROPFIND", "/dav")
        async def propfind(self, rev):
            ...
    """
    decorator = RouteDecorator(path, override=override)
    decorator.method = method.upper()
    return decorator


# ============================================================================
# Handler-contributing annotations
# ============================================================================

class HandlerDecorator:
    """Base for annotations that contribute handlers to the chain."""

    def handlers(self) -> Sequence[Handler]:
        raise NotImplementedError

    def __call__(self, func: Callable[..., Any]) -> RouteMember:
        return RouteMember.of(func).prepend(*self.handlers())


class Wares(HandlerDecorator):
    """
    Attach middleware handlers.

    Nested lists are flattened and non-callables ignored:
        @Wares(auth, [throttle, audit])
    """

    def __init__(self, *middlewares: Any):
        self.middlewares = flatten_handlers(middlewares)

    def handlers(self) -> Sequence[Handler]:
        return self.middlewares


async def _resolve(value: Any, rev, next) -> Any:
    if callable(value):
        value = value(rev, next)
        if inspect.isawaitable(value):
            value = await value
    return value


class Status(HandlerDecorator):
    """Set the response status, fixed or computed by ``fn(rev, next)``."""

    def __init__(self, status: Union[int, Callable[..., Any]]):
        self.status = status

    def handlers(self) -> Sequence[Handler]:
        status = self.status

        async def set_status(rev, next):
            rev.response_init.status = int(await _resolve(status, rev, next))
            return await next()

        return (set_status,)


class Header(HandlerDecorator):
    """Merge response headers, fixed or computed by ``fn(rev, next)``."""

    def __init__(self, headers: Union[Mapping[str, Any], Callable[..., Any]]):
        self.headers = headers

    def handlers(self) -> Sequence[Handler]:
        headers = self.headers

        async def set_headers(rev, next):
            values: Dict[str, Any] = await _resolve(headers, rev, next) or {}
            for name, value in values.items():
                rev.response_init.set_header(name, value)
            return await next()

        return (set_headers,)


class ContentType(HandlerDecorator):
    """Set the response content type from a short name or MIME string."""

    def __init__(self, name: str):
        self.content_type = resolve_content_type(name)

    def handlers(self) -> Sequence[Handler]:
        content_type = self.content_type

        async def set_content_type(rev, next):
            rev.response_init.set_header("content-type", content_type)
            return await next()

        return (set_content_type,)


class View(HandlerDecorator):
    """Bind a view name; a mapping returned by the method is rendered with it."""

    def __init__(self, name: str):
        self.name = name

    def handlers(self) -> Sequence[Handler]:
        name = self.name

        async def bind_view(rev, next):
            rev.view = name
            return await next()

        return (bind_view,)


class Upload(HandlerDecorator):
    """
    Accept multipart uploads for one field.

    Example:
        @Upload("avatar", max_size="2mb", accept="image/*", dest="uploads")
        @POST("/avatar")
        async def avatar(self, rev):
            return {"stored": str(rev.files["avatar"][0].path)}
    """

    def __init__(self, name: Union[str, UploadOptions], **options: Any):
        self.options = name if isinstance(name, UploadOptions) else UploadOptions(name, **options)
        self.handler = get_upload_factory()(self.options)

    def handlers(self) -> Sequence[Handler]:
        return (self.handler,)


# ============================================================================
# Field injection
# ============================================================================

class Inject:
    """
    Bind a class attribute at class creation.

    A class value is instantiated with the given arguments; any other
    value is bound as is.

    Example:
        class Users(Controller):
            repo = Inject(UserRepo, "sqlite://")
    """

    def __init__(self, value: Any, *args: Any, **kwargs: Any):
        self.value = value
        self.args = args
        self.kwargs = kwargs
        self.bound: Any = None
        self.name: Optional[str] = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name
        if inspect.isclass(self.value):
            self.bound = self.value(*self.args, **self.kwargs)
        else:
            self.bound = self.value

    def __get__(self, instance: Any, owner: Optional[type] = None) -> Any:
        return self.bound
