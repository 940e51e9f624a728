"""
Routemark - Declarative routing metadata for class-based controllers.

Annotate controller methods with routing intent, let the class collect it,
and aggregate several controllers into one ordered route table.

Example:
    from routemark import Controller, GET, POST, Status, Wares, add_controllers

    class UsersController(Controller, prefix="/users"):

        @GET("/")
        async def index(self, rev):
            return [{"id": 1}]

        @Wares(require_token)
        @Status(201)
        @POST("/")
        async def create(self, rev):
            return rev.json()

    router = add_controllers([UsersController])
"""

__version__ = "0.1.0"

from .faults import (
    Fault,
    FaultDomain,
    Severity,
    RegistryFault,
    OwnerKeyCollisionFault,
    DuplicateBindingFault,
    UnboundRouteFault,
    UnfinalizedControllerFault,
    RoutingFault,
    PathFault,
    RouteNotFoundFault,
    UploadFault,
    ViewRendererMissingFault,
    ConfigFault,
    ConfigInvalidFault,
)
from .config import RoutemarkConfig, ConfigLoader, get_config, set_config, configure_logging
from .paths import normalize, compile_path
from .registry import OwnerKey, RouteDescriptor, Registry, default_registry
from .context import RequestEvent, ResponseInit, Response
from .controller import Controller, controller, finalize_class, routes_of
from .chain import RouteMember, run_chain
from .decorators import (
    GET, POST, PUT, PATCH, DELETE,
    HEAD, OPTIONS, TRACE, CONNECT, ANY,
    route,
    Wares, Status, Header, ContentType, View, Upload, Inject,
)
from .uploads import UploadOptions, UploadedFile, set_upload_factory, get_upload_factory
from .mime import resolve_content_type
from .views import ViewRenderer, JinjaViewRenderer, set_view_renderer, get_view_renderer
from .router import Router
from .aggregate import RouteTable, aggregate, add_controllers

__all__ = [
    "__version__",

    # Faults
    "Fault", "FaultDomain", "Severity",
    "RegistryFault", "OwnerKeyCollisionFault", "DuplicateBindingFault",
    "UnboundRouteFault", "UnfinalizedControllerFault",
    "RoutingFault", "PathFault", "RouteNotFoundFault",
    "UploadFault", "ViewRendererMissingFault",
    "ConfigFault", "ConfigInvalidFault",

    # Config
    "RoutemarkConfig", "ConfigLoader", "get_config", "set_config", "configure_logging",

    # Core
    "normalize", "compile_path",
    "OwnerKey", "RouteDescriptor", "Registry", "default_registry",
    "RouteMember", "run_chain",
    "Controller", "controller", "finalize_class", "routes_of",
    "RouteTable", "aggregate", "add_controllers",

    # Annotations
    "GET", "POST", "PUT", "PATCH", "DELETE",
    "HEAD", "OPTIONS", "TRACE", "CONNECT", "ANY",
    "route",
    "Wares", "Status", "Header", "ContentType", "View", "Upload", "Inject",

    # Request handling
    "RequestEvent", "ResponseInit", "Response", "Router",
    "UploadOptions", "UploadedFile", "set_upload_factory", "get_upload_factory",
    "resolve_content_type",
    "ViewRenderer", "JinjaViewRenderer", "set_view_renderer", "get_view_renderer",
]
