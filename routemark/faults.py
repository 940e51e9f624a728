"""
Routemark faults - Structured fault taxonomy.

Defines:
- Fault base class (structured fault objects)
- FaultDomain (explicit fault domains)
- Severity levels
- Concrete faults for registration, routing, uploads, views and config
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


# ============================================================================
# Severity & Domain
# ============================================================================

class Severity(str, Enum):
    """
    Fault severity levels.

    Determines the logging level used when a fault is reported.
    """
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"


class FaultDomain:
    """
    Fault domains (taxonomy).

    Identifies the functional area where a fault occurred.
    """

    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.value = name
        self.description = description

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"FaultDomain(name='{self.name}')"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, FaultDomain):
            return self.name == other.name
        return str(self) == str(other)

    def __hash__(self) -> int:
        return hash(self.name)


FaultDomain.CONFIG = FaultDomain("config", "Configuration errors")
FaultDomain.REGISTRY = FaultDomain("registry", "Route registry errors")
FaultDomain.ROUTING = FaultDomain("routing", "Path and route matching errors")
FaultDomain.IO = FaultDomain("io", "Request body and upload errors")
FaultDomain.VIEW = FaultDomain("view", "View rendering errors")


DOMAIN_DEFAULTS = {
    FaultDomain.CONFIG: Severity.FATAL,
    FaultDomain.REGISTRY: Severity.FATAL,
    FaultDomain.ROUTING: Severity.ERROR,
    FaultDomain.IO: Severity.WARN,
    FaultDomain.VIEW: Severity.ERROR,
}


# ============================================================================
# Fault - Base Class
# ============================================================================

class Fault(Exception):
    """
    Base fault class - structured, typed fault object.

    Attributes:
        code: Stable machine-readable identifier (e.g., "DUPLICATE_BINDING")
        message: Human-readable summary
        domain: Fault domain (REGISTRY, ROUTING, ...)
        severity: Fault severity
        public: Whether safe to expose to a client
        status: HTTP status used when the fault escapes a handler chain
        metadata: Additional context data
    """

    status: int = 500

    def __init__(
        self,
        code: str,
        message: str,
        *,
        domain: FaultDomain,
        severity: Optional[Severity] = None,
        public: bool = False,
        status: Optional[int] = None,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.domain = domain
        self.severity = severity or DOMAIN_DEFAULTS.get(domain, Severity.ERROR)
        self.public = public
        if status is not None:
            self.status = status
        self.metadata = metadata or {}

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(code={self.code!r}, domain={self.domain.value}, "
            f"severity={self.severity.value}, public={self.public})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize fault to a dictionary suitable for logging or a response body."""
        return {
            "code": self.code,
            "message": self.message,
            "domain": self.domain.value,
            "severity": self.severity.value,
            "public": self.public,
            "metadata": self.metadata,
        }


# ============================================================================
# REGISTRY Faults
# ============================================================================

class RegistryFault(Fault):
    """Base class for route registry faults (raised at class definition)."""

    def __init__(self, code: str, message: str, *, metadata: Optional[dict[str, Any]] = None):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.REGISTRY,
            metadata=metadata,
        )


class OwnerKeyCollisionFault(RegistryFault):
    """An owner key is already claimed by a different class."""

    def __init__(self, key: Any, holder: type, claimant: type):
        super().__init__(
            code="OWNER_KEY_COLLISION",
            message=(
                f"Owner key {key} is held by {holder.__qualname__}; "
                f"{claimant.__qualname__} cannot claim it"
            ),
            metadata={"key": str(key), "holder": holder.__qualname__, "claimant": claimant.__qualname__},
        )


class DuplicateBindingFault(RegistryFault):
    """A method was bound to a verb and path more than once."""

    def __init__(self, method_name: str, existing: tuple, attempted: tuple):
        super().__init__(
            code="DUPLICATE_BINDING",
            message=(
                f"Method '{method_name}' is already bound to {existing[0]} {existing[1]!r}; "
                f"refusing {attempted[0]} {attempted[1]!r} (pass override=True to replace)"
            ),
            metadata={"method": method_name, "existing": list(existing), "attempted": list(attempted)},
        )


class UnboundRouteFault(RegistryFault):
    """A method carries handlers but no verb binding."""

    def __init__(self, owner: str, method_name: str):
        super().__init__(
            code="UNBOUND_ROUTE",
            message=f"{owner}.{method_name} has route annotations but no verb binding (GET, POST, ...)",
            metadata={"owner": owner, "method": method_name},
        )


class UnfinalizedControllerFault(RegistryFault):
    """A class handed to the aggregator was never finalized."""

    def __init__(self, cls: type):
        super().__init__(
            code="UNFINALIZED_CONTROLLER",
            message=(
                f"{cls.__qualname__} has no route list; subclass Controller "
                f"or decorate it with @controller()"
            ),
            metadata={"class": cls.__qualname__},
        )


# ============================================================================
# ROUTING Faults
# ============================================================================

class RoutingFault(Fault):
    """Base class for routing faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        public: bool = True,
        status: int = 500,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.ROUTING,
            public=public,
            status=status,
            metadata=metadata,
        )


class PathFault(RoutingFault):
    """A prefix or method path cannot be combined."""

    def __init__(self, path: Any, reason: str):
        super().__init__(
            code="PATH_INVALID",
            message=f"Invalid route path {path!r}: {reason}",
            public=False,
            metadata={"path": repr(path), "reason": reason},
        )


class RouteNotFoundFault(RoutingFault):
    """No route matches the request."""

    def __init__(self, path: str, method: str):
        super().__init__(
            code="ROUTE_NOT_FOUND",
            message=f"Route not found: {method} {path}",
            status=404,
            metadata={"path": path, "method": method},
        )


# ============================================================================
# IO Faults
# ============================================================================

class UploadFault(Fault):
    """An uploaded file violates the upload options."""

    def __init__(self, field: str, reason: str, *, status: int = 400, **metadata: Any):
        super().__init__(
            code="UPLOAD_REJECTED",
            message=f"Upload '{field}' rejected: {reason}",
            domain=FaultDomain.IO,
            public=True,
            status=status,
            metadata={"field": field, "reason": reason, **metadata},
        )


# ============================================================================
# VIEW Faults
# ============================================================================

class ViewRendererMissingFault(Fault):
    """A view name is bound but no renderer is configured."""

    def __init__(self, view: str):
        super().__init__(
            code="VIEW_RENDERER_MISSING",
            message=f"View '{view}' is bound but no view renderer is configured",
            domain=FaultDomain.VIEW,
            metadata={"view": view},
        )


# ============================================================================
# CONFIG Faults
# ============================================================================

class ConfigFault(Fault):
    """Base class for configuration faults."""

    def __init__(self, code: str, message: str, *, metadata: Optional[dict[str, Any]] = None):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.CONFIG,
            metadata=metadata,
        )


class ConfigInvalidFault(ConfigFault):
    """Configuration value is invalid."""

    def __init__(self, key: str, reason: str):
        super().__init__(
            code="CONFIG_INVALID",
            message=f"Configuration key '{key}' is invalid: {reason}",
            metadata={"key": key, "reason": reason},
        )
