"""
Controller finalization (controller.py)

Tests prefix application, the decorator form, subclass isolation,
double finalization and controller instantiation.
"""

import pytest

from routemark import GET, POST, Controller, RequestEvent, controller, finalize_class, routes_of, run_chain
from routemark.config import set_config
from routemark.controller import ROUTES_ATTR
from routemark.faults import UnfinalizedControllerFault
from routemark.registry import Registry


async def call(route, **fields):
    rev = RequestEvent(**fields)
    await run_chain(route.handlers, rev)
    return rev


class TestPrefix:

    def test_keyword_prefix(self):
        class Users(Controller, prefix="/api/"):
            @GET("/users")
            def index(self, rev):
                pass

        assert [r.path for r in Users.routes()] == ["/api/users"]
        assert Users.prefix == "/api/"

    def test_attribute_prefix(self):
        class Users(Controller):
            prefix = "/users"

            @GET("/")
            def index(self, rev):
                pass

            @GET("/:id")
            def show(self, rev):
                pass

        assert [r.path for r in Users.routes()] == ["/users", "/users/:id"]

    def test_no_prefix(self):
        class Root(Controller):
            @GET()
            def index(self, rev):
                pass

        assert Root.routes()[0].path == "/"

    def test_declaration_order(self):
        class Items(Controller):
            @POST("/b")
            def b(self, rev):
                pass

            @GET("/a")
            def a(self, rev):
                pass

            @GET("/c")
            def c(self, rev):
                pass

        assert [r.method_name for r in Items.routes()] == ["b", "a", "c"]

    def test_controller_decorator(self):
        @controller("/health")
        class Health:
            @GET()
            def check(self, rev):
                return {"ok": True}

        route = routes_of(Health)[0]
        assert (route.verb, route.path) == ("GET", "/health")
        assert route.owner.qualname.endswith("Health")

    def test_empty_controller(self):
        class Empty(Controller):
            pass

        assert Empty.routes() == ()


class TestInheritance:

    def test_routes_are_not_inherited(self):
        class Base(Controller, prefix="/base"):
            @GET("/x")
            def x(self, rev):
                pass

        class Child(Base):
            @GET("/y")
            def y(self, rev):
                pass

        assert [r.path for r in Base.routes()] == ["/base/x"]
        assert [r.path for r in Child.routes()] == ["/y"]

    def test_child_prefix_independent(self):
        class Base(Controller, prefix="/base"):
            pass

        class Child(Base, prefix="/child"):
            @GET("/")
            def index(self, rev):
                pass

        assert Child.routes()[0].path == "/child"
        assert Base.prefix == "/base"

    def test_owner_keys_differ(self):
        class Base(Controller):
            @GET("/")
            def index(self, rev):
                pass

        class Child(Base):
            @GET("/")
            def index(self, rev):
                pass

        assert Base.routes()[0].owner != Child.routes()[0].owner


class TestFinalization:

    def test_unfinalized_class_rejected(self):
        class Plain:
            pass

        with pytest.raises(UnfinalizedControllerFault):
            routes_of(Plain)

    def test_double_finalization_composes_prefix(self):
        @controller("/outer")
        @controller("/inner")
        class Nested:
            @GET("/leaf")
            def leaf(self, rev):
                pass

        assert routes_of(Nested)[0].path == "/outer/inner/leaf"

    def test_finalize_class_with_registry(self):
        registry = Registry()

        class Owner:
            pass

        key = registry.issue_key(Owner)
        registry.record_route(key, "ping", "GET", "/ping")

        routes = finalize_class(Owner, "/svc", registry=registry)
        assert routes[0].path == "/svc/ping"
        assert Owner.__dict__[ROUTES_ATTR] == routes


class TestInstantiation:

    @pytest.mark.asyncio
    async def test_singleton_by_default(self):
        created = []

        class Counter(Controller):
            def __init__(self):
                created.append(self)

            @GET("/")
            def index(self, rev):
                return str(id(self))

        route = Counter.routes()[0]
        first = await call(route)
        second = await call(route)
        assert len(created) == 1
        assert first.response.body == second.response.body

    @pytest.mark.asyncio
    async def test_per_request_mode(self):
        created = []

        class Counter(Controller):
            instantiation_mode = "per_request"

            def __init__(self):
                created.append(self)

            @GET("/")
            def index(self, rev):
                return "ok"

        route = Counter.routes()[0]
        await call(route)
        await call(route)
        assert len(created) == 2

    @pytest.mark.asyncio
    async def test_configured_default_mode(self):
        set_config(default_instantiation="per_request")
        created = []

        class Counter(Controller):
            def __init__(self):
                created.append(self)

            @GET("/")
            def index(self, rev):
                return "ok"

        route = Counter.routes()[0]
        await call(route)
        await call(route)
        assert len(created) == 2

    @pytest.mark.asyncio
    async def test_method_sees_params(self):
        class Users(Controller, prefix="/users"):
            @GET("/:id")
            async def show(self, rev):
                return {"id": rev.params["id"]}

        rev = await call(Users.routes()[0], params={"id": "7"})
        assert rev.response.body == b'{"id": "7"}'

    @pytest.mark.asyncio
    async def test_singleton_shared_across_routes(self):
        created = []

        class Counter(Controller):
            def __init__(self):
                created.append(self)
                self.seen = False

            @GET("/a")
            def a(self, rev):
                self.seen = True
                return "a"

            @GET("/b")
            def b(self, rev):
                return str(self.seen)

        first, second = Counter.routes()
        await call(first)
        rev = await call(second)
        assert rev.response.body == b"True"
        assert len(created) == 1

    @pytest.mark.asyncio
    async def test_optional_argument_does_not_receive_next(self):
        class Items(Controller):
            @GET("/")
            def index(self, rev, extra=None):
                return {"extra": extra}

        rev = await call(Items.routes()[0])
        assert rev.response.body == b'{"extra": null}'

    @pytest.mark.asyncio
    async def test_next_parameter_by_name(self, calls):
        class Items(Controller):
            @GET("/")
            async def index(self, rev, next=None):
                calls.append(next is not None)
                rev.respond_with("ok")

        await call(Items.routes()[0])
        assert calls == [True]
