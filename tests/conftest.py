"""
Shared test fixtures and helpers for the routemark test suite.
"""

import pytest

from routemark.config import get_config, set_config
from routemark.uploads import get_upload_factory, set_upload_factory
from routemark.views import set_view_renderer


@pytest.fixture(autouse=True)
def restore_globals():
    """Restore process-wide config, view renderer and upload factory."""
    config = get_config()
    factory = get_upload_factory()
    renderer = set_view_renderer(None)
    set_view_renderer(renderer)
    yield
    set_config(config)
    set_upload_factory(factory)
    set_view_renderer(renderer)


@pytest.fixture
def calls():
    """Shared call log for order assertions."""
    return []


@pytest.fixture
def mark(calls):
    """Factory of handlers that log their name and continue the chain."""

    def make(name):
        async def handler(rev, next):
            calls.append(name)
            return await next()

        handler.__name__ = name
        return handler

    return make


def fault_of(excinfo):
    """
    Return the fault raised while a class body was created.

    Python < 3.12 wraps errors raised from ``__set_name__`` in RuntimeError.
    """
    exc = excinfo.value
    return exc if not isinstance(exc, RuntimeError) else exc.__cause__


@pytest.fixture
def unwrap_fault():
    return fault_of
