"""
View renderers.

The View annotation only binds a view name; rendering is delegated to a
``ViewRenderer``. ``JinjaViewRenderer`` adapts a Jinja2 environment.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Awaitable, Mapping, Optional, Protocol, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .config import get_config


class ViewRenderer(Protocol):
    """Anything that renders a named view with a context mapping."""

    def render(self, name: str, context: Mapping[str, Any]) -> Union[str, Awaitable[str]]:
        ...


class JinjaViewRenderer:
    """
    Render views from a template directory with Jinja2.

    A view name without a suffix gets ``extension`` appended, so
    ``View("users/list")`` renders ``users/list.html``.
    """

    def __init__(
        self,
        directory: Union[str, Path, None] = None,
        *,
        environment: Optional[Environment] = None,
        extension: str = ".html",
    ):
        if environment is None:
            if directory is None:
                raise ValueError("JinjaViewRenderer needs a template directory or an environment")
            environment = Environment(
                loader=FileSystemLoader(str(directory)),
                autoescape=select_autoescape(["html", "xml"]),
            )
        self.environment = environment
        self.extension = extension

    def template_name(self, name: str) -> str:
        return name if Path(name).suffix else name + self.extension

    def render(self, name: str, context: Mapping[str, Any]) -> str:
        template = self.environment.get_template(self.template_name(name))
        return template.render(**context)


_renderer: Optional[ViewRenderer] = None


def set_view_renderer(renderer: Optional[ViewRenderer]) -> Optional[ViewRenderer]:
    """Install the process-wide renderer; returns the previous one."""
    global _renderer
    previous = _renderer
    _renderer = renderer
    return previous


def get_view_renderer() -> Optional[ViewRenderer]:
    """
    Return the installed renderer.

    Falls back to a Jinja2 renderer over ``views_dir`` when one is configured.
    """
    global _renderer
    if _renderer is None and get_config().views_dir:
        _renderer = JinjaViewRenderer(get_config().views_dir)
    return _renderer
