"""
Development/production serving through uvicorn.
"""

from __future__ import annotations

import logging
from typing import Any, Union

import uvicorn

from .config import get_config
from .router import Router

logger = logging.getLogger("routemark.server")


def serve(
    app: Union[Router, str],
    host: str = "127.0.0.1",
    port: int = 8000,
    **uvicorn_options: Any,
) -> None:
    """
    Serve a router (or an ``"module:attr"`` import string) with uvicorn.

    Extra keyword arguments go to ``uvicorn.run`` (``workers``, ``reload``...).
    """
    uvicorn_options.setdefault("log_level", get_config().log_level.lower())
    if isinstance(app, Router):
        logger.info("Serving %d routes on http://%s:%d", len(app), host, port)
    else:
        logger.info("Serving %s on http://%s:%d", app, host, port)
    uvicorn.run(app, host=host, port=port, **uvicorn_options)
