"""
Content-type resolver.

Maps short names ("json", "html", ".csv") to MIME strings. Unknown names and
full MIME types are returned unchanged.
"""

import mimetypes

from .config import get_config

CONTENT_TYPES = {
    "json": "application/json; charset=utf-8",
    "html": "text/html; charset=utf-8",
    "text": "text/plain; charset=utf-8",
    "txt": "text/plain; charset=utf-8",
    "xml": "application/xml",
    "js": "application/javascript; charset=utf-8",
    "css": "text/css; charset=utf-8",
    "csv": "text/csv; charset=utf-8",
    "form": "application/x-www-form-urlencoded",
    "multipart": "multipart/form-data",
    "bin": "application/octet-stream",
}


def resolve_content_type(name: str) -> str:
    """
    Resolve ``name`` to a MIME string.

    Lookup order: configured ``content_types``, the built-in table, then the
    ``mimetypes`` database by extension.
    """
    if "/" in name:
        return name

    key = name.strip().lower().lstrip(".")
    extra = get_config().content_types
    if key in extra:
        return extra[key]
    if key in CONTENT_TYPES:
        return CONTENT_TYPES[key]

    guessed, _ = mimetypes.guess_type(f"file.{key}")
    return guessed or name
