"""
Path Normalizer

Combines a class-level prefix with a per-method path into one canonical
path, and compiles canonical paths into matchers for the router.

Literal paths:
    normalize("/api/", "/users")  -> "/api/users"
    normalize("", "/")            -> "/"
    normalize("/a", "")           -> "/a"

Pattern paths (``re.Pattern``) keep their pattern semantics: the prefix is
matched literally in front of them.
"""

from __future__ import annotations

import re
from typing import Pattern, Union

from .faults import PathFault

RoutePath = Union[str, Pattern[str]]

SEPARATOR = "/"

_SEPARATOR_RUN = re.compile(r"/{2,}")
_PARAM_SEGMENT = re.compile(r"^(?::(?P<colon>\w+)|\{(?P<brace>\w+)(?::(?P<kind>\w+))?\})$")
_GLOBAL_FLAGS = re.compile(r"(?:\(\?[aiLmsux]+\))*")

_PARAM_KINDS = {
    "str": r"[^/]+",
    "int": r"-?\d+",
    "path": r".+",
}


def normalize(prefix: str, path: RoutePath) -> RoutePath:
    """
    Combine ``prefix`` with a method ``path``.

    The result has no duplicate separators and no trailing separator except
    for the root path ``"/"``. Pattern paths are combined by pattern
    concatenation instead.

    Raises:
        PathFault: If the prefix is not a string or the path is neither a
            string nor a compiled pattern.
    """
    if not isinstance(prefix, str):
        raise PathFault(prefix, "prefix must be a string")

    if isinstance(path, re.Pattern):
        return _join_pattern(prefix, path)

    if not isinstance(path, str):
        raise PathFault(path, "path must be a string or a compiled pattern")

    joined = _SEPARATOR_RUN.sub(SEPARATOR, prefix + path)
    if joined != SEPARATOR and joined.endswith(SEPARATOR):
        joined = joined.rstrip(SEPARATOR)
    return joined or SEPARATOR


def _join_pattern(prefix: str, pattern: Pattern[str]) -> Pattern[str]:
    if not prefix:
        return pattern

    flags_match = _GLOBAL_FLAGS.match(pattern.pattern)
    flags = flags_match.group(0)
    source = pattern.pattern[flags_match.end():]

    anchored = source.startswith("^")
    if anchored:
        source = source[1:]

    if source.startswith(("/", r"\/")):
        prefix = prefix.rstrip(SEPARATOR)
    literal = re.escape(_SEPARATOR_RUN.sub(SEPARATOR, prefix))

    return re.compile(flags + ("^" if anchored else "") + literal + source, pattern.flags)


def is_pattern(path: RoutePath) -> bool:
    """Return True if ``path`` is a compiled pattern rather than a literal."""
    return isinstance(path, re.Pattern)


def compile_path(path: RoutePath) -> Pattern[str]:
    """
    Compile a route path into an anchored matcher.

    Literal segments match exactly; ``:name`` and ``{name}`` / ``{name:int}``
    segments capture named parameters; a final ``*`` segment captures the
    rest of the path as ``wild``. Pattern paths are used as they are.
    """
    if isinstance(path, re.Pattern):
        return path

    if path == SEPARATOR:
        return re.compile(r"^/$")

    parts = []
    for segment in path.strip(SEPARATOR).split(SEPARATOR):
        if segment == "*":
            parts.append(r"(?P<wild>.*)")
            continue
        match = _PARAM_SEGMENT.match(segment)
        if match is None:
            parts.append(re.escape(segment))
            continue
        name = match.group("colon") or match.group("brace")
        kind = match.group("kind") or "str"
        if kind not in _PARAM_KINDS:
            raise PathFault(path, f"unknown parameter type '{kind}' in segment '{segment}'")
        parts.append(f"(?P<{name}>{_PARAM_KINDS[kind]})")

    return re.compile("^/" + "/".join(parts) + "/?$")
