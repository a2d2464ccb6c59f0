"""Proxy path patterns.

A pattern without ``*`` is a literal prefix of the raw request path, so
``/api`` matches ``/api/users`` and ``/apiary`` alike. A pattern with ``*``
is split on the first ``*``: the path must start with the part before it
and end with the part after it. Any further ``*`` is compared literally.
"""

from __future__ import annotations

from typing import Iterable

from ..settings import DEFAULT_PROXY_PATHS, normalize_proxy_paths

WILDCARD = "*"


def pattern_matches(pattern: str, path: str) -> bool:
    if WILDCARD in pattern:
        prefix, suffix = pattern.split(WILDCARD, 1)
        return path.startswith(prefix) and path.endswith(suffix)
    return path.startswith(pattern)


def matches(patterns: Iterable[str], path: str) -> bool:
    """True if any pattern matches; an empty set means ``/query``."""
    return any(
        pattern_matches(pattern, path)
        for pattern in normalize_proxy_paths(tuple(patterns))
    )


class PathMatcher:
    """Proxy patterns bound once at startup, in configured order."""

    def __init__(self, patterns: Iterable[str] = DEFAULT_PROXY_PATHS) -> None:
        self._patterns: tuple[str, ...] = normalize_proxy_paths(tuple(patterns))

    @property
    def patterns(self) -> tuple[str, ...]:
        return self._patterns

    def matches(self, path: str) -> bool:
        return any(pattern_matches(p, path) for p in self._patterns)
