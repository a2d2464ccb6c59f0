"""Static file resolution with SPA fallback.

Unknown paths are client-side routes: they get the entry document instead
of a 404. The entry document is never cacheable, whether it is served as
the fallback or requested directly as ``/`` or ``/index.html``, so a new
deployment is picked up on the next load. Every other file keeps the file
server's default validators (ETag / Last-Modified).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from starlette.responses import PlainTextResponse, Response
from starlette.staticfiles import StaticFiles
from starlette.types import Scope

ENTRY_DOCUMENT = "index.html"
NO_CACHE = "no-cache, no-store, must-revalidate"
NOT_FOUND_BODY = "404 page not found"

_ENTRY_PATHS = frozenset({"/", f"/{ENTRY_DOCUMENT}"})


@dataclass(frozen=True, slots=True)
class ServeInstruction:
    """What to send for a static request.

    Attributes:
        file_path: File on disk to deliver.
        fallback: True when the request path did not exist and the entry
            document stands in for it.
        no_cache: Whether the response must carry the no-cache override.
    """

    file_path: Path
    fallback: bool
    no_cache: bool


def _candidate(root: Path, path: str) -> Path | None:
    """Join ``path`` onto ``root``; None if the result escapes the root."""
    base = os.path.normpath(root)
    joined = os.path.normpath(os.path.join(base, path.lstrip("/")))
    if os.path.commonpath([base, joined]) != base:
        return None
    return Path(joined)


def resolve_static(root: Path, path: str) -> ServeInstruction:
    entry = Path(root) / ENTRY_DOCUMENT
    candidate = _candidate(Path(root), path)

    if candidate is not None:
        if candidate.is_dir():
            candidate = candidate / ENTRY_DOCUMENT
        if candidate.is_file():
            return ServeInstruction(
                file_path=candidate,
                fallback=False,
                no_cache=path in _ENTRY_PATHS,
            )

    return ServeInstruction(file_path=entry, fallback=True, no_cache=True)


class StaticResolver:
    """Resolve and serve files under a fixed root directory."""

    def __init__(self, root: Path) -> None:
        self._root = Path(root)
        self._files = StaticFiles(directory=self._root, check_dir=False)

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, path: str) -> ServeInstruction:
        return resolve_static(self._root, path)

    def respond(self, instruction: ServeInstruction, scope: Scope) -> Response:
        """Build the file response; conditional requests may yield 304."""
        try:
            stat_result = os.stat(instruction.file_path)
        except FileNotFoundError:
            # Only reachable when the entry document itself is missing.
            return PlainTextResponse(NOT_FOUND_BODY, status_code=404)

        response = self._files.file_response(instruction.file_path, stat_result, scope)
        if instruction.no_cache:
            response.headers["Cache-Control"] = NO_CACHE
        return response
