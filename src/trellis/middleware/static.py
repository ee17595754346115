"""Static file serving middleware.

Serves files from a directory for paths under a URL prefix. Anything
that is not a servable file falls through to the next middleware.
"""

import mimetypes
from pathlib import Path

import anyio

from trellis.context import Context
from trellis.http.request import Request
from trellis.http.response import Response
from trellis.middleware.protocol import Next


class StaticFiles:
    """Middleware that serves static files from a directory.

    Security: resolves symlinks and verifies the final path is within
    the configured directory to prevent path traversal (403).

    Usage::

        router.use(StaticFiles("./public", prefix="/static"))

        # Root-level serving with index files
        router.use(StaticFiles("./site", prefix="/", index="index.html"))
    """

    __slots__ = ("_cache_control", "_directory", "_index", "_prefix")

    def __init__(
        self,
        directory: str | Path,
        prefix: str = "/static",
        *,
        index: str = "index.html",
        cache_control: str = "public, max-age=3600",
    ) -> None:
        self._directory = Path(directory).resolve()
        self._index = index
        self._cache_control = cache_control

        # Root prefix "/" normalizes to ""
        stripped = "/" + prefix.strip("/")
        self._prefix = stripped if stripped != "/" else ""

    async def __call__(
        self,
        request: Request,
        response: Response,
        context: Context,
        next: Next,
    ) -> None:
        if request.method not in ("GET", "HEAD"):
            await next()
            return

        path = request.path
        if self._prefix:
            if not path.startswith(self._prefix + "/") and path != self._prefix:
                await next()
                return
            relative = path[len(self._prefix) :].lstrip("/")
        else:
            relative = path.lstrip("/")

        # The OS rejects paths with NUL bytes; no such file can exist
        if "\x00" in relative:
            await next()
            return

        file_path = anyio.Path((self._directory / relative) if relative else self._directory)
        file_path = await file_path.resolve()
        if not Path(file_path).is_relative_to(self._directory):
            response.respond(403, "Forbidden")
            return

        if await file_path.is_dir():
            file_path = file_path / self._index

        if not await file_path.is_file():
            await next()
            return

        body = await file_path.read_bytes()
        content_type, _ = mimetypes.guess_type(file_path.name)
        response.respond(200, body, content_type or "application/octet-stream")
        response.set_header("Cache-Control", self._cache_control)
