"""Immutable HTTP request.

Frozen metadata with async body access. Middleware communicates through
the request context, never by mutating the request.
"""

from __future__ import annotations

import json as json_module
from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from typing import Any

from trellis._internal.asgi import Receive, Scope
from trellis.http.headers import Headers
from trellis.http.query import QueryParams


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    ``path`` is the percent-decoded path the ASGI server hands over.
    ``raw_path`` is the path exactly as received (still percent-encoded,
    no query string); route matching works on it so that parameter
    segments are decoded once, after splitting.
    """

    method: str
    path: str
    raw_path: str
    headers: Headers
    query: QueryParams
    http_version: str
    server: tuple[str, int] | None
    client: tuple[str, int] | None

    # Private: ASGI receive callable for body streaming
    _receive: Receive

    # Private: body cache (the dict is mutable, the field reference is not)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Computed properties --

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def content_length(self) -> int | None:
        """The Content-Length header as int."""
        value = self.headers.get("content-length")
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None

    @property
    def url(self) -> str:
        """Request path plus query string, as received."""
        qs = self.query.raw
        if qs:
            return f"{self.raw_path}?{qs.decode('latin-1')}"
        return self.raw_path

    @property
    def remote(self) -> str:
        """``host:port`` of the client, or ``"unknown"``."""
        if self.client is None:
            return "unknown"
        host, port = self.client
        return f"{host}:{port}"

    # -- Async body access --

    async def body(self) -> bytes:
        """Read the full request body.

        Result is cached — the ASGI receive is consumed once, then
        the same bytes are returned on subsequent calls.
        """
        if "_body" in self._cache:
            return self._cache["_body"]
        chunks = [chunk async for chunk in self.stream()]
        result = b"".join(chunks)
        self._cache["_body"] = result
        return result

    async def stream(self) -> AsyncGenerator[bytes]:
        """Stream the request body in chunks."""
        while True:
            message = await self._receive()
            if message["type"] == "http.disconnect":
                break
            body = message.get("body", b"")
            if body:
                yield body
            if not message.get("more_body", False):
                break

    async def text(self, encoding: str = "utf-8") -> str:
        """Read the body as text."""
        raw = await self.body()
        return raw.decode(encoding)

    async def json(self) -> Any:
        """Parse the body as JSON."""
        raw = await self.body()
        return json_module.loads(raw)

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        path = scope["path"]
        raw = scope.get("raw_path")
        # Some servers leave the query string on raw_path
        raw_path = raw.decode("latin-1").split("?", 1)[0] if raw else path
        server = scope.get("server")
        client = scope.get("client")
        return cls(
            method=scope["method"].upper(),
            path=path,
            raw_path=raw_path,
            headers=Headers(tuple(scope.get("headers", ()))),
            query=QueryParams(scope.get("query_string", b"")),
            http_version=scope.get("http_version", "1.1"),
            server=tuple(server) if server else None,
            client=tuple(client) if client else None,
            _receive=receive,
        )
