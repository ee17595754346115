"""Request dispatch entry — one call per accepted ASGI request.

The only place that allocates per-request state: a fresh ``Context``
seeded with a sequence id, and a ``Response`` in the unsent state. It
runs the top-level router and, whatever happens inside, finalizes the
response exactly once before returning or re-raising.
"""

import logging
import threading
from typing import Any

from trellis._internal.asgi import Receive, Scope, Send
from trellis.context import Context, context_var
from trellis.http.request import Request
from trellis.http.response import Response

logger = logging.getLogger("trellis.server")

# Forced status when no middleware answered the request.
NOT_IMPLEMENTED = 501


class RequestIdCounter:
    """Monotonically increasing request sequence ids, starting at 1.

    Owned by the top-level server object and shared by every request it
    serves. ``next()`` is atomic across threads (free-threading workers
    may accept concurrently), so ids are pairwise distinct.
    """

    __slots__ = ("_lock", "_value")

    def __init__(self, start: int = 0) -> None:
        self._lock = threading.Lock()
        self._value = start

    def __repr__(self) -> str:
        return f"<RequestIdCounter last={self._value}>"

    @property
    def last(self) -> int:
        """The most recently issued id (``0`` before the first request)."""
        return self._value

    def next(self) -> int:
        with self._lock:
            self._value += 1
            return self._value


async def _done() -> None:
    """Continuation past the top-level router: nothing left to run."""


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: Any,
    request_ids: RequestIdCounter,
) -> None:
    """Process a single HTTP request through *router*.

    *router* is anything with the middleware signature, normally a
    ``Router``. Exceptions from the chain are not handled here: install
    ``ErrorMiddleware`` to turn them into error responses. Without it
    the client gets a bare 501 and the exception reaches the server.
    """
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)
    response = Response(send, head_only=request.method == "HEAD")
    context = Context(request_id=request_ids.next())

    # Set request context var (reset after dispatch)
    token = context_var.set(context)
    try:
        await router(request, response, context, _done)
    finally:
        context_var.reset(token)
        if not response.is_sent:
            logger.debug(
                "%s %s: no middleware responded, sending %d",
                request.method,
                request.path,
                NOT_IMPLEMENTED,
            )
            response.status = NOT_IMPLEMENTED
        await response.close()
