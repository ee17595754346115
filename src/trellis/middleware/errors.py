"""Error-handling middleware.

``ErrorMiddleware`` wraps ``next`` and turns uncaught exceptions into
error responses. Install it first so it covers the whole chain::

    router.use(ErrorMiddleware(debug=config.debug), default_not_found)

``default_not_found`` answers 404 when nothing downstream responded.
"""

import logging
import traceback

from trellis.context import Context
from trellis.errors import HTTPError
from trellis.http.request import Request
from trellis.http.response import Response
from trellis.middleware.protocol import Next

logger = logging.getLogger("trellis.server")


class ErrorMiddleware:
    """Convert exceptions raised downstream into error responses.

    - ``HTTPError``: its status, detail and headers.
    - anything else: 500. The body carries the traceback in debug mode
      and a generic message otherwise.

    When the response has already been sent to the client only the
    logging happens.
    """

    __slots__ = ("debug",)

    def __init__(self, *, debug: bool = False) -> None:
        self.debug = debug

    async def __call__(
        self,
        request: Request,
        response: Response,
        context: Context,
        next: Next,
    ) -> None:
        try:
            await next()
        except HTTPError as exc:
            logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)
            if response.closed:
                return
            response.respond(exc.status, exc.detail or f"Error {exc.status}", "text/plain; charset=utf-8")
            for name, value in exc.headers:
                response.set_header(name, value)
        except Exception as exc:
            logger.exception("500 %s %s", request.method, request.path)
            if response.closed:
                return
            if self.debug:
                body = "".join(traceback.format_exception(exc))
            else:
                body = "An unexpected error occurred."
            response.respond(500, body, "text/plain; charset=utf-8")


async def default_not_found(
    request: Request,
    response: Response,
    context: Context,
    next: Next,
) -> None:
    """Answer 404 when the downstream chain left the response unsent."""
    await next()

    if not response.is_sent:
        response.respond(404, "Not Found", "text/plain; charset=utf-8")
