"""Middleware protocol and Next type alias.

A middleware is any callable matching::

    async def my_mw(request: Request, response: Response,
                    context: Context, next: Next) -> None: ...

No base class required. Routers implement the same shape, which is what
lets a router be mounted as a single middleware of its parent.

``next`` takes no arguments: request, response and context are shared
by reference for the whole chain. Code after ``await next()`` runs once
the entire downstream chain has finished (onion order). Not calling
``next`` short-circuits the chain.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol, TypeAlias

from trellis.context import Context
from trellis.http.request import Request
from trellis.http.response import Response

# The continuation handed to every middleware
Next: TypeAlias = Callable[[], Awaitable[None]]


class Middleware(Protocol):
    """Protocol for trellis middleware.

    Accepts both functions and callable objects::

        # Function middleware
        async def timing(request, response, context, next):
            start = time.monotonic()
            await next()
            response.set_header("X-Time", f"{time.monotonic() - start:.3f}")

        # Class middleware
        class RequireJson:
            async def __call__(self, request, response, context, next):
                if request.content_type != "application/json":
                    response.respond(415, "expected JSON")
                    return
                await next()
    """

    async def __call__(
        self,
        request: Request,
        response: Response,
        context: Context,
        next: Next,
    ) -> None: ...
