"""Pipeline builder — an ordered middleware list reduced to one continuation.

The pipeline is an explicit state object: the list plus an index that
starts at -1. Each call advances the index by one and, while the index
is in bounds and the response is still unsent, invokes that middleware
with the pipeline itself as ``next``.
"""

from collections.abc import Sequence
from typing import Any

from trellis._internal.invoke import invoke
from trellis.context import Context
from trellis.http.request import Request
from trellis.http.response import Response


class Pipeline:
    """Sequential chain-of-responsibility over a fixed middleware list.

    Usage::

        pipeline = build_pipeline([auth, load_user, show_user], req, res, ctx)
        await pipeline()

    Calling the pipeline again after the end of the list, or after the
    response has been sent, does nothing.
    """

    __slots__ = ("_index", "_middleware", "context", "request", "response")

    def __init__(
        self,
        middleware: Sequence[Any],
        request: Request,
        response: Response,
        context: Context,
    ) -> None:
        self._middleware = middleware
        self._index = -1
        self.request = request
        self.response = response
        self.context = context

    def __repr__(self) -> str:
        return f"<Pipeline {self._index + 1}/{len(self._middleware)}>"

    @property
    def index(self) -> int:
        """Index of the middleware entered last (-1 before the first call)."""
        return self._index

    async def __call__(self) -> None:
        self._index += 1
        if self._index < len(self._middleware) and not self.response.is_sent:
            await invoke(
                self._middleware[self._index],
                self.request,
                self.response,
                self.context,
                self,
            )


def build_pipeline(
    middleware: Sequence[Any],
    request: Request,
    response: Response,
    context: Context,
) -> Pipeline:
    """Compose *middleware* into a single zero-argument continuation."""
    return Pipeline(middleware, request, response, context)
