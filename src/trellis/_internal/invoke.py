"""Invoke helper — call sync or async middleware uniformly.

Middleware is normally ``async def``. Plain functions are accepted as
leaf handlers (they can write the response but cannot await ``next``),
so the pipeline calls every unit through this one helper.
"""

import inspect
from typing import Any


async def invoke(handler: Any, *args: Any) -> Any:
    """Call *handler* and await the result if it is awaitable.

    Works with both kinds of leaf handler::

        def health(request, response, context, next):
            response.respond(200, "ok")

        async def user(request, response, context, next):
            row = await fetch_user(context.params["id"])
            response.respond_json(200, row)
    """
    result = handler(*args)
    if inspect.isawaitable(result):
        result = await result
    return result
