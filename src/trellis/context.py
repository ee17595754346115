"""Per-request context: the property bag shared along one request's chain.

Provides:
- ``Context``: a mutable mapping created fresh for each request, with
  typed accessors for the keys the core itself produces.
- ``context_var``: the current ``Context`` for this task.

Keys are namespaced by feature (``req.id``, ``req.params``,
``req.query`` ...) so collaborators do not collide.

Thread safety:
    A context is owned by a single request task and never shared, and
    ``ContextVar`` is task-local under asyncio. No locks needed.
"""

from collections.abc import Iterator, MutableMapping
from contextvars import ContextVar
from typing import Any

# -- Well-known keys --

REQUEST_ID = "req.id"
"""Monotonic sequence id assigned by the dispatch entry."""

PARAMS = "req.params"
"""Path parameters, published only when parametrized matching matched."""

QUERY = "req.query"
FORM = "req.form"
JSON = "req.json"
TEXT = "req.text"
BLOB = "req.blob"


class Context(MutableMapping[str, Any]):
    """Mutable key/value bag for inter-middleware communication.

    Usage::

        async def load_user(request, response, context, next):
            context["auth.user"] = await lookup(context.params["id"])
            await next()
    """

    __slots__ = ("_data",)

    def __init__(self, request_id: int | None = None) -> None:
        self._data: dict[str, Any] = {}
        if request_id is not None:
            self._data[REQUEST_ID] = request_id

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        del self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"<Context {self._data!r}>"

    @property
    def request_id(self) -> int | None:
        return self._data.get(REQUEST_ID)

    @property
    def params(self) -> dict[str, str]:
        """Extracted path parameters; empty when nothing was published."""
        return self._data.get(PARAMS, {})

    @params.setter
    def params(self, value: dict[str, str]) -> None:
        self._data[PARAMS] = value


context_var: ContextVar[Context] = ContextVar("trellis_context")
"""The current request's context. Set by the dispatch entry."""


def get_context() -> Context:
    """Return the current request's context.

    Raises ``LookupError`` if called outside a request.
    """
    return context_var.get()
