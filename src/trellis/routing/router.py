"""Router — global middleware, an ordered route table, and mounting.

A router is itself middleware: ``Router.__call__`` has the middleware
signature. Mounting a child router simply registers the child as global
middleware of the parent, after extending the child's base path, so
nested routing needs no special cases anywhere else.

Route matching is opt-in and is just more global middleware::

    api = Router()
    api.enable_parametrized_matching()
    api.get("/v1/users/:id", show_user)

    root = Router()
    root.use(ErrorMiddleware(), default_not_found)
    root.mount("/api", api)

Routes and middleware are registered during setup; the first request
freezes the whole tree.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from trellis._internal.asgi import Receive, Scope, Send
from trellis.context import Context
from trellis.errors import ConfigurationError
from trellis.http.request import Request
from trellis.http.response import Response
from trellis.middleware.protocol import Next
from trellis.routing.matching import match_exact, match_params
from trellis.routing.pipeline import build_pipeline
from trellis.routing.route import Route
from trellis.server.handler import RequestIdCounter, handle_request

logger = logging.getLogger("trellis.routing")


def normalize_mount_path(path: str) -> str:
    """Normalize a mount path to ``/segment/...`` with no trailing slash.

    ``"api"``, ``"/api/"`` and ``"/api"`` all become ``"/api"``;
    ``""`` and ``"/"`` become ``""`` (mount at the parent's own base).
    """
    stripped = path.strip("/")
    return f"/{stripped}" if stripped else ""


class Router:
    """Ordered middleware chain plus an ordered route table.

    Usage::

        router = Router()
        router.use(log_requests).enable_simple_matching()
        router.get("/health", health)
        router.post("/users", read_json, create_user)

    Thread safety:
        Registration is single-threaded setup work. ``freeze()`` uses a
        lock with a double check so concurrent first requests freeze the
        tree exactly once; afterwards the route table and middleware are
        only read.
    """

    __slots__ = (
        "_base_path",
        "_children",
        "_freeze_lock",
        "_frozen",
        "_middleware",
        "_mounted",
        "_routes",
        "request_ids",
    )

    def __init__(self) -> None:
        self._base_path = ""
        self._middleware: list[Any] = []
        self._routes: list[Route] = []
        # (mount path, child) in mount order
        self._children: list[tuple[str, Router]] = []
        self._mounted = False
        self._frozen = False
        self._freeze_lock = threading.Lock()
        # Used by handle_request() when this router is the top of the tree
        self.request_ids = RequestIdCounter()

    def __repr__(self) -> str:
        return (
            f"<Router base={self._base_path!r} middleware={len(self._middleware)} "
            f"routes={len(self._routes)}>"
        )

    # -- Introspection --

    @property
    def base_path(self) -> str:
        """Prefix prepended to every route pattern of this router."""
        return self._base_path

    @property
    def routes(self) -> tuple[Route, ...]:
        """Registered routes, in registration order."""
        return tuple(self._routes)

    @property
    def middleware(self) -> tuple[Any, ...]:
        """Global middleware, in registration order."""
        return tuple(self._middleware)

    @property
    def frozen(self) -> bool:
        return self._frozen

    # -- Registration --

    def use(self, *middleware: Any) -> Router:
        """Append global middleware. Returns the router for chaining."""
        self._check_not_frozen()
        self._middleware.extend(middleware)
        return self

    def map(self, method: str, path: str, *middleware: Any) -> Router:
        """Register a route: *method* and *path* run *middleware* in order."""
        self._check_not_frozen()
        self._routes.append(Route(method=method.upper(), path=path, middleware=middleware))
        return self

    def get(self, path: str, *middleware: Any) -> Router:
        return self.map("GET", path, *middleware)

    def post(self, path: str, *middleware: Any) -> Router:
        return self.map("POST", path, *middleware)

    def put(self, path: str, *middleware: Any) -> Router:
        return self.map("PUT", path, *middleware)

    def patch(self, path: str, *middleware: Any) -> Router:
        return self.map("PATCH", path, *middleware)

    def delete(self, path: str, *middleware: Any) -> Router:
        return self.map("DELETE", path, *middleware)

    def mount(self, path: str, router: Router) -> Router:
        """Mount *router* under *path*, relative to this router's base path.

        The child becomes one global middleware of this router, placed at
        the current end of the chain.

        Raises ``ConfigurationError`` when mounting a router into itself,
        mounting a router that is already mounted somewhere, or mounting
        a router that has already been frozen.
        """
        self._check_not_frozen()
        if router is self:
            msg = "A router cannot be mounted into itself."
            raise ConfigurationError(msg)
        if router._mounted:
            msg = f"Router is already mounted at {router.base_path!r}."
            raise ConfigurationError(msg)
        if router.frozen:
            msg = "Cannot mount a router that is already serving requests."
            raise ConfigurationError(msg)

        mount_path = normalize_mount_path(path)
        router._mounted = True
        router._set_base_path(self._base_path + mount_path)
        self._children.append((mount_path, router))
        return self.use(router)

    def enable_simple_matching(self) -> Router:
        """Install exact method + path matching as global middleware."""
        return self.use(self._match_simple)

    def enable_parametrized_matching(self) -> Router:
        """Install ``:param`` aware matching as global middleware."""
        return self.use(self._match_parametrized)

    def freeze(self) -> None:
        """Make this router and every mounted router read-only."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            for _, child in self._children:
                child.freeze()
            self._frozen = True

    # -- Dispatch --

    async def __call__(
        self,
        request: Request,
        response: Response,
        context: Context,
        next: Next,
    ) -> None:
        """Run the global middleware, then always continue the outer chain."""
        await build_pipeline(self._middleware, request, response, context)()
        await next()

    async def handle_request(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
        *,
        request_ids: RequestIdCounter | None = None,
    ) -> None:
        """Serve one ASGI request with this router at the top of the tree."""
        self.freeze()
        await handle_request(
            scope,
            receive,
            send,
            router=self,
            request_ids=request_ids or self.request_ids,
        )

    # -- Matching middleware --

    async def _match_simple(
        self,
        request: Request,
        response: Response,
        context: Context,
        next: Next,
    ) -> None:
        for route in self._routes:
            if request.method == route.method and match_exact(
                self._base_path + route.path, request.raw_path
            ):
                logger.debug("%s %s matched %s", request.method, request.raw_path, route.path)
                await build_pipeline(route.middleware, request, response, context)()
                break

        await next()

    async def _match_parametrized(
        self,
        request: Request,
        response: Response,
        context: Context,
        next: Next,
    ) -> None:
        for route in self._routes:
            if request.method != route.method:
                continue
            params = match_params(self._base_path + route.path, request.raw_path)
            if params is not None:
                logger.debug("%s %s matched %s", request.method, request.raw_path, route.path)
                context.params = params
                await build_pipeline(route.middleware, request, response, context)()
                break

        await next()

    # -- Internal --

    def _set_base_path(self, base_path: str) -> None:
        self._base_path = base_path
        for mount_path, child in self._children:
            child._set_base_path(base_path + mount_path)

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify a router after it has started serving requests. "
                "Register routes, middleware, and mounts before the first request."
            )
            raise RuntimeError(msg)
