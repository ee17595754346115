"""Trellis application class — the top-level server object.

Owns the configuration, the root router and the request-id counter, and
exposes the whole tree as an ASGI 3.0 callable. Mutable during setup
(middleware, routes, mounts, hooks); frozen when the first request or
the lifespan startup arrives.
"""

from __future__ import annotations

import inspect
import logging
import threading
from collections.abc import Callable
from typing import Any

from trellis._internal.asgi import Receive, Scope, Send
from trellis.config import AppConfig
from trellis.routing.router import Router
from trellis.server.handler import RequestIdCounter

logger = logging.getLogger("trellis.server")


class App:
    """The trellis application.

    Usage::

        app = App(load_config())
        app.use(ErrorMiddleware(debug=app.config.debug), default_not_found)
        app.router.enable_parametrized_matching()

        @app.route("/users/:id")
        async def show_user(request, response, context, next):
            response.respond_json(200, {"id": context.params["id"]})

        app.run()

    When ``config.static_dir`` is set, a ``StaticFiles`` middleware for
    it is appended to the root router at freeze time.

    Thread safety:
        Setup is single-threaded. The freeze transition uses a Lock +
        double-check so exactly one thread freezes the app even when
        several workers receive their first request at once.
    """

    __slots__ = (
        "_freeze_lock",
        "_frozen",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
        "request_ids",
        "router",
    )

    def __init__(self, config: AppConfig | None = None, *, router: Router | None = None) -> None:
        self.config: AppConfig = config or AppConfig()
        self.router: Router = router or Router()
        self.request_ids = RequestIdCounter()
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen = False
        self._freeze_lock = threading.Lock()

    # -- Registration --

    def use(self, *middleware: Any) -> App:
        """Append global middleware to the root router."""
        self._check_not_frozen()
        self.router.use(*middleware)
        return self

    def mount(self, path: str, router: Router) -> App:
        """Mount *router* under *path* on the root router."""
        self._check_not_frozen()
        self.router.mount(path, router)
        return self

    def route(
        self,
        path: str,
        *,
        methods: list[str] | None = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a handler on the root router via decorator.

        Args:
            path: Route pattern. Use ``:name`` segments for parameters
                (requires parametrized matching on the root router).
            methods: HTTP methods. Defaults to ``["GET"]``.
        """

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._check_not_frozen()
            for method in methods or ["GET"]:
                self.router.map(method, path, func)
            return func

        return decorator

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register a hook run during ASGI lifespan startup.

        Hooks run in registration order; sync and async are both fine.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register a hook run during ASGI lifespan shutdown."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Serving --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Freeze the app and serve it with pounce until stopped."""
        self._ensure_frozen()

        from trellis.server.dev import run_server

        _host = host or self.config.host
        _port = port or self.config.port
        logger.info("Serving on http://%s:%d", _host, _port)
        run_server(self, _host, _port, reload=self.config.debug)

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        self._ensure_frozen()
        await self.router.handle_request(scope, receive, send, request_ids=self.request_ids)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup (before the first HTTP request), then
        runs the registered hooks and reports completion to the server.
        """
        self._ensure_frozen()

        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    await self.startup()
                except Exception as exc:
                    logger.exception("Startup hook failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await self.shutdown()
                await send({"type": "lifespan.shutdown.complete"})
                return

    async def startup(self) -> None:
        """Run startup hooks in registration order."""
        for hook in self._startup_hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result

    async def shutdown(self) -> None:
        """Run shutdown hooks in registration order."""
        for hook in self._shutdown_hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result

    # -- Internal --

    def _ensure_frozen(self) -> None:
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Freeze the router tree. MUST only be called holding _freeze_lock."""
        if self.config.static_dir is not None:
            from trellis.middleware.static import StaticFiles

            self.router.use(StaticFiles(self.config.static_dir, self.config.static_url))
        self.router.freeze()
        self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register routes, middleware, and hooks before calling app.run()."
            )
            raise RuntimeError(msg)
