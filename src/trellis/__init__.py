"""Trellis — chain-of-responsibility middleware and routing for ASGI.

Requests flow through ordered middleware chains that can inspect,
mutate, or short-circuit them. Routers match method + path (optionally
with ``:param`` segments) and nest by mounting.

Basic usage::

    from trellis import App, ErrorMiddleware, default_not_found

    app = App()
    app.use(ErrorMiddleware(), default_not_found)
    app.router.enable_parametrized_matching()

    @app.route("/hello/:name")
    async def hello(request, response, context, next):
        response.respond(200, f"Hello, {context.params['name']}!")

    app.run()
"""

__version__ = "0.1.0"
__all__ = [
    "RESPONSE_NOT_SENT",
    "AccessLog",
    "App",
    "AppConfig",
    "BadRequest",
    "CORSConfig",
    "CORSMiddleware",
    "ConfigurationError",
    "Context",
    "ErrorMiddleware",
    "HTTPError",
    "Middleware",
    "Next",
    "NotFound",
    "Request",
    "Response",
    "Result",
    "Router",
    "StaticFiles",
    "TrellisError",
    "default_not_found",
    "get_context",
    "load_config",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import trellis`` fast while providing a clean top-level API.
    """
    if name == "App":
        from trellis.app import App

        return App

    if name in ("AppConfig", "load_config"):
        from trellis import config as _config

        return getattr(_config, name)

    if name == "Router":
        from trellis.routing.router import Router

        return Router

    if name == "Result":
        from trellis.http.result import Result

        return Result

    if name == "Request":
        from trellis.http.request import Request

        return Request

    if name in ("Response", "RESPONSE_NOT_SENT"):
        from trellis.http import response as _resp

        return getattr(_resp, name)

    if name in ("Context", "get_context"):
        from trellis import context as _ctx

        return getattr(_ctx, name)

    if name in (
        "AccessLog",
        "CORSConfig",
        "CORSMiddleware",
        "ErrorMiddleware",
        "Middleware",
        "Next",
        "StaticFiles",
        "default_not_found",
    ):
        from trellis import middleware as _mw

        return getattr(_mw, name)

    if name in ("BadRequest", "ConfigurationError", "HTTPError", "NotFound", "TrellisError"):
        from trellis import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
