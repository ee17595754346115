"""Serving entry point.

Starts a pounce ASGI server with the live trellis App object. pounce is
an optional dependency (``pip install trellis[server]``); any other ASGI
server can host the App directly.
"""


def run_server(
    app: object,
    host: str,
    port: int,
    *,
    reload: bool = False,
) -> None:
    """Start a pounce server for *app* and block until it stops.

    Pounce's ``run()`` takes an import string (e.g., ``"myapp:app"``),
    but here we have a live ``App`` object, so ``pounce.Server`` is used
    directly with the ASGI callable.

    Args:
        app: ASGI callable (trellis App instance).
        host: Bind host address.
        port: Bind port number.
        reload: Enable auto-reload on file changes (debug mode).
    """
    from pounce.config import ServerConfig
    from pounce.server import Server

    config = ServerConfig(
        host=host,
        port=port,
        workers=1,
        reload=reload,
    )
    server = Server(config, app)
    server.run()
