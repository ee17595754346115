"""CORS middleware.

Adds Cross-Origin Resource Sharing headers for allowed origins and
answers preflight requests directly.
"""

from dataclasses import dataclass

from trellis.context import Context
from trellis.http.request import Request
from trellis.http.response import Response
from trellis.middleware.protocol import Next


@dataclass(frozen=True, slots=True)
class CORSConfig:
    """CORS middleware configuration.

    All fields have secure defaults (nothing is allowed).
    Override what you need::

        CORSConfig(
            allow_origins=("https://example.com",),
            allow_methods=("GET", "POST"),
        )
    """

    allow_origins: tuple[str, ...] = ()
    allow_methods: tuple[str, ...] = ("GET", "POST", "PUT", "DELETE", "OPTIONS")
    allow_headers: tuple[str, ...] = ("Content-Type", "Authorization")
    expose_headers: tuple[str, ...] = ()
    allow_credentials: bool = False
    max_age: int = 600  # 10 minutes


class CORSMiddleware:
    """Standards-compliant CORS middleware.

    Handles:
    - Preflight ``OPTIONS`` requests (204 with CORS headers, chain stops)
    - Simple and actual requests (CORS headers added, chain continues)
    - Credential support (``Access-Control-Allow-Credentials``)
    - Wildcard origins (``"*"``) when credentials are disabled

    Requests without an ``Origin`` header, or from an origin that is
    not allowed, pass through untouched.

    Usage::

        router.use(CORSMiddleware(CORSConfig(
            allow_origins=config.allowed_origins,
            allow_credentials=True,
        )))
    """

    __slots__ = ("config",)

    def __init__(self, config: CORSConfig | None = None) -> None:
        self.config = config or CORSConfig()

    def _is_allowed_origin(self, origin: str) -> bool:
        if "*" in self.config.allow_origins:
            return True
        lowered = origin.lower()
        return any(allowed.lower() == lowered for allowed in self.config.allow_origins)

    def _add_cors_headers(self, response: Response, origin: str) -> None:
        cfg = self.config

        if "*" in cfg.allow_origins and not cfg.allow_credentials:
            response.set_header("Access-Control-Allow-Origin", "*")
        else:
            response.set_header("Access-Control-Allow-Origin", origin)
            response.add_header("Vary", "Origin")

        if cfg.allow_credentials:
            response.set_header("Access-Control-Allow-Credentials", "true")

        if cfg.expose_headers:
            response.set_header("Access-Control-Expose-Headers", ", ".join(cfg.expose_headers))

    async def __call__(
        self,
        request: Request,
        response: Response,
        context: Context,
        next: Next,
    ) -> None:
        origin = request.headers.get("origin")

        # No Origin header, or not one we serve: not our business
        if origin is None or not self._is_allowed_origin(origin):
            await next()
            return

        self._add_cors_headers(response, origin)

        if request.method == "OPTIONS":
            cfg = self.config
            if request.headers.get("access-control-request-method"):
                response.set_header("Access-Control-Allow-Methods", ", ".join(cfg.allow_methods))
            if cfg.allow_headers:
                response.set_header("Access-Control-Allow-Headers", ", ".join(cfg.allow_headers))
            response.set_header("Access-Control-Max-Age", str(cfg.max_age))
            response.respond(204)
            return

        await next()
