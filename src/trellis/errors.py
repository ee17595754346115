"""Trellis exception hierarchy.

Shared across the router, the dispatch entry and the bundled middleware
so every module raises and catches the same types. The core itself never
interprets these; only ``ErrorMiddleware`` turns them into responses.
"""

from dataclasses import dataclass


class TrellisError(Exception):
    """Base for all trellis-specific errors."""


class ConfigurationError(TrellisError):
    """Raised when routers or configuration are assembled incorrectly.

    Typically surfaces at startup: a bad ``appsettings.cfg`` value, a
    router mounted into itself, or a child router mounted twice.
    """


class ResponseClosedError(TrellisError):
    """Raised when a finalized response is modified."""


@dataclass(frozen=True, slots=True)
class HTTPError(TrellisError):
    """An error that maps directly to an HTTP status code.

    Raised by handlers or middleware. ``ErrorMiddleware`` catches these
    and writes ``status``, ``detail`` and ``headers`` to the response.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class BadRequest(HTTPError):  # noqa: N818
    """400 — the request body or query could not be understood."""

    def __init__(self, detail: str = "Bad Request") -> None:
        super().__init__(status=400, detail=detail)


class NotFound(HTTPError):  # noqa: N818
    """404 — nothing answered the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)
