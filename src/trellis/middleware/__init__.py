"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(request: Request, response: Response, context: Context, next: Next) -> None

Bundled middleware:
    AccessLog -- One log record per request, X-Request-Id header
    CORSMiddleware -- Cross-Origin Resource Sharing
    ErrorMiddleware -- Exceptions to 4xx/5xx responses
    StaticFiles -- Serve static files from a directory
    default_not_found -- 404 when nothing downstream responded
    parse_query, read_blob, read_form, read_json, read_text -- Request parsing
"""

from trellis.middleware.access_log import AccessLog
from trellis.middleware.body import parse_query, read_blob, read_form, read_json, read_text
from trellis.middleware.cors import CORSConfig, CORSMiddleware
from trellis.middleware.errors import ErrorMiddleware, default_not_found
from trellis.middleware.protocol import Middleware, Next
from trellis.middleware.static import StaticFiles

__all__ = [
    "AccessLog",
    "CORSConfig",
    "CORSMiddleware",
    "ErrorMiddleware",
    "Middleware",
    "Next",
    "StaticFiles",
    "default_not_found",
    "parse_query",
    "read_blob",
    "read_form",
    "read_json",
    "read_text",
]
