"""Access logging middleware.

One log record per request, emitted after the whole downstream chain has
finished (or failed). The record's fields are also attached through
``extra=`` so structured handlers can pick them up::

    logging.basicConfig(level=logging.INFO)
    router.use(AccessLog())
"""

import logging
import time
import uuid
from datetime import UTC, datetime

from trellis.context import Context
from trellis.http.request import Request
from trellis.http.response import Response
from trellis.middleware.protocol import Next

_access_logger = logging.getLogger("trellis.access")


class AccessLog:
    """Log method, URL, status and duration of every request.

    Also sets ``X-Request-Id`` on the response, using the sequence id
    the dispatch entry put in the context (or a random one if the chain
    is run without it).
    """

    __slots__ = ("header", "logger")

    def __init__(
        self,
        logger: logging.Logger | None = None,
        *,
        header: str = "X-Request-Id",
    ) -> None:
        self.logger = logger or _access_logger
        self.header = header

    async def __call__(
        self,
        request: Request,
        response: Response,
        context: Context,
        next: Next,
    ) -> None:
        request_id = context.request_id
        rid = str(request_id) if request_id is not None else uuid.uuid4().hex[:12]
        started = datetime.now(UTC)
        start = time.perf_counter()

        response.set_header(self.header, rid)

        try:
            await next()
        finally:
            duration_ms = (time.perf_counter() - start) * 1000
            record = {
                "timestamp": started.isoformat(),
                "request_id": rid,
                "method": request.method,
                "url": request.url,
                "remote": request.remote,
                "status": response.status,
                "content_type": response.content_type,
                "content_length": len(response.body),
                "duration_ms": round(duration_ms, 3),
            }
            self.logger.info(
                "%s %s %d %.3fms",
                request.method,
                request.url,
                response.status,
                duration_ms,
                extra={"access": record},
            )
