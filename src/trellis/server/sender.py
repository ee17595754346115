"""ASGI response sending — turns finalized Response state into ASGI messages."""

import logging

from trellis._internal.asgi import Send
from trellis.http.response import Response

logger = logging.getLogger("trellis.server")


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


async def send_response(response: Response, send: Send) -> None:
    """Emit ``http.response.start`` and one ``http.response.body``."""
    raw_headers: list[tuple[bytes, bytes]] = [
        (b"content-type", response.content_type.encode("latin-1")),
    ]
    for name, value in response.headers:
        lowered = name.lower()
        if lowered in ("content-type", "content-length"):
            continue
        raw_headers.append((lowered.encode("latin-1"), value.encode("latin-1")))

    body = response.body if _body_allowed(response.status) else b""
    if response.body and not body:
        logger.debug("Dropping body of %d response", response.status)

    raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))
    if response.head_only:
        body = b""

    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers,
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": body,
        }
    )
