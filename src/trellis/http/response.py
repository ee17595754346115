"""Mutable per-request response state.

Unlike the request, a response is written to incrementally by whichever
middleware answers. It starts in the *unsent* state (status
``RESPONSE_NOT_SENT``) and moves to *sent* the moment a real status is
assigned. There is no way back: the sentinel can never be assigned.

``close()`` hands the buffered response to the ASGI ``send`` channel.
It runs at most once; every later call is a no-op and any later
mutation raises ``ResponseClosedError``.
"""

import json as json_module
from typing import Any

from trellis._internal.asgi import Send
from trellis.errors import ResponseClosedError
from trellis.http.result import Result

# Reserved out-of-range status meaning "nobody has answered yet".
RESPONSE_NOT_SENT = 777


def detect_content_type(text: str) -> str:
    """Guess a content type from the first characters of *text*."""
    s = text.lstrip()
    if s.startswith(("{", "[")):
        return "application/json"
    lowered = s[:14].lower()
    if lowered.startswith(("<!doctype html", "<html")):
        return "text/html; charset=utf-8"
    if s.startswith("<"):
        return "application/xml"
    return "text/plain; charset=utf-8"


class Response:
    """Response state for one in-flight request.

    Exclusively owned by its request's task, so no locking is needed.

    Usage inside middleware::

        async def hello(request, response, context, next):
            response.set_header("Cache-Control", "no-store")
            response.respond(200, "hello")
    """

    __slots__ = (
        "_body",
        "_closed",
        "_headers",
        "_send",
        "_status",
        "content_type",
        "head_only",
    )

    def __init__(self, send: Send, *, head_only: bool = False) -> None:
        self._send = send
        # HEAD: headers describe the body but the body is never sent
        self.head_only = head_only
        self._status = RESPONSE_NOT_SENT
        self._headers: list[tuple[str, str]] = []
        self._body = bytearray()
        self._closed = False
        self.content_type = "text/plain; charset=utf-8"

    def __repr__(self) -> str:
        state = "closed" if self._closed else ("sent" if self.is_sent else "unsent")
        return f"<Response {self._status} {state}>"

    # -- State --

    @property
    def status(self) -> int:
        return self._status

    @status.setter
    def status(self, value: int) -> None:
        self._check_open()
        if not isinstance(value, int) or not 100 <= value <= 599:
            msg = f"Invalid status code {value!r}; real responses use 100-599."
            raise ValueError(msg)
        self._status = value

    @property
    def is_sent(self) -> bool:
        """True once any middleware has assigned a real status."""
        return self._status != RESPONSE_NOT_SENT

    @property
    def closed(self) -> bool:
        """True once the response has been handed to the server."""
        return self._closed

    @property
    def headers(self) -> tuple[tuple[str, str], ...]:
        return tuple(self._headers)

    @property
    def body(self) -> bytes:
        return bytes(self._body)

    # -- Headers --

    def get_header(self, name: str) -> str | None:
        """Return the first value set for *name* (case-insensitive)."""
        lowered = name.lower()
        for key, value in self._headers:
            if key.lower() == lowered:
                return value
        return None

    def set_header(self, name: str, value: str) -> None:
        """Set *name*, replacing any value set before."""
        self._check_open()
        lowered = name.lower()
        if lowered == "content-type":
            self.content_type = value
            return
        self._headers = [(k, v) for k, v in self._headers if k.lower() != lowered]
        self._headers.append((name, value))

    def add_header(self, name: str, value: str) -> None:
        """Append a header line, keeping earlier values for the same name."""
        self._check_open()
        self._headers.append((name, value))

    # -- Body --

    def write(self, data: str | bytes) -> None:
        """Append *data* to the buffered body."""
        self._check_open()
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._body.extend(data)

    def clear(self) -> None:
        """Drop the buffered body. Status and headers are kept."""
        self._check_open()
        self._body.clear()

    def respond(
        self,
        status: int,
        body: str | bytes = "",
        content_type: str | None = None,
    ) -> None:
        """Answer the request: set *status* and replace the body.

        When *content_type* is omitted it is detected from a text body,
        or ``application/octet-stream`` for bytes.
        """
        self.status = status
        self._body.clear()
        self.write(body)
        if content_type is not None:
            self.content_type = content_type
        elif isinstance(body, bytes):
            self.content_type = "application/octet-stream"
        else:
            self.content_type = detect_content_type(body)

    def respond_json(self, status: int, data: Any) -> None:
        """Answer with *data* serialized as JSON."""
        self.respond(status, json_module.dumps(data), "application/json")

    def respond_result(self, result: Result) -> None:
        """Answer with a service ``Result`` as JSON, using its status.

        Error results are marked ``Cache-Control: no-store`` and carry
        the exception's type name and message.
        """
        if result.is_error:
            self.set_header("Cache-Control", "no-store")
            self.respond_json(result.status, result.error_body())
        else:
            self.respond_json(result.status, result.payload)

    # -- Finalization --

    async def close(self) -> None:
        """Send the response to the client. Runs at most once."""
        if self._closed:
            return
        if not self.is_sent:
            msg = "Cannot finalize a response before a status has been set."
            raise RuntimeError(msg)
        self._closed = True

        from trellis.server.sender import send_response

        await send_response(self, self._send)

    def _check_open(self) -> None:
        if self._closed:
            msg = "Response has already been sent to the client."
            raise ResponseClosedError(msg)
