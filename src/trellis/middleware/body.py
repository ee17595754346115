"""Request parsing middleware.

Each one reads part of the request once and publishes the result into
the context under its ``req.*`` key, then continues the chain. Install
them per route, ahead of the handler that needs the data::

    router.post("/users", read_json, create_user)

    async def create_user(request, response, context, next):
        payload = context[JSON]
"""

from urllib.parse import parse_qs

from trellis.context import BLOB, FORM, JSON, QUERY, TEXT, Context
from trellis.errors import BadRequest
from trellis.http.request import Request
from trellis.http.response import Response
from trellis.middleware.protocol import Next


def parse_form_data(text: str, separator: str = ",") -> dict[str, str]:
    """Parse ``a=1&b=2`` pairs, joining repeated keys with *separator*.

    Keys without ``=`` map to the empty string.
    """
    parsed = parse_qs(text, keep_blank_values=True)
    return {key: separator.join(values) for key, values in parsed.items()}


async def parse_query(request: Request, response: Response, context: Context, next: Next) -> None:
    """Publish the query string as ``req.query`` (repeated keys joined)."""
    context[QUERY] = request.query.joined()
    await next()


async def read_text(request: Request, response: Response, context: Context, next: Next) -> None:
    """Publish the body decoded as UTF-8 text as ``req.text``."""
    try:
        context[TEXT] = await request.text()
    except UnicodeDecodeError as exc:
        raise BadRequest("Request body is not valid UTF-8") from exc
    await next()


async def read_blob(request: Request, response: Response, context: Context, next: Next) -> None:
    """Publish the raw body bytes as ``req.blob``."""
    context[BLOB] = await request.body()
    await next()


async def read_json(request: Request, response: Response, context: Context, next: Next) -> None:
    """Publish the body parsed as JSON as ``req.json``.

    Raises ``BadRequest`` for an empty or malformed body.
    """
    try:
        context[JSON] = await request.json()
    except ValueError as exc:
        raise BadRequest(f"Invalid JSON body: {exc}") from exc
    await next()


async def read_form(request: Request, response: Response, context: Context, next: Next) -> None:
    """Publish a url-encoded body as ``req.form``."""
    try:
        text = await request.text()
    except UnicodeDecodeError as exc:
        raise BadRequest("Form body is not valid UTF-8") from exc
    context[FORM] = parse_form_data(text)
    await next()
