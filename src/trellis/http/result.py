"""Service-level operation result.

A ``Result`` carries either a payload or the exception that prevented
one, together with the status code the caller should answer with.
Expected failures (validation, missing rows) are returned as results
instead of raised, so handlers can answer them directly::

    def find_user(user_id: str) -> Result:
        row = db.get(user_id)
        if row is None:
            return Result.fail(LookupError(f"user {user_id} not found"), 404)
        return Result.ok(row)

    async def show_user(request, response, context, next):
        response.respond_result(find_user(context.params["id"]))
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Result:
    """Payload or error, plus the suggested HTTP status."""

    payload: Any = None
    error: BaseException | None = None
    status: int = 200

    def __post_init__(self) -> None:
        if self.payload is not None and self.error is not None:
            msg = "A Result holds either a payload or an error, not both."
            raise ValueError(msg)

    @classmethod
    def ok(cls, payload: Any, status: int = 200) -> "Result":
        return cls(payload=payload, status=status)

    @classmethod
    def fail(cls, error: BaseException, status: int = 500) -> "Result":
        return cls(error=error, status=status)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def error_body(self) -> dict[str, Any]:
        """JSON shape of the error: exception type name and message."""
        if self.error is None:
            return {}
        return {"error": type(self.error).__name__, "message": str(self.error)}
