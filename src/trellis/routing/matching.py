"""Route matching — pure functions from (pattern, path) to a match result.

Two strategies:

- exact: the full path must equal the pattern, character for character.
  ``/health/`` does not match ``/health``.
- parametrized: pattern and path are compared segment by segment.
  Segments starting with ``PARAM_MARKER`` capture the corresponding
  path segment, percent-decoded, under the name that follows the marker.

Matching is total: it never raises.
"""

from urllib.parse import unquote

PARAM_MARKER = ":"


def split_path(path: str) -> list[str]:
    """Split *path* on ``/``, ignoring surrounding and repeated slashes.

    Examples::

        "/users/42/"   -> ["users", "42"]
        "//a//b"       -> ["a", "b"]
        "/"            -> []
    """
    return [part for part in path.strip("/").split("/") if part]


def match_exact(pattern: str, path: str) -> bool:
    """True if *path* is literally *pattern*."""
    return pattern == path


def match_params(pattern: str, path: str) -> dict[str, str] | None:
    """Match *path* against *pattern*, returning captured parameters.

    Returns ``None`` when the segment counts differ or a literal segment
    differs. Parameters are returned in pattern order; when a name is
    used twice the later segment wins.

    Examples::

        match_params("/users/:id", "/users/42")        -> {"id": "42"}
        match_params("/users/:id", "/users/abc%20def") -> {"id": "abc def"}
        match_params("/users/:id", "/users/42/extra")  -> None
    """
    pattern_parts = split_path(pattern)
    path_parts = split_path(path)

    if len(pattern_parts) != len(path_parts):
        return None

    params: dict[str, str] = {}
    for pattern_part, path_part in zip(pattern_parts, path_parts, strict=True):
        if pattern_part.startswith(PARAM_MARKER):
            params[pattern_part[len(PARAM_MARKER) :]] = unquote(path_part)
        elif pattern_part != path_part:
            return None
    return params
