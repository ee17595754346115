"""Route frozen dataclass."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Route:
    """A registered route.

    Created by ``Router.map()`` and never mutated. ``path`` is the
    pattern relative to the owning router's base path; parameter
    segments start with ``:`` (``/users/:id``).
    """

    method: str
    path: str
    middleware: tuple[Any, ...]
