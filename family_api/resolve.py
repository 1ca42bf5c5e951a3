from __future__ import annotations

from typing import Any

try:
    from .errors import InvalidArgument
except ImportError:  # pragma: no cover
    # Support running with CWD=family_api (e.g., `python -m uvicorn main:app`).
    from errors import InvalidArgument

_PG_INT_MAX = 2**31 - 1


def _parse_person_id(raw: Any, *, name: str = "person_id") -> int:
    """Parse a request-supplied person id, rejecting it before any store access."""

    if raw is None or isinstance(raw, bool):
        raise InvalidArgument(f"{name} is required")
    s = str(raw).strip()
    if not s:
        raise InvalidArgument(f"{name} is required")
    try:
        value = int(s)
    except ValueError:
        raise InvalidArgument(f"{name} must be a positive integer, got {s!r}") from None
    if value <= 0 or value > _PG_INT_MAX:
        raise InvalidArgument(f"{name} must be a positive integer, got {s!r}")
    return value
