"""Error kinds surfaced by the family graph engine.

Every failure a caller can see is one of these, rendered by the exception
handlers in ``main.py`` as ``{"error": kind, "detail": message}``.
"""

from __future__ import annotations


class FamilyTreeError(Exception):
    kind = "error"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_json(self) -> dict[str, str]:
        return {"error": self.kind, "detail": self.message}


class NotFound(FamilyTreeError):
    kind = "not_found"
    status_code = 404


class InvalidArgument(FamilyTreeError):
    """Malformed or missing request value, rejected before any store access."""

    kind = "invalid_argument"
    status_code = 400


class StoreUnavailable(FamilyTreeError):
    """Backing store unreachable or timed out. Safe to retry."""

    kind = "store_unavailable"
    status_code = 503


class Conflict(FamilyTreeError):
    kind = "conflict"
    status_code = 409
