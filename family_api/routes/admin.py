from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

try:
    from ..auth import require_role
    from ..db import FamilyStore, get_store
    from ..family import unregistered_members
    from ..lookups import load_lookups
except ImportError:  # pragma: no cover
    # Support running with CWD=family_api (e.g., `python -m uvicorn main:app`).
    from auth import require_role
    from db import FamilyStore, get_store
    from family import unregistered_members
    from lookups import load_lookups

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/unregistered-members")
def list_unregistered_members(
    _user: dict[str, Any] = require_role("admin"),
    store: FamilyStore = Depends(get_store),
) -> list[dict[str, Any]]:
    """Living persons with no linked account, for the registration workflow."""

    with store.connection() as conn:
        lookups = load_lookups(conn)
        return unregistered_members(conn, lookups)
