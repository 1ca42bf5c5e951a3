from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends

try:
    from ..db import FamilyStore, get_store
    from ..family import family_of, list_children, list_roots, spouse_of
    from ..lineage import lineage
    from ..lookups import load_lookups
    from ..resolve import _parse_person_id
    from ..search import search
except ImportError:  # pragma: no cover
    # Support running with CWD=family_api (e.g., `python -m uvicorn main:app`).
    from db import FamilyStore, get_store
    from family import family_of, list_children, list_roots, spouse_of
    from lineage import lineage
    from lookups import load_lookups
    from resolve import _parse_person_id
    from search import search

router = APIRouter(prefix="/api/family", tags=["family"])


@router.get("/roots")
def get_roots(
    id: Optional[str] = None,
    store: FamilyStore = Depends(get_store),
) -> list[dict[str, Any]]:
    """Tree entry points in display order, or one person when ``id`` is given."""

    person_id = _parse_person_id(id, name="id") if id not in (None, "") else None
    with store.connection() as conn:
        lookups = load_lookups(conn)
        return list_roots(conn, lookups, person_id)


@router.get("/children/{person_id}")
def get_children(person_id: str, store: FamilyStore = Depends(get_store)) -> list[dict[str, Any]]:
    pid = _parse_person_id(person_id)
    with store.connection() as conn:
        lookups = load_lookups(conn)
        return list_children(conn, pid, lookups)


@router.get("/family")
def get_family(
    person_id: Optional[str] = None,
    store: FamilyStore = Depends(get_store),
) -> dict[str, Any]:
    """Person, spouse and children. Unknown ids give ``{"person": null, "children": []}``."""

    pid = _parse_person_id(person_id)
    with store.connection() as conn:
        lookups = load_lookups(conn)
        return family_of(conn, pid, lookups)


@router.get("/lineage/{person_id}")
def get_lineage(person_id: str, store: FamilyStore = Depends(get_store)) -> list[dict[str, Any]]:
    """Ancestors root-most first, ending with the person.

    Every ancestor comes before their descendants; see ``lineage.py`` for
    the full ordering rule.
    """

    pid = _parse_person_id(person_id)
    with store.connection() as conn:
        return lineage(conn, pid)


@router.get("/spouse-of/{person_id}")
def get_spouse_of(person_id: str, store: FamilyStore = Depends(get_store)) -> Optional[dict[str, Any]]:
    pid = _parse_person_id(person_id)
    with store.connection() as conn:
        lookups = load_lookups(conn)
        return spouse_of(conn, pid, lookups)


@router.get("/search")
def search_people(
    q: Optional[str] = None,
    field: str = "all",
    alive: str = "all",
    gen: Optional[str] = None,
    store: FamilyStore = Depends(get_store),
) -> list[dict[str, Any]]:
    """Filtered search; with no filter at all the result is empty."""

    return search(store.connection, q, field, alive, gen)
