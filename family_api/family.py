"""Root, descendant and family-view reads over the person graph.

All list results use ``display_order_key`` (order_id ascending, nulls last,
then id). A person's recorded spouse is never returned as one of their
children, even when bad data makes the spouse match the parent columns.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import psycopg

try:
    from .lookups import LookupTables
    from .models import display_order_key
    from .queries import (
        get_by_id,
        get_by_spouse_of,
        get_children_of,
        get_roots,
        get_single_root,
        get_spouse_id,
        get_unregistered_members,
    )
    from .serialize import _person_to_public, _person_with_spouse_to_public
except ImportError:  # pragma: no cover
    # Support running with CWD=family_api (e.g., `python -m uvicorn main:app`).
    from lookups import LookupTables
    from models import display_order_key
    from queries import (
        get_by_id,
        get_by_spouse_of,
        get_children_of,
        get_roots,
        get_single_root,
        get_spouse_id,
        get_unregistered_members,
    )
    from serialize import _person_to_public, _person_with_spouse_to_public

log = logging.getLogger(__name__)

_UNSET = object()


def list_roots(
    conn: psycopg.Connection,
    lookups: LookupTables,
    person_id: Optional[int] = None,
) -> list[dict[str, Any]]:
    """Tree entry points, or the single person *person_id* whatever its root flag."""

    if person_id is not None:
        found = get_single_root(conn, person_id)
        if found is None:
            return []
        person, spouse = found
        return [_person_with_spouse_to_public(person, lookups, shallow_spouse=spouse)]

    rows = sorted(get_roots(conn), key=lambda pair: display_order_key(pair[0]))
    return [
        _person_with_spouse_to_public(person, lookups, shallow_spouse=spouse)
        for person, spouse in rows
    ]


def list_children(
    conn: psycopg.Connection,
    person_id: int,
    lookups: LookupTables,
    *,
    exclude_id: Any = _UNSET,
) -> list[dict[str, Any]]:
    """Direct children of *person_id* through either parent column.

    *exclude_id* is the querying person's spouse id. When not supplied it is
    read from the store.
    """

    if exclude_id is _UNSET:
        exclude_id = get_spouse_id(conn, person_id)

    children = sorted(get_children_of(conn, person_id), key=display_order_key)
    out: list[dict[str, Any]] = []
    for child in children:
        if exclude_id is not None and child.id == exclude_id:
            log.debug("dropping spouse %s from children of %s", child.id, person_id)
            continue
        out.append(_person_to_public(child, lookups))
    return out


def family_of(conn: psycopg.Connection, person_id: int, lookups: LookupTables) -> dict[str, Any]:
    """Person with inlined spouse, plus their children; one generation down only."""

    person, spouse = get_by_id(conn, person_id)
    if person is None:
        return {"person": None, "children": []}

    children = list_children(conn, person.id, lookups, exclude_id=person.spouse_id)
    return {
        "person": _person_with_spouse_to_public(person, lookups, spouse=spouse),
        "children": children,
    }


def spouse_of(conn: psycopg.Connection, person_id: int, lookups: LookupTables) -> Optional[dict[str, Any]]:
    """The person whose record names *person_id* as spouse, if any."""

    person = get_by_spouse_of(conn, person_id)
    return _person_to_public(person, lookups) if person is not None else None


def unregistered_members(conn: psycopg.Connection, lookups: LookupTables) -> list[dict[str, Any]]:
    """Living persons not yet linked to any account."""

    return [_person_to_public(p, lookups) for p in get_unregistered_members(conn)]
