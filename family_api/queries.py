"""Person store reads.

Every function takes an open connection (rows as dicts, see ``db.py``) and
issues parameterised SQL against ``family_member``. Ordering of person lists
is applied by the callers in ``family.py`` except for search, where the
ORDER BY has to run before the LIMIT.
"""

from __future__ import annotations

from typing import Any, Optional

import psycopg

try:
    from .models import PERSON_COLUMNS, SHALLOW_SPOUSE_COLUMNS, Person
except ImportError:  # pragma: no cover
    # Support running with CWD=family_api (e.g., `python -m uvicorn main:app`).
    from models import PERSON_COLUMNS, SHALLOW_SPOUSE_COLUMNS, Person

# Spouse columns of a self-join come back as sp_<column>.
SPOUSE_PREFIX = "sp_"


def _select_list(alias: str, columns: tuple[str, ...] = PERSON_COLUMNS, *, prefix: str = "") -> str:
    if prefix:
        return ", ".join(f"{alias}.{c} AS {prefix}{c}" for c in columns)
    return ", ".join(f"{alias}.{c}" for c in columns)


PERSON_BY_ID_SQL = f"""
SELECT {_select_list("p")},
       {_select_list("s", prefix=SPOUSE_PREFIX)}
FROM family_member p
LEFT JOIN family_member s ON s.id = p.spouse_id
WHERE p.id = %s
LIMIT 1
""".strip()

ROOTS_SQL = f"""
SELECT {_select_list("p")},
       {_select_list("s", SHALLOW_SPOUSE_COLUMNS, prefix=SPOUSE_PREFIX)}
FROM family_member p
LEFT JOIN family_member s ON s.id = p.spouse_id
WHERE p.is_root = TRUE
""".strip()

SINGLE_ROOT_SQL = f"""
SELECT {_select_list("p")},
       {_select_list("s", SHALLOW_SPOUSE_COLUMNS, prefix=SPOUSE_PREFIX)}
FROM family_member p
LEFT JOIN family_member s ON s.id = p.spouse_id
WHERE p.id = %s
LIMIT 1
""".strip()

CHILDREN_SQL = f"""
SELECT {_select_list("k")}
FROM family_member k
WHERE k.father_id = %s OR k.mother_id = %s
""".strip()

SPOUSE_ID_SQL = "SELECT spouse_id FROM family_member WHERE id = %s"

BY_SPOUSE_OF_SQL = f"""
SELECT {_select_list("k")}
FROM family_member k
WHERE k.spouse_id = %s
ORDER BY k.id
LIMIT 1
""".strip()

PARENT_LINKS_SQL = """
SELECT id, full_name, father_id, mother_id
FROM family_member
WHERE id = ANY(%s)
""".strip()

SEARCH_SQL_PREFIX = f"""
SELECT {_select_list("k")}
FROM family_member k
""".strip()

UNREGISTERED_SQL = f"""
SELECT {_select_list("k")}
FROM family_member k
WHERE k.is_alive = TRUE
  AND NOT EXISTS (SELECT 1 FROM app_user u WHERE u.person_id = k.id)
ORDER BY k.full_name, k.id
""".strip()

PING_SQL = "SELECT 1"


def _shallow_spouse(row: dict[str, Any]) -> Optional[dict[str, Any]]:
    # A null or dangling spouse_id joins to no row.
    if row.get(f"{SPOUSE_PREFIX}id") is None:
        return None
    return {c: row.get(f"{SPOUSE_PREFIX}{c}") for c in SHALLOW_SPOUSE_COLUMNS}


def get_by_id(conn: psycopg.Connection, person_id: int) -> tuple[Optional[Person], Optional[Person]]:
    """Return ``(person, spouse)`` from one joined read; either may be None."""

    row = conn.execute(PERSON_BY_ID_SQL, (person_id,)).fetchone()
    if not row:
        return None, None
    return Person.from_row(row), Person.from_row(row, prefix=SPOUSE_PREFIX)


def get_roots(conn: psycopg.Connection) -> list[tuple[Person, Optional[dict[str, Any]]]]:
    rows = conn.execute(ROOTS_SQL).fetchall()
    return [(Person.from_row(r), _shallow_spouse(r)) for r in rows]


def get_single_root(
    conn: psycopg.Connection, person_id: int
) -> Optional[tuple[Person, Optional[dict[str, Any]]]]:
    row = conn.execute(SINGLE_ROOT_SQL, (person_id,)).fetchone()
    if not row:
        return None
    return Person.from_row(row), _shallow_spouse(row)


def get_children_of(conn: psycopg.Connection, person_id: int) -> list[Person]:
    rows = conn.execute(CHILDREN_SQL, (person_id, person_id)).fetchall()
    return [Person.from_row(r) for r in rows]


def get_spouse_id(conn: psycopg.Connection, person_id: int) -> Optional[int]:
    row = conn.execute(SPOUSE_ID_SQL, (person_id,)).fetchone()
    if not row:
        return None
    return row["spouse_id"]


def get_by_spouse_of(conn: psycopg.Connection, person_id: int) -> Optional[Person]:
    """Return the person whose own ``spouse_id`` points at *person_id*.

    Spouse links are not symmetric; this is the reverse side of the edge.
    """

    row = conn.execute(BY_SPOUSE_OF_SQL, (person_id,)).fetchone()
    return Person.from_row(row) if row else None


def get_parent_links(conn: psycopg.Connection, person_ids: list[int]) -> dict[int, dict[str, Any]]:
    """Fetch ``{id: {id, full_name, father_id, mother_id}}`` for many ids at once."""

    if not person_ids:
        return {}

    out: dict[int, dict[str, Any]] = {}
    for r in conn.execute(PARENT_LINKS_SQL, (person_ids,)).fetchall():
        out[int(r["id"])] = {
            "id": r["id"],
            "full_name": r["full_name"],
            "father_id": r["father_id"],
            "mother_id": r["mother_id"],
        }
    return out


def get_where(
    conn: psycopg.Connection,
    where_sql: str,
    params: list[Any],
    *,
    limit: int,
) -> list[Person]:
    """Run a compiled predicate, ordered by name then id, capped at *limit* rows."""

    query = f"{SEARCH_SQL_PREFIX}\nWHERE {where_sql}\nORDER BY k.full_name, k.id\nLIMIT %s"
    rows = conn.execute(query, (*params, limit)).fetchall()
    return [Person.from_row(r) for r in rows]


def get_unregistered_members(conn: psycopg.Connection) -> list[Person]:
    rows = conn.execute(UNREGISTERED_SQL).fetchall()
    return [Person.from_row(r) for r in rows]


def ping(conn: psycopg.Connection) -> None:
    conn.execute(PING_SQL).fetchone()
