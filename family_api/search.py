from __future__ import annotations

from typing import Any, Callable, Optional

import psycopg

try:
    from .config import CONFIG, SEARCH_RESULT_CAP
    from .lookups import LookupTables, load_lookups
    from .predicates import Predicate, build_search_predicate, compile_predicate
    from .queries import get_where
    from .serialize import _person_to_public
except ImportError:  # pragma: no cover
    # Support running with CWD=family_api (e.g., `python -m uvicorn main:app`).
    from config import CONFIG, SEARCH_RESULT_CAP
    from lookups import LookupTables, load_lookups
    from predicates import Predicate, build_search_predicate, compile_predicate
    from queries import get_where
    from serialize import _person_to_public


def search(
    connect: Callable[[], Any],
    text: Optional[str] = None,
    field: Optional[str] = "all",
    alive: Optional[str] = "all",
    generation: Any = None,
    *,
    limit: int = CONFIG.search_limit,
) -> list[dict[str, Any]]:
    """Filtered person search, ordered by name, at most *limit* rows.

    *connect* is a zero-argument context manager factory (normally
    ``store.connection``). It is only entered once the inputs validate and
    at least one filter is present: a request with no text, ``alive=all``
    and no generation returns ``[]`` without opening a connection.
    """

    pred = build_search_predicate(text, field, alive, generation)
    if pred is None:
        return []

    limit = max(1, min(int(limit), SEARCH_RESULT_CAP))
    with connect() as conn:
        lookups = load_lookups(conn)
        return _run_search(conn, pred, lookups, limit=limit)


def _run_search(
    conn: psycopg.Connection, pred: Predicate, lookups: LookupTables, *, limit: int
) -> list[dict[str, Any]]:
    where_sql, params = compile_predicate(pred, lookups)
    return [_person_to_public(p, lookups) for p in get_where(conn, where_sql, params, limit=limit)]
