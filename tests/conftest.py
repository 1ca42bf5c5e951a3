from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Optional

import pytest

from family_api import queries
from family_api.models import PERSON_COLUMNS, SHALLOW_SPOUSE_COLUMNS


def _norm(query: str) -> str:
    return " ".join((query or "").split()).lower()


def make_person(id: int, full_name: str = "", **fields: Any) -> dict[str, Any]:
    row: dict[str, Any] = {c: None for c in PERSON_COLUMNS}
    row.update(id=id, full_name=full_name or f"Person {id}", is_alive=True, is_root=False)
    row.update(fields)
    return row


@dataclass
class _FakeResult:
    rows: list[dict[str, Any]]

    def fetchall(self) -> list[dict[str, Any]]:
        return list(self.rows)

    def fetchone(self) -> Optional[dict[str, Any]]:
        return self.rows[0] if self.rows else None


class FakeConn:
    """Answers the SQL in ``family_api.queries`` from in-memory rows."""

    def __init__(
        self,
        people: list[dict[str, Any]] | None = None,
        *,
        stars: dict[int, tuple[str, str]] | None = None,
        months: dict[int, tuple[str, str]] | None = None,
        linked_person_ids: set[int] | None = None,
    ) -> None:
        # Keep insertion order; callers are responsible for ordering.
        self.people: dict[int, dict[str, Any]] = {p["id"]: p for p in (people or [])}
        self.stars = dict(stars or {})
        self.months = dict(months or {})
        self.linked_person_ids = set(linked_person_ids or set())
        self.executed: list[tuple[str, tuple[Any, ...]]] = []

    def count(self, sql: str) -> int:
        target = _norm(sql)
        return sum(1 for q, _ in self.executed if q == target)

    def _with_spouse(self, row: dict[str, Any], columns: tuple[str, ...]) -> dict[str, Any]:
        out = dict(row)
        spouse = self.people.get(row.get("spouse_id")) if row.get("spouse_id") is not None else None
        for c in columns:
            out[f"{queries.SPOUSE_PREFIX}{c}"] = spouse.get(c) if spouse else None
        return out

    @staticmethod
    def _labels(table: dict[int, tuple[str, str]]) -> list[dict[str, Any]]:
        return [{"id": k, "name_en": en, "name_ml": ml} for k, (en, ml) in sorted(table.items())]

    def execute(self, query: str, params: tuple[Any, ...] = ()) -> _FakeResult:
        q = _norm(query)
        self.executed.append((q, tuple(params)))

        if q == _norm(queries.PERSON_BY_ID_SQL):
            row = self.people.get(params[0])
            return _FakeResult([self._with_spouse(row, PERSON_COLUMNS)] if row else [])

        if q == _norm(queries.SINGLE_ROOT_SQL):
            row = self.people.get(params[0])
            return _FakeResult([self._with_spouse(row, SHALLOW_SPOUSE_COLUMNS)] if row else [])

        if q == _norm(queries.ROOTS_SQL):
            rows = [self._with_spouse(p, SHALLOW_SPOUSE_COLUMNS) for p in self.people.values() if p["is_root"]]
            return _FakeResult(rows)

        if q == _norm(queries.CHILDREN_SQL):
            fa, mo = params
            rows = [p for p in self.people.values() if p["father_id"] == fa or p["mother_id"] == mo]
            return _FakeResult(rows)

        if q == _norm(queries.SPOUSE_ID_SQL):
            row = self.people.get(params[0])
            return _FakeResult([{"spouse_id": row["spouse_id"]}] if row else [])

        if q == _norm(queries.BY_SPOUSE_OF_SQL):
            rows = sorted((p for p in self.people.values() if p["spouse_id"] == params[0]), key=lambda p: p["id"])
            return _FakeResult(rows[:1])

        if q == _norm(queries.PARENT_LINKS_SQL):
            ids = set(params[0])
            rows = [
                {k: p[k] for k in ("id", "full_name", "father_id", "mother_id")}
                for p in self.people.values()
                if p["id"] in ids
            ]
            return _FakeResult(rows)

        if q == _norm(queries.UNREGISTERED_SQL):
            rows = [
                p for p in self.people.values() if p["is_alive"] and p["id"] not in self.linked_person_ids
            ]
            return _FakeResult(sorted(rows, key=lambda p: (p["full_name"], p["id"])))

        if q.startswith(_norm(queries.SEARCH_SQL_PREFIX) + " where"):
            # The WHERE clause is covered by predicate tests; honour ORDER BY / LIMIT.
            limit = params[-1]
            rows = sorted(self.people.values(), key=lambda p: (p["full_name"], p["id"]))
            return _FakeResult(rows[:limit])

        if q == "select id, name_en, name_ml from birth_star order by id":
            return _FakeResult(self._labels(self.stars))

        if q == "select id, name_en, name_ml from malayalam_month order by id":
            return _FakeResult(self._labels(self.months))

        if q == _norm(queries.PING_SQL):
            return _FakeResult([{"?column?": 1}])

        raise AssertionError(f"Unexpected query: {query}")


class FakeStore:
    """Stand-in for ``FamilyStore`` that hands out one FakeConn."""

    def __init__(self, conn: FakeConn) -> None:
        self.conn = conn
        self.opened = 0

    @contextmanager
    def connection(self) -> Iterator[FakeConn]:
        self.opened += 1
        yield self.conn


STARS = {1: ("Ashwini", "അശ്വതി"), 2: ("Bharani", "ഭരണി"), 3: ("Rohini", "രോഹിണി")}
MONTHS = {1: ("Chingam", "ചിങ്ങം"), 2: ("Kanni", "കന്നി")}


@pytest.fixture()
def fake_conn_factory():
    def _make(people: list[dict[str, Any]], **kwargs: Any) -> FakeConn:
        kwargs.setdefault("stars", STARS)
        kwargs.setdefault("months", MONTHS)
        return FakeConn(people, **kwargs)

    return _make
