from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional

import psycopg

try:
    from .models import Person
except ImportError:  # pragma: no cover
    # Support running with CWD=family_api (e.g., `python -m uvicorn main:app`).
    from models import Person

LookupTable = Literal["birth_star", "malayalam_month"]


@dataclass(frozen=True)
class LookupLabel:
    name_en: Optional[str]
    name_ml: Optional[str]

    def contains(self, needle: str) -> bool:
        n = needle.casefold()
        return any(n in label.casefold() for label in (self.name_en, self.name_ml) if label)


@dataclass(frozen=True)
class LookupTables:
    """Reference-code labels, read once per request."""

    birth_stars: dict[int, LookupLabel] = field(default_factory=dict)
    months: dict[int, LookupLabel] = field(default_factory=dict)

    def _table(self, table: LookupTable) -> dict[int, LookupLabel]:
        return self.birth_stars if table == "birth_star" else self.months

    def label(self, table: LookupTable, code: Optional[int]) -> Optional[LookupLabel]:
        if code is None:
            return None
        return self._table(table).get(code)

    def ids_matching(self, table: LookupTable, text: str) -> list[int]:
        """Codes whose English or Malayalam label contains *text* (case-insensitive)."""

        return sorted(code for code, lbl in self._table(table).items() if lbl.contains(text))


def _fetch_labels(conn: psycopg.Connection, table: LookupTable) -> dict[int, LookupLabel]:
    # Table name comes from the LookupTable literal, never from a request.
    rows = conn.execute(f"SELECT id, name_en, name_ml FROM {table} ORDER BY id").fetchall()
    return {int(r["id"]): LookupLabel(name_en=r["name_en"], name_ml=r["name_ml"]) for r in rows}


def load_lookups(conn: psycopg.Connection) -> LookupTables:
    return LookupTables(
        birth_stars=_fetch_labels(conn, "birth_star"),
        months=_fetch_labels(conn, "malayalam_month"),
    )


def enrich(person: Person, lookups: LookupTables) -> dict[str, Optional[str]]:
    """Return display labels for a person's reference codes.

    Unknown or missing codes map to None rather than raising.
    """

    star = lookups.label("birth_star", person.birth_star_id)
    month = lookups.label("malayalam_month", person.malayalam_month_id)
    return {
        "birth_star": star.name_en if star else None,
        "birth_star_ml": star.name_ml if star else None,
        "malayalam_month": month.name_en if month else None,
        "malayalam_month_ml": month.name_ml if month else None,
    }
