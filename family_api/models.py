from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class Person:
    """One row of ``family_member``.

    Relationship ids are weak references into the same table. Nothing here
    guarantees they resolve, that ``spouse_id`` is symmetric, or that the
    father/mother graph is acyclic.
    """

    id: int
    full_name: str
    nick_name: Optional[str] = None
    gender: Optional[str] = None
    dob: Optional[date] = None
    dod: Optional[date] = None
    is_alive: bool = True
    phone_no: Optional[str] = None
    alternate_phone: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None
    occupation: Optional[str] = None
    current_loc: Optional[str] = None
    marital_status: Optional[str] = None
    generation: Optional[int] = None
    facebook_url: Optional[str] = None
    instagram_handle: Optional[str] = None
    photo_url: Optional[str] = None
    birth_star_id: Optional[int] = None
    malayalam_month_id: Optional[int] = None
    order_id: Optional[int] = None
    is_root: bool = False
    member_code: Optional[str] = None
    father_id: Optional[int] = None
    mother_id: Optional[int] = None
    spouse_id: Optional[int] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any], *, prefix: str = "") -> Optional["Person"]:
        """Build a Person from a dict row, optionally from ``<prefix><column>`` keys.

        Returns None when the id column is null (e.g. the spouse side of a
        LEFT JOIN with no match).
        """

        if row.get(f"{prefix}id") is None:
            return None
        values = {name: row.get(f"{prefix}{name}") for name in PERSON_COLUMNS}
        values["full_name"] = values["full_name"] or ""
        values["is_alive"] = bool(values["is_alive"]) if values["is_alive"] is not None else False
        values["is_root"] = bool(values["is_root"])
        return cls(**values)


PERSON_COLUMNS: tuple[str, ...] = tuple(f.name for f in fields(Person))

# Columns inlined for a spouse on root listings (one-hop, shallow).
SHALLOW_SPOUSE_COLUMNS: tuple[str, ...] = ("id", "full_name", "nick_name", "photo_url")


def display_order_key(person: Person) -> tuple[bool, int, int]:
    """System-wide list order: ``order_id`` ascending with nulls last, then id."""

    return (person.order_id is None, person.order_id or 0, person.id)
