from __future__ import annotations

from dataclasses import asdict
from typing import Any, Optional

try:
    from .lookups import LookupTables, enrich
    from .models import Person
except ImportError:  # pragma: no cover
    # Support running with CWD=family_api (e.g., `python -m uvicorn main:app`).
    from lookups import LookupTables, enrich
    from models import Person


def _person_to_public(person: Person, lookups: LookupTables) -> dict[str, Any]:
    """Full person payload: every stored field plus resolved labels."""

    out = asdict(person)
    out.update(enrich(person, lookups))
    return out


def _person_with_spouse_to_public(
    person: Person,
    lookups: LookupTables,
    *,
    spouse: Optional[Person] = None,
    shallow_spouse: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    out = _person_to_public(person, lookups)
    if spouse is not None:
        out["spouse"] = _person_to_public(spouse, lookups)
    else:
        # Shallow one-hop join for list views (id, name, photo only).
        out["spouse"] = shallow_spouse
    return out


def _lineage_entry(node: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": node["id"],
        "full_name": node["full_name"],
        "father_id": node["father_id"],
        "mother_id": node["mother_id"],
    }
