"""Composable search predicates and their SQL rendering.

A search request becomes a small tree of predicate values:

    TextMatch(field, value) | LivenessEquals(alive) | GenerationEquals(generation)

combined with ``AllOf`` / ``AnyOf``. ``build_search_predicate`` returns None
when the request carries no filter at all; callers treat that as "return
nothing" and never issue a store query for it.

``compile_predicate`` turns the tree into a parameterised WHERE fragment
over ``family_member k``. Label filters (star/month) are resolved against
the request's lookup tables first, so the store only ever sees code ids.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Optional, Union

try:
    from .errors import InvalidArgument
    from .lookups import LookupTables
except ImportError:  # pragma: no cover
    # Support running with CWD=family_api (e.g., `python -m uvicorn main:app`).
    from errors import InvalidArgument
    from lookups import LookupTables

TextField = Literal["name", "star", "month"]

SEARCH_FIELDS = ("all", "name", "star", "month")
ALIVE_FILTERS = ("all", "true", "false")
SEARCH_TEXT_MAX_LENGTH = 200

_PG_INT_MIN = -(2**31)
_PG_INT_MAX = 2**31 - 1


@dataclass(frozen=True)
class TextMatch:
    field: TextField
    value: str


@dataclass(frozen=True)
class LivenessEquals:
    alive: bool


@dataclass(frozen=True)
class GenerationEquals:
    generation: int


@dataclass(frozen=True)
class AllOf:
    parts: tuple["Predicate", ...]


@dataclass(frozen=True)
class AnyOf:
    parts: tuple["Predicate", ...]


Predicate = Union[TextMatch, LivenessEquals, GenerationEquals, AllOf, AnyOf]


def parse_generation(raw: Any) -> Optional[int]:
    """Parse an optional generation filter. Blank means absent."""

    if raw is None:
        return None
    if isinstance(raw, bool):
        raise InvalidArgument("gen must be an integer")
    if isinstance(raw, int):
        value = raw
    else:
        s = str(raw).strip()
        if not s:
            return None
        try:
            value = int(s)
        except ValueError:
            raise InvalidArgument(f"gen must be an integer, got {s!r}") from None
    if value < _PG_INT_MIN or value > _PG_INT_MAX:
        raise InvalidArgument("gen is out of range")
    return value


def _normalize_choice(raw: Optional[str], allowed: tuple[str, ...], name: str) -> str:
    value = (raw or "all").strip().lower() or "all"
    if value not in allowed:
        raise InvalidArgument(f"{name} must be one of {', '.join(allowed)}")
    return value


def build_search_predicate(
    text: Optional[str] = None,
    field: Optional[str] = "all",
    alive: Optional[str] = "all",
    generation: Any = None,
) -> Optional[Predicate]:
    """Validate raw search inputs and compose them into one predicate.

    Returns None when no text, no liveness constraint and no generation are
    given.
    """

    field_v = _normalize_choice(field, SEARCH_FIELDS, "field")
    alive_v = _normalize_choice(alive, ALIVE_FILTERS, "alive")
    gen = parse_generation(generation)
    q = (text or "").strip()
    if len(q) > SEARCH_TEXT_MAX_LENGTH:
        raise InvalidArgument(f"search text must be at most {SEARCH_TEXT_MAX_LENGTH} characters")

    parts: list[Predicate] = []
    if q:
        if field_v == "all":
            parts.append(
                AnyOf((TextMatch("name", q), TextMatch("star", q), TextMatch("month", q)))
            )
        else:
            parts.append(TextMatch(field_v, q))  # type: ignore[arg-type]
    if alive_v != "all":
        parts.append(LivenessEquals(alive_v == "true"))
    if gen is not None:
        parts.append(GenerationEquals(gen))

    if not parts:
        return None
    if len(parts) == 1:
        return parts[0]
    return AllOf(tuple(parts))


def _ilike_pattern(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def compile_predicate(pred: Predicate, lookups: LookupTables) -> tuple[str, list[Any]]:
    """Render *pred* as a WHERE fragment plus its positional parameters."""

    if isinstance(pred, TextMatch):
        if pred.field == "name":
            return "k.full_name ILIKE %s", [_ilike_pattern(pred.value)]
        table = "birth_star" if pred.field == "star" else "malayalam_month"
        ids = lookups.ids_matching(table, pred.value)
        if not ids:
            return "FALSE", []
        return f"k.{table}_id = ANY(%s)", [ids]

    if isinstance(pred, LivenessEquals):
        return "k.is_alive = %s", [pred.alive]

    if isinstance(pred, GenerationEquals):
        return "k.generation = %s", [pred.generation]

    if isinstance(pred, (AllOf, AnyOf)):
        joiner = " AND " if isinstance(pred, AllOf) else " OR "
        clauses: list[str] = []
        params: list[Any] = []
        for part in pred.parts:
            sql, part_params = compile_predicate(part, lookups)
            clauses.append(f"({sql})")
            params.extend(part_params)
        return joiner.join(clauses), params

    raise TypeError(f"unknown predicate: {pred!r}")
