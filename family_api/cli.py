"""Command-line access to the family graph queries.

Usage:
    python -m family_api.cli roots [--id=12]
    python -m family_api.cli children 12
    python -m family_api.cli family 12
    python -m family_api.cli lineage 12
    python -m family_api.cli search --q=anna --field=name --alive=true --gen=4
    python -m family_api.cli unregistered
    python -m family_api.cli serve --host=0.0.0.0 --port=3000

Every query prints JSON to stdout. Reads DATABASE_URL like the API.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Callable, Optional

from family_api.config import CONFIG
from family_api.db import FamilyStore
from family_api.errors import FamilyTreeError
from family_api.family import family_of, list_children, list_roots, unregistered_members
from family_api.lineage import lineage
from family_api.lookups import load_lookups
from family_api.resolve import _parse_person_id
from family_api.search import search

log = logging.getLogger("family_api.cli")


def _with_lookups(store: FamilyStore, fn: Callable[..., Any]) -> Any:
    with store.connection() as conn:
        return fn(conn, load_lookups(conn))


def cmd_roots(store: FamilyStore, args: argparse.Namespace) -> Any:
    pid = _parse_person_id(args.id, name="id") if args.id is not None else None
    return _with_lookups(store, lambda conn, lk: list_roots(conn, lk, pid))


def cmd_children(store: FamilyStore, args: argparse.Namespace) -> Any:
    pid = _parse_person_id(args.person_id)
    return _with_lookups(store, lambda conn, lk: list_children(conn, pid, lk))


def cmd_family(store: FamilyStore, args: argparse.Namespace) -> Any:
    pid = _parse_person_id(args.person_id)
    return _with_lookups(store, lambda conn, lk: family_of(conn, pid, lk))


def cmd_lineage(store: FamilyStore, args: argparse.Namespace) -> Any:
    pid = _parse_person_id(args.person_id)
    with store.connection() as conn:
        return lineage(conn, pid)


def cmd_search(store: FamilyStore, args: argparse.Namespace) -> Any:
    return search(store.connection, args.q, args.field, args.alive, args.gen)


def cmd_unregistered(store: FamilyStore, args: argparse.Namespace) -> Any:
    return _with_lookups(store, unregistered_members)


def cmd_serve(args: argparse.Namespace) -> None:
    import uvicorn

    uvicorn.run("family_api.main:app", host=args.host, port=args.port)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="family_api.cli", description="Query the family tree store.")
    sub = p.add_subparsers(dest="command", required=True)

    sp = sub.add_parser("roots", help="List tree roots, or one person by id")
    sp.add_argument("--id", default=None)
    sp.set_defaults(func=cmd_roots)

    for name, func, help_text in (
        ("children", cmd_children, "Direct children of a person"),
        ("family", cmd_family, "Person, spouse and children"),
        ("lineage", cmd_lineage, "Ancestors, root-most first"),
    ):
        sp = sub.add_parser(name, help=help_text)
        sp.add_argument("person_id")
        sp.set_defaults(func=func)

    sp = sub.add_parser("search", help="Filtered search by name, star, month, liveness, generation")
    sp.add_argument("--q", default=None)
    sp.add_argument("--field", default="all")
    sp.add_argument("--alive", default="all")
    sp.add_argument("--gen", default=None)
    sp.set_defaults(func=cmd_search)

    sp = sub.add_parser("unregistered", help="Living persons without a linked account")
    sp.set_defaults(func=cmd_unregistered)

    sp = sub.add_parser("serve", help="Run the HTTP API")
    sp.add_argument("--host", default="127.0.0.1")
    sp.add_argument("--port", type=int, default=3000)
    sp.set_defaults(func=None)

    return p


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, CONFIG.log_level, logging.INFO), stream=sys.stderr)

    if args.command == "serve":
        cmd_serve(args)
        return 0

    try:
        store = FamilyStore.from_config(CONFIG)
    except RuntimeError as exc:
        raise SystemExit(str(exc)) from None

    store.open()
    try:
        result = args.func(store, args)
    except FamilyTreeError as exc:
        print(json.dumps(exc.to_json()), file=sys.stderr)
        return 2 if exc.status_code == 400 else 1
    finally:
        store.close()

    print(json.dumps(result, default=str, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
