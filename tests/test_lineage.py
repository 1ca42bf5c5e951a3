from __future__ import annotations

import pytest

from family_api import queries
from family_api.errors import StoreUnavailable
from family_api.lineage import LineageLimits, lineage

from conftest import make_person


def _ids(rows) -> list[int]:
    return [r["id"] for r in rows]


def test_unknown_person_has_empty_lineage(fake_conn_factory) -> None:
    conn = fake_conn_factory([make_person(1)])
    assert lineage(conn, 404) == []


def test_isolate_lineage_is_just_the_person(fake_conn_factory) -> None:
    conn = fake_conn_factory([make_person(1, "Solo")])

    assert lineage(conn, 1) == [{"id": 1, "full_name": "Solo", "father_id": None, "mother_id": None}]


def test_diamond_pedigree_lists_shared_ancestor_once(fake_conn_factory) -> None:
    #        G(4)
    #       /    \
    #    F(2)    M(3)
    #       \    /
    #        P(1)
    conn = fake_conn_factory(
        [
            make_person(1, father_id=2, mother_id=3),
            make_person(2, father_id=4),
            make_person(3, father_id=4),
            make_person(4),
        ]
    )

    out = _ids(lineage(conn, 1))
    assert out == [4, 2, 3, 1]
    assert out.count(4) == 1


def test_both_lines_branch_and_person_is_last(fake_conn_factory) -> None:
    conn = fake_conn_factory(
        [
            make_person(1, father_id=20, mother_id=10),
            make_person(20, father_id=21, mother_id=22),
            make_person(10, father_id=11),
            make_person(11),
            make_person(21),
            make_person(22),
        ]
    )

    out = _ids(lineage(conn, 1))
    # Deepest generation first, ids ascending within a generation.
    assert out == [11, 21, 22, 10, 20, 1]
    assert set(out[-3:-1]) == {10, 20}


def test_shared_ancestor_precedes_every_descendant(fake_conn_factory) -> None:
    # 3 is both P's mother and the father's father.
    conn = fake_conn_factory(
        [
            make_person(1, father_id=2, mother_id=3),
            make_person(2, father_id=3),
            make_person(3),
        ]
    )

    out = _ids(lineage(conn, 1))
    assert out == [3, 2, 1]
    assert out.index(3) < out.index(2)


def test_collapse_across_generations_keeps_deepest_placement(fake_conn_factory) -> None:
    # 5 is P's mother's father and also the great-grandfather on the father's side.
    conn = fake_conn_factory(
        [
            make_person(1, father_id=2, mother_id=3),
            make_person(2, father_id=4),
            make_person(3, father_id=5),
            make_person(4, father_id=5),
            make_person(5),
        ]
    )

    assert _ids(lineage(conn, 1)) == [5, 4, 2, 3, 1]


def test_cycle_above_the_person_terminates(fake_conn_factory) -> None:
    conn = fake_conn_factory(
        [
            make_person(1, father_id=2),
            make_person(2, father_id=3),
            make_person(3, father_id=2),
        ]
    )

    assert _ids(lineage(conn, 1)) == [3, 2, 1]


def test_cycle_terminates(fake_conn_factory) -> None:
    conn = fake_conn_factory(
        [
            make_person(1, father_id=2),
            make_person(2, father_id=3),
            make_person(3, father_id=1),
        ]
    )

    assert _ids(lineage(conn, 1)) == [3, 2, 1]


def test_self_parent_terminates(fake_conn_factory) -> None:
    conn = fake_conn_factory([make_person(1, father_id=1, mother_id=1)])

    assert _ids(lineage(conn, 1)) == [1]
    assert conn.count(queries.PARENT_LINKS_SQL) == 1


def test_dangling_parent_is_skipped_and_not_requeried(fake_conn_factory) -> None:
    conn = fake_conn_factory(
        [
            make_person(1, father_id=2, mother_id=99),
            make_person(2, mother_id=99),
        ]
    )

    assert _ids(lineage(conn, 1)) == [2, 1]
    requested = [set(params[0]) for q, params in conn.executed]
    assert sum(1 for ids in requested if 99 in ids) == 1


def test_one_store_read_per_generation(fake_conn_factory) -> None:
    conn = fake_conn_factory(
        [
            make_person(1, father_id=2, mother_id=3),
            make_person(2, father_id=4, mother_id=5),
            make_person(3, father_id=6, mother_id=7),
            make_person(4),
            make_person(5),
            make_person(6),
            make_person(7),
        ]
    )

    assert len(lineage(conn, 1)) == 7
    # start + parents + grandparents
    assert conn.count(queries.PARENT_LINKS_SQL) == 3


def test_depth_cap_bounds_round_trips(fake_conn_factory) -> None:
    people = [make_person(i, father_id=i + 1) for i in range(1, 50)] + [make_person(50)]
    conn = fake_conn_factory(people)

    out = lineage(conn, 1, limits=LineageLimits(max_depth=2, max_nodes=1000, budget_seconds=60))
    assert _ids(out) == [3, 2, 1]
    assert conn.count(queries.PARENT_LINKS_SQL) == 3


def test_node_cap_truncates(fake_conn_factory) -> None:
    conn = fake_conn_factory(
        [
            make_person(1, father_id=3, mother_id=2),
            make_person(2),
            make_person(3),
        ]
    )

    out = lineage(conn, 1, limits=LineageLimits(max_depth=10, max_nodes=2, budget_seconds=60))
    assert _ids(out) == [2, 1]


def test_time_budget_raises_store_unavailable(fake_conn_factory) -> None:
    conn = fake_conn_factory([make_person(1, father_id=2), make_person(2)])

    with pytest.raises(StoreUnavailable):
        lineage(conn, 1, limits=LineageLimits(max_depth=10, max_nodes=100, budget_seconds=-1))
