from __future__ import annotations

import pytest

from family_api.errors import InvalidArgument
from family_api.models import Person, display_order_key
from family_api.resolve import _parse_person_id


def test_parse_person_id_accepts_ints_and_digit_strings() -> None:
    assert _parse_person_id("12") == 12
    assert _parse_person_id(" 7 ") == 7
    assert _parse_person_id(3) == 3


@pytest.mark.parametrize("raw", [None, "", "  ", "abc", "1.5", "0", "-4", "99999999999", True])
def test_parse_person_id_rejects_malformed(raw) -> None:
    with pytest.raises(InvalidArgument):
        _parse_person_id(raw)


def test_error_message_names_the_parameter() -> None:
    with pytest.raises(InvalidArgument) as exc_info:
        _parse_person_id("", name="id")
    assert exc_info.value.to_json() == {"error": "invalid_argument", "detail": "id is required"}


def test_person_from_row_handles_prefix_and_missing_join() -> None:
    row = {"id": 1, "full_name": "A", "is_alive": None, "is_root": None, "sp_id": None}

    person = Person.from_row(row)
    assert person is not None
    assert person.is_alive is False
    assert person.is_root is False
    assert Person.from_row(row, prefix="sp_") is None


def test_display_order_key_puts_nulls_last() -> None:
    people = [Person(id=5, full_name=""), Person(id=2, full_name="", order_id=3), Person(id=1, full_name="")]

    assert [p.id for p in sorted(people, key=display_order_key)] == [2, 1, 5]
