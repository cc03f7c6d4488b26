from datetime import date, datetime, time
from decimal import Decimal

import pytest

from form_facade.utils.value_converters import capitalize_message, stringify


@pytest.mark.unit
@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, None),
        ("Hi", "Hi"),
        (True, "true"),
        (False, "false"),
        (3, "3"),
        (1.5, "1.5"),
        (Decimal("9.90"), "9.90"),
        (date(2024, 5, 1), "2024-05-01"),
        (datetime(2024, 5, 1, 8, 30), "2024-05-01T08:30:00"),
        (time(8, 30), "08:30:00"),
        (b"raw", "raw"),
    ],
)
def test_stringify(value: object, expected: str | None) -> None:
    assert stringify(value) == expected


@pytest.mark.unit
def test_capitalize_message() -> None:
    assert capitalize_message("can't be blank") == "Can't be blank"
    assert capitalize_message("IS TAKEN") == "Is taken"
