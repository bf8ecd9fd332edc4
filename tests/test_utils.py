"""날짜 / 수치 헬퍼 테스트"""
from datetime import date, datetime

import pytest

from study_tracker.utils import (
    average,
    date_window,
    percentage,
    round_half_up,
    sum_hours,
    to_date,
    to_iso_date,
)


@pytest.mark.parametrize("value, expected", [
    ("2024-01-05", date(2024, 1, 5)),
    ("2024-01-05T23:30:00+00:00", date(2024, 1, 5)),
    (datetime(2024, 1, 5, 8, 0), date(2024, 1, 5)),
    (date(2024, 1, 5), date(2024, 1, 5)),
])
def test_to_date(value, expected):
    assert to_date(value) == expected


def test_to_iso_date_and_window():
    assert to_iso_date(datetime(2024, 3, 1, 12, 0)) == "2024-03-01"
    assert date_window("2024-01-30", 3) == ("2024-01-30", "2024-02-02")
    assert date_window(date(2024, 2, 28), 1) == ("2024-02-28", "2024-02-29")


def test_round_half_up_rounds_halves_away_from_even():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(1.25, 1) == 1.3
    assert round_half_up(1.24, 1) == 1.2


@pytest.mark.parametrize("part, total, expected", [
    (0, 0, 0),
    (1, 2, 50),
    (1, 3, 33),
    (2, 3, 67),
    (1, 8, 13),
    (5, 5, 100),
])
def test_percentage(part, total, expected):
    assert percentage(part, total) == expected


def test_average_and_sum_hours():
    assert average([]) == 0
    assert average([1, 2, 2]) == 1.67
    assert average([1.5, 2]) == 1.75
    assert sum_hours([1, None, 2.5]) == 3.5
