"""Utils module - 날짜/수치 헬퍼"""

from .utils import (
    DateLike,
    to_date,
    to_iso_date,
    date_window,
    round_half_up,
    percentage,
    average,
    sum_hours,
)

__all__ = [
    "DateLike",
    "to_date",
    "to_iso_date",
    "date_window",
    "round_half_up",
    "percentage",
    "average",
    "sum_hours",
]
