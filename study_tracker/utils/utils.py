import math
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Tuple, Union

DateLike = Union[date, datetime, str]


# =============================================================================
# 날짜 헬퍼
# =============================================================================

def to_date(value: DateLike) -> date:
    """date / datetime / ISO-8601 문자열을 date로 정규화

    "2024-01-05", "2024-01-05T10:00:00+00:00", datetime, date 모두 허용.
    타임스탬프는 날짜 부분만 사용합니다.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def to_iso_date(value: DateLike) -> str:
    """YYYY-MM-DD 문자열 반환 (쿼리 필터 값용)"""
    return to_date(value).isoformat()


def date_window(start: DateLike, days: int) -> Tuple[str, str]:
    """start부터 days일 뒤까지의 (시작, 끝) ISO 날짜 튜플"""
    start_date = to_date(start)
    return start_date.isoformat(), (start_date + timedelta(days=days)).isoformat()


# =============================================================================
# 수치 헬퍼
# =============================================================================

def round_half_up(value: float, ndigits: int = 0) -> float:
    """0.5를 항상 올림하는 반올림 (내장 round는 짝수 반올림)"""
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def percentage(part: int, total: int) -> int:
    """round(part / total * 100), total이 0이면 0"""
    if total <= 0:
        return 0
    return int(round_half_up(part / total * 100))


def average(values: Iterable[float], ndigits: int = 2) -> float:
    """소수점 ndigits 자리 평균, 값이 없으면 0"""
    items = list(values)
    if not items:
        return 0
    return round_half_up(sum(items) / len(items), ndigits)


def sum_hours(values: Iterable[Optional[float]]) -> float:
    """None을 0으로 취급하여 합산"""
    return sum(v or 0 for v in values)
