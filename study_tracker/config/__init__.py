"""Configuration module

이 모듈은 데이터 접근 계층의 모든 설정 값을 중앙에서 관리합니다.
"""

from datetime import date, datetime

from .business_config import (
    DUE_SOON_DAYS,
    LAST_DAYS_WINDOW,
    RECENT_LIMIT,
    RANKING_LIMIT,
    DEFAULT_PAGE_SIZE,
    TITLE_MAX_LENGTH,
    CONTEXT_TEXT_LIMIT,
    CONTEXT_PROMPT_LIMIT,
    CONTEXT_RESPONSE_LIMIT,
    CONTEXT_MAX_CONVERSATIONS,
)
from .config import SupabaseSettings, load_supabase_settings


def get_now() -> datetime:
    """로컬 시간 기준 현재 datetime 반환"""
    return datetime.now()


def get_today() -> date:
    """로컬 시간 기준 오늘 날짜 반환 ("오늘 마감" 류 쿼리의 기준일)"""
    return get_now().date()


__all__ = [
    "DUE_SOON_DAYS",
    "LAST_DAYS_WINDOW",
    "RECENT_LIMIT",
    "RANKING_LIMIT",
    "DEFAULT_PAGE_SIZE",
    "TITLE_MAX_LENGTH",
    "CONTEXT_TEXT_LIMIT",
    "CONTEXT_PROMPT_LIMIT",
    "CONTEXT_RESPONSE_LIMIT",
    "CONTEXT_MAX_CONVERSATIONS",
    "SupabaseSettings",
    "load_supabase_settings",
    "get_now",
    "get_today",
]
