"""환경 변수 기반 설정

SUPABASE_URL / SUPABASE_ANON_KEY 는 .env 또는 프로세스 환경에서 읽습니다.
"""
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


@dataclass(frozen=True)
class SupabaseSettings:
    url: str
    key: str


def load_supabase_settings(env_file: Optional[str] = None) -> Optional[SupabaseSettings]:
    """Supabase 접속 설정 로드

    Args:
        env_file: 읽을 .env 경로 (None이면 기본 탐색)

    Returns:
        Optional[SupabaseSettings]: 설정이 모두 있으면 객체, 하나라도 없으면 None
    """
    load_dotenv(env_file)

    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_KEY")

    if not url or not key:
        return None
    return SupabaseSettings(url=url, key=key)
