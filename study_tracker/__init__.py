"""study_tracker - Supabase 기반 학습 관리 데이터 접근 계층"""

from .database import Database

__version__ = "0.1.0"

__all__ = ["Database", "__version__"]
