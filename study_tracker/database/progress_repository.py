"""progress 테이블 리포지토리 (일별 학습 시간 기록)"""
from datetime import timedelta
from typing import List, Optional
import asyncio
import logging

from supabase import AsyncClient

from ..config import LAST_DAYS_WINDOW, RANKING_LIMIT, get_today
from ..utils import DateLike, average, sum_hours, to_date, to_iso_date
from .base_repository import SupabaseRepository
from .schemas import (
    BestStudyDay,
    Progress,
    ProgressCreate,
    ProgressUpdate,
    ProgressStats,
    ProgressWithUser,
)

logger = logging.getLogger(__name__)


class ProgressRepository(SupabaseRepository[Progress, ProgressCreate, ProgressUpdate]):

    def __init__(self, client: AsyncClient):
        super().__init__(client, "progress", Progress, ProgressCreate, ProgressUpdate)

    async def find_by_user_id(self, user_id: str) -> List[Progress]:
        return await self.find_where({"user_id": user_id})

    async def find_with_user(self) -> List[ProgressWithUser]:
        query = self._table().select("*, users!inner (name)")
        return await self._fetch_many("find_with_user", query, ProgressWithUser)

    async def find_by_user_and_date(self, user_id: str, day: DateLike) -> List[Progress]:
        """(사용자, 날짜) 기록 - 관례상 1건이지만 DB가 강제하지 않으므로 리스트"""
        return await self.find_where({"user_id": user_id, "date": to_iso_date(day)})

    async def find_by_user_and_date_range(self, user_id: str, start_date: DateLike,
                                          end_date: DateLike) -> List[Progress]:
        query = self._table().select("*") \
            .eq("user_id", user_id) \
            .gte("date", to_iso_date(start_date)) \
            .lte("date", to_iso_date(end_date)) \
            .order("date")
        return await self._fetch_many("find_by_user_and_date_range", query)

    async def find_last_days(self, user_id: str, days: int = LAST_DAYS_WINDOW,
                             today: Optional[DateLike] = None) -> List[Progress]:
        """오늘 기준 최근 days일 기록 (양 끝 포함)"""
        end_date = to_date(today if today is not None else get_today())
        return await self.find_by_user_and_date_range(user_id, end_date - timedelta(days=days), end_date)

    async def update_hours_by_user_and_date(self, user_id: str, day: DateLike,
                                            hours_studied: float) -> Optional[Progress]:
        return await self._update_one_where(
            "update_hours_by_user_and_date",
            {"user_id": user_id, "date": to_iso_date(day)},
            {"hours_studied": hours_studied},
        )

    async def delete_by_user_and_date(self, user_id: str, day: DateLike) -> bool:
        return await self._delete_one_where(
            "delete_by_user_and_date",
            {"user_id": user_id, "date": to_iso_date(day)},
        )

    # ============================================
    # 학습 시간 집계
    # ============================================

    async def get_total_hours_by_user_id(self, user_id: str) -> float:
        query = self._table().select("hours_studied").eq("user_id", user_id)
        response = await self._execute("get_total_hours_by_user_id", query)
        return sum_hours(row.get("hours_studied") for row in response.data or [])

    async def get_total_hours_by_user_and_date_range(self, user_id: str, start_date: DateLike,
                                                     end_date: DateLike) -> float:
        records = await self.find_by_user_and_date_range(user_id, start_date, end_date)
        return sum_hours(p.hours_studied for p in records)

    async def get_average_hours_by_user_id(self, user_id: str) -> float:
        """기록 1건당 평균 학습 시간 (소수점 2자리, 기록 없으면 0)"""
        records = await self.find_by_user_id(user_id)
        return average(p.hours_studied or 0 for p in records)

    async def get_top_study_days(self, user_id: str, limit: int = RANKING_LIMIT) -> List[Progress]:
        query = self._table().select("*") \
            .eq("user_id", user_id) \
            .order("hours_studied", desc=True) \
            .limit(limit)
        return await self._fetch_many("get_top_study_days", query)

    async def has_studied_on_date(self, user_id: str, day: DateLike) -> bool:
        return await self.exists({"user_id": user_id, "date": to_iso_date(day)})

    async def count_study_days(self, user_id: str) -> int:
        return await self.count({"user_id": user_id})

    async def get_user_progress_stats(self, user_id: str, today: Optional[DateLike] = None) -> ProgressStats:
        """사용자 학습 통계 (전체 기록 / 최근 기록 / 최고 기록 3개 쿼리 병렬)"""
        records, recent, top_days = await asyncio.gather(
            self.find_by_user_id(user_id),
            self.find_last_days(user_id, LAST_DAYS_WINDOW, today=today),
            self.get_top_study_days(user_id, 1),
        )

        total_hours = sum_hours(p.hours_studied for p in records)
        best_day = None
        if top_days:
            best_day = BestStudyDay(date=top_days[0].date, hours=top_days[0].hours_studied or 0)

        return ProgressStats(
            total_hours=total_hours,
            total_days=len(records),
            average_hours_per_day=average(p.hours_studied or 0 for p in records),
            best_day=best_day,
            last_days=LAST_DAYS_WINDOW,
            hours_last_days=sum_hours(p.hours_studied for p in recent),
        )

    # ============================================
    # 오늘 기록
    # ============================================

    async def get_today_progress(self, user_id: str, today: Optional[DateLike] = None) -> Optional[Progress]:
        today = to_iso_date(today if today is not None else get_today())
        return await self.find_one_where({"user_id": user_id, "date": today})

    async def upsert_today_progress(self, user_id: str, hours_studied: float,
                                    today: Optional[DateLike] = None) -> Progress:
        """오늘 기록이 있으면 학습 시간 수정, 없으면 생성

        조회와 쓰기가 분리된 두 번의 요청이므로 동시에 호출하면 같은 날짜에
        기록이 두 건 생길 수 있습니다.
        """
        today = to_iso_date(today if today is not None else get_today())
        existing = await self.get_today_progress(user_id, today)

        if existing:
            updated = await self.update_by_id(existing.id, ProgressUpdate(hours_studied=hours_studied))
            if updated is not None:
                return updated
            logger.warning(f"[ProgressRepo] 오늘 기록 {existing.id}이(가) 수정 전에 삭제됨, 새로 생성합니다")

        return await self.create(ProgressCreate(user_id=user_id, date=today, hours_studied=hours_studied))
