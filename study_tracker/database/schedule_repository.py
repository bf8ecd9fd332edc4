"""schedules 테이블 리포지토리"""
from typing import Any, List, Mapping, Optional, Union
import asyncio

from supabase import AsyncClient

from ..config import RECENT_LIMIT
from .base_repository import SupabaseRepository
from .schemas import (
    ActivityStatus,
    Schedule,
    ScheduleCreate,
    ScheduleUpdate,
    ScheduleStats,
    ScheduleWithActivities,
    ScheduleWithUser,
)

WITH_ACTIVITIES_SELECT = "*, activities (*)"


class ScheduleRepository(SupabaseRepository[Schedule, ScheduleCreate, ScheduleUpdate]):

    def __init__(self, client: AsyncClient):
        super().__init__(client, "schedules", Schedule, ScheduleCreate, ScheduleUpdate)

    async def find_by_user_id(self, user_id: str) -> List[Schedule]:
        return await self.find_where({"user_id": user_id})

    async def find_with_user(self) -> List[ScheduleWithUser]:
        """일정 + 소유자 이름 (소유자가 없는 일정은 제외되는 inner join)"""
        query = self._table().select("*, users!inner (name)")
        return await self._fetch_many("find_with_user", query, ScheduleWithUser)

    async def find_by_title(self, title: str) -> Optional[Schedule]:
        return await self.find_one_where({"title": title})

    async def find_by_id_with_activities(self, schedule_id: str) -> Optional[ScheduleWithActivities]:
        """일정 + 활동 목록 (활동이 없으면 빈 리스트)"""
        query = self._table().select(WITH_ACTIVITIES_SELECT).eq("id", schedule_id)
        return await self._fetch_one("find_by_id_with_activities", query, ScheduleWithActivities)

    async def find_by_user_id_with_activities(self, user_id: str) -> List[ScheduleWithActivities]:
        """사용자의 일정 + 활동 목록 (최신 일정 먼저)"""
        query = self._table().select(WITH_ACTIVITIES_SELECT) \
            .eq("user_id", user_id) \
            .order("created_at", desc=True)
        return await self._fetch_many("find_by_user_id_with_activities", query, ScheduleWithActivities)

    async def update_by_title(self, title: str, data: Union[ScheduleUpdate, Mapping[str, Any]]) -> Optional[Schedule]:
        return await self._update_one_where("update_by_title", {"title": title}, data)

    async def delete_by_title(self, title: str) -> bool:
        return await self._delete_one_where("delete_by_title", {"title": title})

    async def find_by_date_range(self, start_date: str, end_date: str) -> List[Schedule]:
        query = self._table().select("*") \
            .gte("created_at", start_date) \
            .lte("created_at", end_date) \
            .order("created_at", desc=True)
        return await self._fetch_many("find_by_date_range", query)

    async def count_by_user_id(self, user_id: str) -> int:
        return await self.count({"user_id": user_id})

    async def find_recent(self, limit: int = RECENT_LIMIT) -> List[Schedule]:
        query = self._table().select("*").order("created_at", desc=True).limit(limit)
        return await self._fetch_many("find_recent", query)

    async def get_schedule_stats(self, schedule_id: str) -> ScheduleStats:
        """일정의 활동 수를 상태별로 집계 (count 쿼리 4개 병렬)"""
        def count_query(status: Optional[ActivityStatus] = None):
            query = self._table("activities") \
                .select("*", count="exact", head=True) \
                .eq("schedule_id", schedule_id)
            if status is not None:
                query = query.eq("status", status.value)
            return self._count("get_schedule_stats", query, "activities")

        total, pending, in_progress, done = await asyncio.gather(
            count_query(),
            count_query(ActivityStatus.PENDING),
            count_query(ActivityStatus.IN_PROGRESS),
            count_query(ActivityStatus.DONE),
        )

        return ScheduleStats(
            total_activities=total,
            pending_activities=pending,
            in_progress_activities=in_progress,
            done_activities=done,
        )
