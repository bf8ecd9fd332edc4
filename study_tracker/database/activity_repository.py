"""activities 테이블 리포지토리"""
from typing import List, Optional
import logging

from supabase import AsyncClient

from ..config import DUE_SOON_DAYS, get_today
from ..utils import DateLike, date_window, to_iso_date
from .base_repository import SupabaseRepository
from .schemas import (
    Activity,
    ActivityCreate,
    ActivityUpdate,
    ActivityStatus,
    ActivityWithSchedule,
)

logger = logging.getLogger(__name__)


class ActivityRepository(SupabaseRepository[Activity, ActivityCreate, ActivityUpdate]):

    def __init__(self, client: AsyncClient):
        super().__init__(client, "activities", Activity, ActivityCreate, ActivityUpdate)

    def _today(self, today: Optional[DateLike]) -> str:
        return to_iso_date(today if today is not None else get_today())

    async def find_by_schedule_id(self, schedule_id: str) -> List[Activity]:
        return await self.find_where({"schedule_id": schedule_id})

    async def find_with_schedule(self) -> List[ActivityWithSchedule]:
        """활동 + 소속 일정 제목 (inner join)"""
        query = self._table().select("*, schedules!inner (title)")
        return await self._fetch_many("find_with_schedule", query, ActivityWithSchedule)

    async def find_by_title(self, title: str) -> Optional[Activity]:
        return await self.find_one_where({"title": title})

    async def find_by_status(self, status: ActivityStatus) -> List[Activity]:
        return await self.find_where({"status": status})

    async def find_by_date_range(self, start_date: str, end_date: str) -> List[Activity]:
        """시작일이 기간 안에 있는 활동 (시작일 오름차순)"""
        query = self._table().select("*") \
            .gte("start_date", start_date) \
            .lte("start_date", end_date) \
            .order("start_date")
        return await self._fetch_many("find_by_date_range", query)

    # ============================================
    # 마감 기준 조회 (완료된 활동 제외)
    # ============================================

    async def find_due_today(self, today: Optional[DateLike] = None) -> List[Activity]:
        query = self._table().select("*") \
            .eq("end_date", self._today(today)) \
            .neq("status", ActivityStatus.DONE.value)
        return await self._fetch_many("find_due_today", query)

    async def find_overdue(self, today: Optional[DateLike] = None) -> List[Activity]:
        """종료일이 지났는데 완료되지 않은 활동 (종료일 없는 활동 제외)"""
        query = self._table().select("*") \
            .lt("end_date", self._today(today)) \
            .neq("status", ActivityStatus.DONE.value) \
            .not_.is_("end_date", "null")
        return await self._fetch_many("find_overdue", query)

    async def find_due_soon(self, days: int = DUE_SOON_DAYS, today: Optional[DateLike] = None) -> List[Activity]:
        """오늘부터 days일 안에 끝나는 미완료 활동 (종료일 오름차순)"""
        start, end = date_window(self._today(today), days)
        query = self._table().select("*") \
            .gte("end_date", start) \
            .lte("end_date", end) \
            .neq("status", ActivityStatus.DONE.value) \
            .not_.is_("end_date", "null") \
            .order("end_date")
        return await self._fetch_many("find_due_soon", query)

    # ============================================
    # 상태 변경
    # ============================================

    async def update_status_by_title(self, title: str, status: ActivityStatus) -> Optional[Activity]:
        return await self._update_one_where("update_status_by_title", {"title": title}, {"status": status})

    async def delete_by_title(self, title: str) -> bool:
        return await self._delete_one_where("delete_by_title", {"title": title})

    async def mark_as_completed(self, activity_id: str) -> Optional[Activity]:
        return await self.update_by_id(activity_id, ActivityUpdate(status=ActivityStatus.DONE))

    async def mark_as_in_progress(self, activity_id: str) -> Optional[Activity]:
        return await self.update_by_id(activity_id, ActivityUpdate(status=ActivityStatus.IN_PROGRESS))

    async def count_by_status_in_schedule(self, schedule_id: str, status: ActivityStatus) -> int:
        return await self.count({"schedule_id": schedule_id, "status": status})

    async def find_by_user_id(self, user_id: str) -> List[ActivityWithSchedule]:
        """사용자 소유 일정에 속한 활동 (schedules inner join 후 소유자로 필터)"""
        query = self._table() \
            .select("*, schedules!inner (id, title, user_id)") \
            .eq("schedules.user_id", user_id)
        activities = await self._fetch_many("find_by_user_id", query, ActivityWithSchedule)
        logger.debug(f"[ActivityRepo] user={user_id} 활동 {len(activities)}건")
        return activities
