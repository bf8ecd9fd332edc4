"""goals 테이블 리포지토리"""
from typing import List, Optional
import asyncio

from supabase import AsyncClient

from ..config import DUE_SOON_DAYS, get_today
from ..utils import DateLike, date_window, percentage, to_iso_date
from .base_repository import SupabaseRepository
from .schemas import Goal, GoalCreate, GoalUpdate, GoalStats, GoalWithUser


class GoalRepository(SupabaseRepository[Goal, GoalCreate, GoalUpdate]):

    def __init__(self, client: AsyncClient):
        super().__init__(client, "goals", Goal, GoalCreate, GoalUpdate)

    async def find_by_user_id(self, user_id: str) -> List[Goal]:
        return await self.find_where({"user_id": user_id})

    async def find_with_user(self) -> List[GoalWithUser]:
        query = self._table().select("*, users!inner (name)")
        return await self._fetch_many("find_with_user", query, GoalWithUser)

    async def find_by_title(self, title: str) -> Optional[Goal]:
        return await self.find_one_where({"title": title})

    async def find_achieved(self) -> List[Goal]:
        return await self.find_where({"achieved": True})

    async def find_not_achieved(self) -> List[Goal]:
        return await self.find_where({"achieved": False})

    async def find_achieved_by_user_id(self, user_id: str) -> List[Goal]:
        return await self.find_where({"user_id": user_id, "achieved": True})

    async def find_not_achieved_by_user_id(self, user_id: str) -> List[Goal]:
        return await self.find_where({"user_id": user_id, "achieved": False})

    # ============================================
    # 마감 기준 조회 (달성한 목표 제외)
    # ============================================

    def _open_goals(self, user_id: Optional[str] = None):
        query = self._table().select("*").eq("achieved", "false")
        if user_id is not None:
            query = query.eq("user_id", user_id)
        return query

    async def find_due_today(self, today: Optional[DateLike] = None) -> List[Goal]:
        today = to_iso_date(today if today is not None else get_today())
        query = self._open_goals().eq("due_date", today)
        return await self._fetch_many("find_due_today", query)

    async def find_overdue(self, today: Optional[DateLike] = None, user_id: Optional[str] = None) -> List[Goal]:
        """마감일이 지났고 아직 달성하지 못한 목표"""
        today = to_iso_date(today if today is not None else get_today())
        query = self._open_goals(user_id) \
            .lt("due_date", today) \
            .not_.is_("due_date", "null")
        return await self._fetch_many("find_overdue", query)

    async def find_due_soon(self, days: int = DUE_SOON_DAYS, today: Optional[DateLike] = None,
                            user_id: Optional[str] = None) -> List[Goal]:
        """오늘부터 days일 안에 마감되는 미달성 목표 (마감일 오름차순)

        Args:
            days: 오늘 포함 조회 기간 (기본 DUE_SOON_DAYS)
            today: 기준일 (기본 get_today())
            user_id: 주어지면 해당 사용자 목표만
        """
        start, end = date_window(today if today is not None else get_today(), days)
        query = self._open_goals(user_id) \
            .gte("due_date", start) \
            .lte("due_date", end) \
            .not_.is_("due_date", "null") \
            .order("due_date")
        return await self._fetch_many("find_due_soon", query)

    # ============================================
    # 달성 여부 변경
    # ============================================

    async def mark_as_achieved_by_title(self, title: str) -> Optional[Goal]:
        return await self._update_one_where("mark_as_achieved_by_title", {"title": title}, {"achieved": True})

    async def mark_as_achieved(self, goal_id: str) -> Optional[Goal]:
        return await self.update_by_id(goal_id, GoalUpdate(achieved=True))

    async def mark_as_not_achieved(self, goal_id: str) -> Optional[Goal]:
        return await self.update_by_id(goal_id, GoalUpdate(achieved=False))

    async def delete_by_title(self, title: str) -> bool:
        return await self._delete_one_where("delete_by_title", {"title": title})

    async def count_achieved_by_user_id(self, user_id: str) -> int:
        return await self.count({"user_id": user_id, "achieved": True})

    async def count_not_achieved_by_user_id(self, user_id: str) -> int:
        return await self.count({"user_id": user_id, "achieved": False})

    async def get_user_goal_stats(self, user_id: str, today: Optional[DateLike] = None) -> GoalStats:
        """사용자 목표 통계 (전체/달성/임박/지연, 4개 쿼리 병렬)"""
        total, achieved, due_soon, overdue = await asyncio.gather(
            self.count({"user_id": user_id}),
            self.count_achieved_by_user_id(user_id),
            self.find_due_soon(DUE_SOON_DAYS, today=today, user_id=user_id),
            self.find_overdue(today=today, user_id=user_id),
        )

        return GoalStats(
            total=total,
            achieved=achieved,
            not_achieved=total - achieved,
            achieved_percentage=percentage(achieved, total),
            due_soon=len(due_soon),
            overdue=len(overdue),
        )

    async def find_by_value_range(self, min_value: float, max_value: float) -> List[Goal]:
        query = self._table().select("*") \
            .gte("expected_value", min_value) \
            .lte("expected_value", max_value) \
            .not_.is_("expected_value", "null")
        return await self._fetch_many("find_by_value_range", query)
