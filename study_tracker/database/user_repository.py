"""users 테이블 리포지토리"""
from typing import Any, Mapping, Optional, List, Union
import asyncio
import logging
import math

from supabase import AsyncClient

from ..config import DEFAULT_PAGE_SIZE
from ..utils import sum_hours
from .base_repository import SupabaseRepository
from .schemas import (
    User,
    UserCreate,
    UserUpdate,
    UserWithSchedules,
    UserWithRelations,
    UserStats,
    UserPage,
)

logger = logging.getLogger(__name__)

USER_RELATIONS_SELECT = """
    *,
    schedules (
        *,
        activities (*)
    ),
    goals (*),
    progress (*),
    quizzes (*)
"""


class UserRepository(SupabaseRepository[User, UserCreate, UserUpdate]):

    def __init__(self, client: AsyncClient):
        super().__init__(client, "users", User, UserCreate, UserUpdate)

    async def find_by_email(self, email: str) -> Optional[User]:
        """이메일로 조회 (이메일은 전체 사용자 중 유일)"""
        return await self.find_one_where({"email": email})

    async def email_exists(self, email: str) -> bool:
        return await self.exists({"email": email})

    async def find_by_date_range(self, start_date: str, end_date: str) -> List[User]:
        """기간 내 가입한 사용자 (최신순)"""
        query = self._table().select("*") \
            .gte("created_at", start_date) \
            .lte("created_at", end_date) \
            .order("created_at", desc=True)
        return await self._fetch_many("find_by_date_range", query)

    async def find_with_schedules(self) -> List[UserWithSchedules]:
        """사용자 + 일정 목록 (일정이 없는 사용자도 포함)"""
        query = self._table().select("*, schedules (*)")
        return await self._fetch_many("find_with_schedules", query, UserWithSchedules)

    async def find_by_id_with_relations(self, user_id: str) -> Optional[UserWithRelations]:
        """사용자 + 일정(활동 포함) + 목표 + 진행 기록 + 퀴즈를 한 번에 조회"""
        query = self._table().select(USER_RELATIONS_SELECT).eq("id", user_id)
        return await self._fetch_one("find_by_id_with_relations", query, UserWithRelations)

    async def get_user_stats(self, user_id: str) -> UserStats:
        """사용자 요약 통계

        일정 수 / 목표 수 / 달성 목표 수 / 누적 학습 시간 / 퀴즈 수를
        독립 쿼리 5개로 병렬 조회한 뒤 합칩니다.
        """
        def count_query(table_name: str):
            return self._table(table_name).select("*", count="exact", head=True).eq("user_id", user_id)

        schedules, goals, achieved, hours, quizzes = await asyncio.gather(
            self._count("get_user_stats", count_query("schedules"), "schedules"),
            self._count("get_user_stats", count_query("goals"), "goals"),
            self._count("get_user_stats", count_query("goals").eq("achieved", "true"), "goals"),
            self._execute(
                "get_user_stats",
                self._table("progress").select("hours_studied").eq("user_id", user_id),
                "progress",
            ),
            self._count("get_user_stats", count_query("quizzes"), "quizzes"),
        )

        return UserStats(
            total_schedules=schedules,
            total_goals=goals,
            achieved_goals=achieved,
            total_hours_studied=sum_hours(row.get("hours_studied") for row in hours.data or []),
            total_quizzes=quizzes,
        )

    async def update_by_email(self, email: str, data: Union[UserUpdate, Mapping[str, Any]]) -> Optional[User]:
        return await self._update_one_where("update_by_email", {"email": email}, data)

    async def delete_by_email(self, email: str) -> bool:
        return await self._delete_one_where("delete_by_email", {"email": email})

    async def find_with_pagination(self, page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> UserPage:
        """가입일 최신순 페이지 조회 (page는 1부터)"""
        page = max(page, 1)
        limit = max(limit, 1)
        offset = (page - 1) * limit

        rows, total = await asyncio.gather(
            self._fetch_many(
                "find_with_pagination",
                self._table().select("*").order("created_at", desc=True).range(offset, offset + limit - 1),
            ),
            self.count(),
        )

        return UserPage(
            items=rows,
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit) if limit > 0 else 0,
        )
