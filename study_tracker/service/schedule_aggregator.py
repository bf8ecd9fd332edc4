"""일정 집계 - 활동으로부터 시작/종료일과 상태 계산, 일정 + 활동 생성/삭제"""
from datetime import date, datetime, time
from typing import List, Optional, Union
import logging
import math
import re

from ..config import get_now
from ..database import Database
from ..database.schemas import (
    ActivityCreate,
    ActivityStatus,
    ScheduleCreate,
    ScheduleUpdate,
    ScheduleWithActivities,
)
from ..utils import DateLike, to_date
from .rollback import CreatedRows
from .schemas import ScheduleDraft, ScheduleStatus, ScheduleWithDates

logger = logging.getLogger(__name__)

DATE_FORMAT_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

Moment = Union[date, datetime]


# ============================================
# 날짜 계산 (순수 함수)
# ============================================

def _as_datetime(moment: Optional[Moment]) -> datetime:
    if moment is None:
        return get_now()
    if isinstance(moment, datetime):
        return moment
    return datetime.combine(moment, time.min)


def classify_status(start: DateLike, end: DateLike, now: Optional[Moment] = None) -> ScheduleStatus:
    """시작일 00:00 이전이면 future, 종료일 23:59:59 이후면 expired, 그 사이는 active"""
    today = _as_datetime(now).date()
    if today < to_date(start):
        return ScheduleStatus.FUTURE
    if today > to_date(end):
        return ScheduleStatus.EXPIRED
    return ScheduleStatus.ACTIVE


def days_remaining(end: DateLike, now: Optional[Moment] = None) -> int:
    """종료일 하루 끝까지 남은 일수 (올림, 지났으면 0 이하)"""
    end_of_day = datetime.combine(to_date(end), time.max)
    current = _as_datetime(now)
    if current.tzinfo is not None:
        current = current.replace(tzinfo=None)
    return math.ceil((end_of_day - current).total_seconds() / 86400)


def is_valid_date_format(value: str) -> bool:
    """YYYY-MM-DD 형식 여부 (형식만 확인)"""
    return bool(DATE_FORMAT_PATTERN.match(value or ""))


def compute_schedule_dates(schedule: ScheduleWithActivities, now: Optional[Moment] = None) -> ScheduleWithDates:
    """시작일 = 일정 생성일, 종료일 = 활동 종료일 최댓값 (없으면 시작일)"""
    start_date = to_date(schedule.created_at).isoformat()

    end_dates = [a.end_date[:10] for a in schedule.activities if a.end_date]
    end_date = max(end_dates) if end_dates else start_date

    status = classify_status(start_date, end_date, now)
    return ScheduleWithDates(
        id=schedule.id,
        title=schedule.title,
        description=schedule.description,
        start_date=start_date,
        end_date=end_date,
        status=status,
        active=status == ScheduleStatus.ACTIVE,
        activities=schedule.activities,
    )


# ============================================
# 조회
# ============================================

async def get_schedules_with_dates(db: Database, user_id: str,
                                   now: Optional[Moment] = None) -> List[ScheduleWithDates]:
    try:
        schedules = await db.schedules.find_by_user_id_with_activities(user_id)
        return [compute_schedule_dates(schedule, now) for schedule in schedules]
    except Exception as e:
        logger.error(f"[ScheduleAggregator] ❌ 일정 목록 조회 실패 (user={user_id}): {e}")
        raise


async def get_schedule_with_dates(db: Database, schedule_id: str,
                                  now: Optional[Moment] = None) -> Optional[ScheduleWithDates]:
    try:
        schedule = await db.schedules.find_by_id_with_activities(schedule_id)
        if schedule is None:
            return None
        return compute_schedule_dates(schedule, now)
    except Exception as e:
        logger.error(f"[ScheduleAggregator] ❌ 일정 조회 실패 ({schedule_id}): {e}")
        raise


# ============================================
# 쓰기
# ============================================

async def create_schedule_with_activities(db: Database, user_id: str,
                                          draft: ScheduleDraft) -> Optional[ScheduleWithDates]:
    """일정 생성 후 활동을 주어진 순서대로 하나씩 생성

    활동 생성이 실패하면 이번 호출에서 만든 활동과 일정을 역순으로 삭제한 뒤
    원래 오류를 올립니다.
    """
    created = CreatedRows("ScheduleAggregator")
    try:
        schedule = await db.schedules.create(ScheduleCreate(
            user_id=user_id,
            title=draft.title,
            description=draft.description,
        ))
        created.add(db.schedules, schedule.id)

        for activity in draft.activities:
            row = await db.activities.create(ActivityCreate(
                schedule_id=schedule.id,
                title=activity.title,
                description=activity.description,
                start_date=activity.start_date,
                end_date=activity.end_date,
                status=ActivityStatus.PENDING,
            ))
            created.add(db.activities, row.id)
    except Exception as e:
        logger.error(f"[ScheduleAggregator] ❌ 일정 생성 실패, {len(created)}건 되돌림: {e}")
        await created.undo()
        raise

    logger.info(f"[ScheduleAggregator] ✅ 일정 생성: {schedule.id} (활동 {len(draft.activities)}개)")
    return await get_schedule_with_dates(db, schedule.id)


async def update_schedule(db: Database, schedule_id: str, title: str,
                          description: Optional[str] = None) -> Optional[ScheduleWithDates]:
    """제목 변경, description 은 넘겼을 때만 변경 (None 이면 기존 값 유지)"""
    changes = {"title": title}
    if description is not None:
        changes["description"] = description
    try:
        updated = await db.schedules.update_by_id(schedule_id, ScheduleUpdate(**changes))
        if updated is None:
            return None
        return await get_schedule_with_dates(db, schedule_id)
    except Exception as e:
        logger.error(f"[ScheduleAggregator] ❌ 일정 수정 실패 ({schedule_id}): {e}")
        raise


async def delete_schedule(db: Database, schedule_id: str) -> bool:
    """활동을 하나씩 삭제한 뒤 일정 삭제

    활동 삭제 중 실패하면 일정은 삭제하지 않고 오류를 올립니다.
    """
    try:
        activities = await db.activities.find_by_schedule_id(schedule_id)
        for activity in activities:
            await db.activities.delete_by_id(activity.id)
        return await db.schedules.delete_by_id(schedule_id)
    except Exception as e:
        logger.error(f"[ScheduleAggregator] ❌ 일정 삭제 실패 ({schedule_id}): {e}")
        raise
