"""서비스 레이어 입출력 스키마

생성형 콘텐츠가 만들어 주는 초안(Draft)과, 저장된 행에서 계산한 조회 결과를 정의합니다.
"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from ..database.schemas import Activity, OptionLetter, TextKind


class ScheduleStatus(str, Enum):
    """일정 상태 (오늘 날짜와 시작/종료일 비교)"""
    FUTURE = "future"
    ACTIVE = "active"
    EXPIRED = "expired"


# ============================================
# 일정
# ============================================

class ScheduleWithDates(BaseModel):
    """시작/종료일과 상태를 계산해서 붙인 일정 (DB에 저장되지 않음)"""
    id: str
    title: str
    description: Optional[str] = None
    start_date: str  # 일정 생성일
    end_date: str    # 활동 종료일 중 최댓값, 활동이 없으면 start_date
    status: ScheduleStatus
    active: bool = False
    activities: List[Activity] = Field(default_factory=list)


class ActivityDraft(BaseModel):
    title: str
    description: Optional[str] = None
    start_date: str
    end_date: Optional[str] = None


class ScheduleDraft(BaseModel):
    title: str
    description: Optional[str] = None
    activities: List[ActivityDraft] = Field(default_factory=list)


# ============================================
# 퀴즈
# ============================================

class QuestionDraft(BaseModel):
    statement: str
    option_a: str
    option_b: str
    option_c: str
    option_d: str
    correct_option: OptionLetter


class QuizDraft(BaseModel):
    title: str
    questions: List[QuestionDraft] = Field(default_factory=list)


# ============================================
# 텍스트
# ============================================

class TextDraft(BaseModel):
    # 비어 있으면 original_prompt 에서 제목을 만듦
    title: Optional[str] = None
    content: str
    kind: TextKind = TextKind.TEXT
    original_prompt: str
