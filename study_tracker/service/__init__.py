"""서비스 레이어 - 여러 리포지토리를 조합한 집계 / 다단계 쓰기"""

# Schedule
from .schedule_aggregator import (
    classify_status,
    compute_schedule_dates,
    days_remaining,
    is_valid_date_format,
    get_schedules_with_dates,
    get_schedule_with_dates,
    create_schedule_with_activities,
    update_schedule,
    delete_schedule,
)

# Text
from .text_aggregator import (
    get_texts_with_conversations,
    get_text_with_conversations,
    create_text,
    add_conversation,
    toggle_saved,
    delete_text,
    get_saved_texts,
    extract_title_from_prompt,
    build_conversation_context,
)

# Quiz
from .quiz_aggregator import create_quiz_with_questions, delete_quiz

from .schemas import (
    ScheduleStatus,
    ScheduleWithDates,
    ActivityDraft,
    ScheduleDraft,
    QuestionDraft,
    QuizDraft,
    TextDraft,
)

__all__ = [
    # Schedule
    "classify_status",
    "compute_schedule_dates",
    "days_remaining",
    "is_valid_date_format",
    "get_schedules_with_dates",
    "get_schedule_with_dates",
    "create_schedule_with_activities",
    "update_schedule",
    "delete_schedule",
    # Text
    "get_texts_with_conversations",
    "get_text_with_conversations",
    "create_text",
    "add_conversation",
    "toggle_saved",
    "delete_text",
    "get_saved_texts",
    "extract_title_from_prompt",
    "build_conversation_context",
    # Quiz
    "create_quiz_with_questions",
    "delete_quiz",
    # Schemas
    "ScheduleStatus",
    "ScheduleWithDates",
    "ActivityDraft",
    "ScheduleDraft",
    "QuestionDraft",
    "QuizDraft",
    "TextDraft",
]
