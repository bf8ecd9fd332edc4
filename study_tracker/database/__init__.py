"""Database module - 리포지토리 계약, Supabase 구현, 엔티티 리포지토리"""

from .database import Database

# Errors
from .errors import (
    StudyTrackerError,
    ConfigurationError,
    InvalidFilterError,
    BackendError,
    ConcurrentUpdateError,
)

# Repository base
from .base_repository import RepositoryContract, SupabaseRepository, Filters

# Entity repositories
from .user_repository import UserRepository
from .schedule_repository import ScheduleRepository
from .activity_repository import ActivityRepository
from .goal_repository import GoalRepository
from .progress_repository import ProgressRepository
from .quiz_repository import QuizRepository
from .question_repository import QuestionRepository
from .answer_repository import AnswerRepository
from .text_repository import TextRepository
from .conversation_repository import ConversationRepository

__all__ = [
    # Database class
    "Database",

    # Errors
    "StudyTrackerError",
    "ConfigurationError",
    "InvalidFilterError",
    "BackendError",
    "ConcurrentUpdateError",

    # Repository base
    "RepositoryContract",
    "SupabaseRepository",
    "Filters",

    # Entity repositories
    "UserRepository",
    "ScheduleRepository",
    "ActivityRepository",
    "GoalRepository",
    "ProgressRepository",
    "QuizRepository",
    "QuestionRepository",
    "AnswerRepository",
    "TextRepository",
    "ConversationRepository",
]
