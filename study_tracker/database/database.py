"""Supabase 클라이언트 + 엔티티 리포지토리 묶음"""
from typing import Optional
import logging

from supabase import AsyncClient, acreate_client

from ..config import SupabaseSettings, load_supabase_settings
from .activity_repository import ActivityRepository
from .answer_repository import AnswerRepository
from .conversation_repository import ConversationRepository
from .errors import ConfigurationError
from .goal_repository import GoalRepository
from .progress_repository import ProgressRepository
from .question_repository import QuestionRepository
from .quiz_repository import QuizRepository
from .schedule_repository import ScheduleRepository
from .text_repository import TextRepository
from .user_repository import UserRepository

logger = logging.getLogger(__name__)


class Database:
    """테이블마다 리포지토리 하나씩, 같은 클라이언트를 공유"""

    def __init__(self, client: AsyncClient):
        self.client = client

        self.users = UserRepository(client)
        self.schedules = ScheduleRepository(client)
        self.activities = ActivityRepository(client)
        self.goals = GoalRepository(client)
        self.progress = ProgressRepository(client)
        self.quizzes = QuizRepository(client)
        self.questions = QuestionRepository(client)
        self.answers = AnswerRepository(client)
        self.texts = TextRepository(client)
        self.conversations = ConversationRepository(client)

    @classmethod
    async def from_env(cls, settings: Optional[SupabaseSettings] = None) -> "Database":
        """환경 변수(.env)로 비동기 클라이언트를 만들어 Database 생성

        Raises:
            ConfigurationError: SUPABASE_URL / SUPABASE_ANON_KEY 누락
        """
        settings = settings or load_supabase_settings()
        if settings is None:
            logger.error("[DB] ⚠️ Supabase 환경 변수가 설정되지 않았습니다")
            raise ConfigurationError("SUPABASE_URL 과 SUPABASE_ANON_KEY(또는 SUPABASE_KEY)가 필요합니다")

        client = await acreate_client(settings.url, settings.key)
        logger.info("[DB] ✅ Supabase 클라이언트 초기화 성공")
        return cls(client)

    async def test_connection(self) -> bool:
        """users 테이블 1행 조회로 연결 확인"""
        try:
            await self.client.table("users").select("id").limit(1).execute()
            logger.info("[DB] ✅ 연결 확인 성공")
            return True
        except Exception as e:
            logger.error(f"[DB] ❌ 연결 확인 실패: {e}")
            return False
