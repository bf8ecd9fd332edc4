"""quizzes 테이블 리포지토리"""
from typing import Any, List, Mapping, Optional, Union
import asyncio
import logging

from supabase import AsyncClient

from ..config import RANKING_LIMIT, RECENT_LIMIT
from ..utils import percentage
from .base_repository import SupabaseRepository
from .schemas import (
    Quiz,
    QuizCreate,
    QuizUpdate,
    QuizComplete,
    QuizPopularity,
    QuizStats,
    QuizWithQuestions,
    QuizWithStats,
)

logger = logging.getLogger(__name__)

# 복제 시 복사하는 문항 컬럼
QUESTION_COPY_FIELDS = {"statement", "option_a", "option_b", "option_c", "option_d", "correct_option"}

WITH_QUESTIONS_SELECT = """
    *,
    questions (
        id,
        quiz_id,
        statement,
        option_a,
        option_b,
        option_c,
        option_d,
        correct_option
    )
"""


class QuizRepository(SupabaseRepository[Quiz, QuizCreate, QuizUpdate]):

    def __init__(self, client: AsyncClient):
        super().__init__(client, "quizzes", Quiz, QuizCreate, QuizUpdate)

    async def find_by_user_id(self, user_id: str) -> List[Quiz]:
        return await self.find_where({"user_id": user_id})

    async def find_by_title(self, title: str) -> Optional[Quiz]:
        return await self.find_one_where({"title": title})

    async def find_by_id_with_questions(self, quiz_id: str) -> Optional[QuizWithQuestions]:
        query = self._table().select(WITH_QUESTIONS_SELECT).eq("id", quiz_id)
        return await self._fetch_one("find_by_id_with_questions", query, QuizWithQuestions)

    async def find_by_user_id_with_questions(self, user_id: str) -> List[QuizWithQuestions]:
        query = self._table().select(WITH_QUESTIONS_SELECT) \
            .eq("user_id", user_id) \
            .order("created_at", desc=True)
        return await self._fetch_many("find_by_user_id_with_questions", query, QuizWithQuestions)

    async def find_by_date_range(self, start_date: str, end_date: str) -> List[Quiz]:
        query = self._table().select("*") \
            .gte("created_at", start_date) \
            .lte("created_at", end_date) \
            .order("created_at", desc=True)
        return await self._fetch_many("find_by_date_range", query)

    async def update_by_title(self, title: str, data: Union[QuizUpdate, Mapping[str, Any]]) -> Optional[Quiz]:
        return await self._update_one_where("update_by_title", {"title": title}, data)

    async def delete_by_title(self, title: str) -> bool:
        return await self._delete_one_where("delete_by_title", {"title": title})

    async def count_by_user_id(self, user_id: str) -> int:
        return await self.count({"user_id": user_id})

    async def find_recent(self, limit: int = RECENT_LIMIT) -> List[Quiz]:
        query = self._table().select("*").order("created_at", desc=True).limit(limit)
        return await self._fetch_many("find_recent", query)

    # ============================================
    # 통계
    # ============================================

    async def get_quiz_stats(self, quiz_id: str) -> QuizStats:
        """퀴즈 통계

        1) 퀴즈의 문항 id 목록 조회
        2) 문항 수 / 응답 수 / 정답 수 count 쿼리를 병렬 실행
        문항이 없으면 응답 쿼리는 생략하고 0으로 처리합니다.
        """
        id_rows = await self._execute(
            "get_quiz_stats",
            self._table("questions").select("id").eq("quiz_id", quiz_id),
            "questions",
        )
        question_ids = [row["id"] for row in id_rows.data or []]

        def answers_count(correct_only: bool = False):
            query = self._table("answers").select("*", count="exact", head=True).in_("question_id", question_ids)
            if correct_only:
                query = query.eq("is_correct", "true")
            return self._count("get_quiz_stats", query, "answers")

        async def zero() -> int:
            return 0

        total_questions, total_answers, correct_answers = await asyncio.gather(
            self._count(
                "get_quiz_stats",
                self._table("questions").select("*", count="exact", head=True).eq("quiz_id", quiz_id),
                "questions",
            ),
            answers_count() if question_ids else zero(),
            answers_count(correct_only=True) if question_ids else zero(),
        )

        return QuizStats(
            total_questions=total_questions,
            total_answers=total_answers,
            correct_answers=correct_answers,
            wrong_answers=total_answers - correct_answers,
            accuracy_percentage=percentage(correct_answers, total_answers),
        )

    async def find_with_stats(self, user_id: Optional[str] = None) -> List[QuizWithStats]:
        """퀴즈 목록 + 퀴즈별 통계

        NOTE: 퀴즈마다 get_quiz_stats 를 따로 호출합니다 (N+1).
        """
        quizzes = await self.find_where({"user_id": user_id})
        stats = await asyncio.gather(*(self.get_quiz_stats(quiz.id) for quiz in quizzes))
        return [
            QuizWithStats(**quiz.model_dump(), stats=quiz_stats)
            for quiz, quiz_stats in zip(quizzes, stats)
        ]

    async def find_complete_by_id(self, quiz_id: str) -> Optional[QuizComplete]:
        """퀴즈 + 문항 + 통계 (퀴즈가 없으면 None)"""
        quiz, stats = await asyncio.gather(
            self.find_by_id_with_questions(quiz_id),
            self.get_quiz_stats(quiz_id),
        )
        if quiz is None:
            return None
        return QuizComplete(**quiz.model_dump(), stats=stats)

    async def is_owner(self, quiz_id: str, user_id: str) -> bool:
        quiz = await self.find_by_id(quiz_id)
        return quiz is not None and quiz.user_id == user_id

    async def duplicate_quiz(self, quiz_id: str, new_title: str, user_id: str) -> Optional[Quiz]:
        """퀴즈 복제 (문항은 한 번의 bulk insert로 복사)

        Returns:
            새 퀴즈, 원본이 없으면 None
        """
        original = await self.find_by_id_with_questions(quiz_id)
        if original is None:
            logger.warning(f"[QuizRepo] 복제할 퀴즈 없음: {quiz_id}")
            return None

        new_quiz = await self.create(QuizCreate(user_id=user_id, title=new_title))

        copies = [
            {**q.model_dump(mode="json", include=QUESTION_COPY_FIELDS), "quiz_id": new_quiz.id}
            for q in original.questions
        ]
        if copies:
            try:
                await self._execute("duplicate_quiz", self._table("questions").insert(copies), "questions")
            except Exception:
                # 문항 복사 실패 시 빈 퀴즈를 남기지 않음 (원래 오류를 그대로 올림)
                logger.error(f"[QuizRepo] ❌ 문항 복사 실패, 새 퀴즈 {new_quiz.id} 삭제")
                try:
                    await self.delete_by_id(new_quiz.id)
                except Exception as undo_error:
                    logger.error(f"[QuizRepo] ❌ 새 퀴즈 삭제 실패: {undo_error}")
                raise

        logger.info(f"[QuizRepo] 퀴즈 복제 완료: {quiz_id} -> {new_quiz.id} (문항 {len(copies)}개)")
        return new_quiz

    async def find_popular(self, limit: int = RANKING_LIMIT) -> List[QuizPopularity]:
        """응답 수가 많은 순으로 정렬한 퀴즈 (문항이 없는 퀴즈 제외)"""
        query = self._table().select("*, questions!inner (answers (count))").limit(limit)
        response = await self._execute("find_popular", query)

        ranked = []
        for row in response.data or []:
            total = sum(
                (question.get("answers") or [{}])[0].get("count", 0)
                for question in row.get("questions") or []
            )
            ranked.append(QuizPopularity(**self._to_model(row).model_dump(), total_answers=total))

        ranked.sort(key=lambda quiz: quiz.total_answers, reverse=True)
        return ranked
