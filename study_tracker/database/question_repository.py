"""questions 테이블 리포지토리"""
from typing import Any, List, Mapping, Optional, Union
import asyncio
import logging

from supabase import AsyncClient

from ..config import RANKING_LIMIT
from ..utils import percentage
from .base_repository import SupabaseRepository
from .schemas import (
    AnsweredQuestion,
    AnswerRef,
    OptionDistribution,
    OptionLetter,
    Question,
    QuestionCreate,
    QuestionUpdate,
    QuestionStats,
    QuestionWithAccuracy,
    QuestionWithAnswers,
    QuestionWithQuiz,
)

logger = logging.getLogger(__name__)

WITH_ANSWERS_SELECT = """
    *,
    answers (
        id,
        question_id,
        user_id,
        chosen_option,
        is_correct,
        answered_at
    )
"""


class QuestionRepository(SupabaseRepository[Question, QuestionCreate, QuestionUpdate]):

    def __init__(self, client: AsyncClient):
        super().__init__(client, "questions", Question, QuestionCreate, QuestionUpdate)

    async def find_by_quiz_id(self, quiz_id: str) -> List[Question]:
        return await self.find_where({"quiz_id": quiz_id})

    async def find_with_quiz(self) -> List[QuestionWithQuiz]:
        query = self._table().select("*, quizzes!inner (title)")
        return await self._fetch_many("find_with_quiz", query, QuestionWithQuiz)

    async def find_by_statement(self, statement: str) -> Optional[Question]:
        return await self.find_one_where({"statement": statement})

    async def find_by_id_with_answers(self, question_id: str) -> Optional[QuestionWithAnswers]:
        query = self._table().select(WITH_ANSWERS_SELECT).eq("id", question_id)
        return await self._fetch_one("find_by_id_with_answers", query, QuestionWithAnswers)

    async def find_by_quiz_id_with_answers(self, quiz_id: str) -> List[QuestionWithAnswers]:
        query = self._table().select(WITH_ANSWERS_SELECT).eq("quiz_id", quiz_id)
        return await self._fetch_many("find_by_quiz_id_with_answers", query, QuestionWithAnswers)

    async def update_by_statement(self, statement: str,
                                  data: Union[QuestionUpdate, Mapping[str, Any]]) -> Optional[Question]:
        return await self._update_one_where("update_by_statement", {"statement": statement}, data)

    async def delete_by_statement(self, statement: str) -> bool:
        return await self._delete_one_where("delete_by_statement", {"statement": statement})

    async def count_by_quiz_id(self, quiz_id: str) -> int:
        return await self.count({"quiz_id": quiz_id})

    async def find_by_correct_option(self, correct_option: OptionLetter) -> List[Question]:
        return await self.find_where({"correct_option": correct_option})

    # ============================================
    # 통계
    # ============================================

    async def get_question_stats(self, question_id: str) -> QuestionStats:
        """문항 통계 (응답 목록 + 정답 수 2개 쿼리 병렬, 보기별 선택 분포 포함)"""
        answers, correct_answers = await asyncio.gather(
            self._execute(
                "get_question_stats",
                self._table("answers").select("chosen_option, is_correct").eq("question_id", question_id),
                "answers",
            ),
            self._count(
                "get_question_stats",
                self._table("answers")
                    .select("*", count="exact", head=True)
                    .eq("question_id", question_id)
                    .eq("is_correct", "true"),
                "answers",
            ),
        )

        rows = answers.data or []
        distribution = OptionDistribution()
        for row in rows:
            option = row.get("chosen_option")
            if self.is_valid_option(option):
                setattr(distribution, option, getattr(distribution, option) + 1)

        total_answers = len(rows)
        return QuestionStats(
            total_answers=total_answers,
            correct_answers=correct_answers,
            wrong_answers=total_answers - correct_answers,
            accuracy_percentage=percentage(correct_answers, total_answers),
            distribution=distribution,
        )

    async def _with_accuracy(self) -> List[QuestionWithAccuracy]:
        # NOTE: 문항마다 get_question_stats 를 따로 호출 (N+1)
        questions = await self.find_all()
        stats = await asyncio.gather(*(self.get_question_stats(q.id) for q in questions))
        return [
            QuestionWithAccuracy(**q.model_dump(), accuracy_percentage=s.accuracy_percentage)
            for q, s in zip(questions, stats)
        ]

    async def find_most_difficult(self, limit: int = RANKING_LIMIT) -> List[QuestionWithAccuracy]:
        """정답률이 낮은 순"""
        ranked = await self._with_accuracy()
        return sorted(ranked, key=lambda q: q.accuracy_percentage)[:limit]

    async def find_easiest(self, limit: int = RANKING_LIMIT) -> List[QuestionWithAccuracy]:
        """정답률이 높은 순"""
        ranked = await self._with_accuracy()
        return sorted(ranked, key=lambda q: q.accuracy_percentage, reverse=True)[:limit]

    # ============================================
    # 기타
    # ============================================

    async def duplicate_to_quiz(self, question_id: str, target_quiz_id: str) -> Optional[Question]:
        """문항을 다른 퀴즈로 복사 (원본이 없으면 None)"""
        original = await self.find_by_id(question_id)
        if original is None:
            logger.warning(f"[QuestionRepo] 복사할 문항 없음: {question_id}")
            return None

        payload = original.model_dump(mode="json", exclude={"id", "quiz_id"})
        payload["quiz_id"] = target_quiz_id
        response = await self._execute("duplicate_to_quiz", self._table().insert(payload))
        return self._to_model(response.data[0])

    @staticmethod
    def is_valid_option(option: Any) -> bool:
        return option in {letter.value for letter in OptionLetter}

    async def find_without_correct_option(self) -> List[Question]:
        query = self._table().select("*").is_("correct_option", "null")
        return await self._fetch_many("find_without_correct_option", query)

    async def find_answered_by_user(self, user_id: str) -> List[AnsweredQuestion]:
        """사용자가 응답한 문항 + 그 사용자의 응답 (answers inner join)"""
        query = self._table() \
            .select("*, answers!inner (id, user_id, chosen_option, is_correct, answered_at)") \
            .eq("answers.user_id", user_id)
        response = await self._execute("find_answered_by_user", query)

        answered = []
        for row in response.data or []:
            answers = row.get("answers") or []
            question = self._to_model(row)
            answered.append(AnsweredQuestion(
                **question.model_dump(),
                user_answer=AnswerRef.model_validate(answers[0]) if answers else None,
            ))
        return answered

    async def find_unanswered_by_user_in_quiz(self, user_id: str, quiz_id: str) -> List[Question]:
        """퀴즈 문항 중 사용자가 아직 응답하지 않은 문항"""
        questions = await self.find_by_quiz_id(quiz_id)
        if not questions:
            return []

        response = await self._execute(
            "find_unanswered_by_user_in_quiz",
            self._table("answers")
                .select("question_id")
                .eq("user_id", user_id)
                .in_("question_id", [q.id for q in questions]),
            "answers",
        )
        answered_ids = {row["question_id"] for row in response.data or []}
        return [q for q in questions if q.id not in answered_ids]
