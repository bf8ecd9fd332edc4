"""answers 테이블 리포지토리"""
from collections import defaultdict
from typing import Dict, List, Optional
import asyncio
import logging

from supabase import AsyncClient

from ..config import RANKING_LIMIT, RECENT_LIMIT, get_now
from ..utils import percentage
from .base_repository import SupabaseRepository
from .schemas import (
    Answer,
    AnswerCreate,
    AnswerUpdate,
    AnswerDistribution,
    AnswerStats,
    AnswerWithQuestion,
    MissedQuestion,
    OptionLetter,
    QuestionWithQuiz,
    QuizProgress,
    QuizRef,
    UserQuizStats,
)

logger = logging.getLogger(__name__)


class AnswerRepository(SupabaseRepository[Answer, AnswerCreate, AnswerUpdate]):

    def __init__(self, client: AsyncClient):
        super().__init__(client, "answers", Answer, AnswerCreate, AnswerUpdate)

    async def find_by_user_id(self, user_id: str) -> List[Answer]:
        return await self.find_where({"user_id": user_id})

    async def find_by_question_id(self, question_id: str) -> List[Answer]:
        return await self.find_where({"question_id": question_id})

    async def find_by_user_and_question(self, user_id: str, question_id: str) -> Optional[Answer]:
        return await self.find_one_where({"user_id": user_id, "question_id": question_id})

    async def find_correct_by_user_id(self, user_id: str) -> List[Answer]:
        return await self.find_where({"user_id": user_id, "is_correct": True})

    async def find_incorrect_by_user_id(self, user_id: str) -> List[Answer]:
        return await self.find_where({"user_id": user_id, "is_correct": False})

    async def find_by_user_in_quiz(self, user_id: str, quiz_id: str) -> List[AnswerWithQuestion]:
        """퀴즈 하나에 대한 사용자 응답 (questions inner join 후 quiz_id 로 필터)"""
        query = self._table() \
            .select("*, questions!inner (id, quiz_id, statement, correct_option)") \
            .eq("user_id", user_id) \
            .eq("questions.quiz_id", quiz_id)
        return await self._fetch_many("find_by_user_in_quiz", query, AnswerWithQuestion)

    # ============================================
    # 정답 여부를 계산해서 저장하는 경로
    # ============================================

    async def _correct_option_of(self, operation: str, question_id: str) -> Optional[Dict]:
        query = self._table("questions").select("correct_option").eq("id", question_id).single()
        response = await self._execute(operation, query, "questions", allow_missing=True)
        return response.data if response is not None else None

    async def create_with_validation(self, user_id: str, question_id: str,
                                     chosen_option: OptionLetter) -> Optional[Answer]:
        """문항의 정답과 비교해 is_correct 를 계산한 뒤 응답 저장

        호출자가 넘긴 정답 여부를 믿지 않는 유일한 생성 경로입니다.
        문항 조회와 응답 저장은 별개의 요청이라 원자적이지 않습니다.

        Returns:
            저장된 응답, 문항이 없으면 None
        """
        chosen_option = OptionLetter(chosen_option)
        question = await self._correct_option_of("create_with_validation", question_id)
        if question is None:
            logger.warning(f"[AnswerRepo] 문항 없음: {question_id}")
            return None

        is_correct = question.get("correct_option") == chosen_option.value
        return await self.create(AnswerCreate(
            user_id=user_id,
            question_id=question_id,
            chosen_option=chosen_option,
            is_correct=is_correct,
        ))

    async def update_answer(self, user_id: str, question_id: str,
                            chosen_option: OptionLetter) -> Optional[Answer]:
        """기존 응답의 선택지를 바꾸고 정답 여부 / 응답 시각을 다시 계산"""
        chosen_option = OptionLetter(chosen_option)
        question = await self._correct_option_of("update_answer", question_id)
        if question is None:
            logger.warning(f"[AnswerRepo] 문항 없음: {question_id}")
            return None

        updated = await self.update_where(
            {"user_id": user_id, "question_id": question_id},
            AnswerUpdate(
                chosen_option=chosen_option,
                is_correct=question.get("correct_option") == chosen_option.value,
                answered_at=get_now().isoformat(),
            ),
        )
        return updated[0] if updated else None

    async def delete_by_user_and_question(self, user_id: str, question_id: str) -> bool:
        """삭제된 행이 있으면 True"""
        deleted = await self.delete_where({"user_id": user_id, "question_id": question_id})
        return deleted > 0

    # ============================================
    # 통계
    # ============================================

    async def count_correct_by_user_id(self, user_id: str) -> int:
        return await self.count({"user_id": user_id, "is_correct": True})

    async def count_incorrect_by_user_id(self, user_id: str) -> int:
        return await self.count({"user_id": user_id, "is_correct": False})

    async def get_user_stats(self, user_id: str) -> AnswerStats:
        total, correct = await asyncio.gather(
            self.count({"user_id": user_id}),
            self.count_correct_by_user_id(user_id),
        )
        return AnswerStats(
            total_answers=total,
            correct_answers=correct,
            wrong_answers=total - correct,
            accuracy_percentage=percentage(correct, total),
        )

    async def get_user_quiz_stats(self, user_id: str, quiz_id: str) -> UserQuizStats:
        """퀴즈 하나에 대한 사용자 성적 (응답 수가 문항 수와 같으면 completed)"""
        answers, total_questions = await asyncio.gather(
            self.find_by_user_in_quiz(user_id, quiz_id),
            self._count(
                "get_user_quiz_stats",
                self._table("questions").select("*", count="exact", head=True).eq("quiz_id", quiz_id),
                "questions",
            ),
        )

        total = len(answers)
        correct = sum(1 for a in answers if a.is_correct)
        return UserQuizStats(
            total_answers=total,
            correct_answers=correct,
            wrong_answers=total - correct,
            accuracy_percentage=percentage(correct, total),
            completed=total == total_questions,
            total_questions=total_questions,
        )

    async def find_by_date_range(self, start_date: str, end_date: str) -> List[Answer]:
        query = self._table().select("*") \
            .gte("answered_at", start_date) \
            .lte("answered_at", end_date) \
            .order("answered_at", desc=True)
        return await self._fetch_many("find_by_date_range", query)

    async def find_recent_by_user_id(self, user_id: str, limit: int = RECENT_LIMIT) -> List[AnswerWithQuestion]:
        """최근 응답 + 문항 / 퀴즈 제목"""
        query = self._table() \
            .select("*, questions (statement, correct_option, quizzes (title))") \
            .eq("user_id", user_id) \
            .order("answered_at", desc=True) \
            .limit(limit)
        return await self._fetch_many("find_recent_by_user_id", query, AnswerWithQuestion)

    async def has_answered(self, user_id: str, question_id: str) -> bool:
        return await self.exists({"user_id": user_id, "question_id": question_id})

    async def get_question_distribution(self, question_id: str) -> AnswerDistribution:
        answers = await self.find_by_question_id(question_id)
        distribution = AnswerDistribution(total=len(answers))
        for answer in answers:
            option = answer.chosen_option.value
            setattr(distribution, option, getattr(distribution, option) + 1)
        return distribution

    async def find_most_missed_questions(self, user_id: str, limit: int = RANKING_LIMIT) -> List[MissedQuestion]:
        """사용자가 가장 많이 틀린 문항 (오답 수 내림차순)

        NOTE: 틀린 문항마다 문항 조회를 한 번씩 더 합니다 (N+1).
        """
        incorrect = await self.find_incorrect_by_user_id(user_id)

        grouped: Dict[str, List[Answer]] = defaultdict(list)
        for answer in incorrect:
            grouped[answer.question_id].append(answer)

        async def load_question(question_id: str) -> Optional[QuestionWithQuiz]:
            query = self._table("questions").select("*, quizzes (title)").eq("id", question_id)
            return await self._fetch_one("find_most_missed_questions", query, QuestionWithQuiz, "questions")

        questions = await asyncio.gather(*(load_question(qid) for qid in grouped))
        missed = [
            MissedQuestion(question=question, answers=answers)
            for question, answers in zip(questions, grouped.values())
        ]
        missed.sort(key=lambda item: len(item.answers), reverse=True)
        return missed[:limit]

    async def get_quiz_progress(self, user_id: str) -> List[QuizProgress]:
        """사용자가 응답한 적 있는 퀴즈별 진행률

        1) 사용자 응답 + 문항의 quiz_id 조회
        2) 해당 퀴즈들의 문항 id 목록 조회
        문항별로 정답 응답이 하나라도 있으면 정답, 응답만 있으면 오답으로 셉니다.
        """
        response = await self._execute(
            "get_quiz_progress",
            self._table().select("question_id, is_correct, questions!inner (quiz_id)").eq("user_id", user_id),
        )
        rows = response.data or []
        if not rows:
            return []

        correct_ids = set()
        answered_ids = set()
        quiz_ids = []
        for row in rows:
            answered_ids.add(row["question_id"])
            if row.get("is_correct"):
                correct_ids.add(row["question_id"])
            quiz_id = (row.get("questions") or {}).get("quiz_id")
            if quiz_id and quiz_id not in quiz_ids:
                quiz_ids.append(quiz_id)

        quizzes = await self._execute(
            "get_quiz_progress",
            self._table("quizzes").select("id, title, created_at, questions (id)").in_("id", quiz_ids),
            "quizzes",
        )

        progress = []
        for quiz in quizzes.data or []:
            question_ids = [q["id"] for q in quiz.get("questions") or []]
            total = len(question_ids)
            correct = sum(1 for qid in question_ids if qid in correct_ids)
            incorrect = sum(1 for qid in question_ids if qid in answered_ids and qid not in correct_ids)
            answered = correct + incorrect
            progress.append(QuizProgress(
                quiz=QuizRef.model_validate(quiz),
                total_questions=total,
                answered_correct=correct,
                answered_incorrect=incorrect,
                unanswered=total - answered,
                completion_percentage=percentage(answered, total),
                accuracy_percentage=percentage(correct, answered),
            ))
        return progress
