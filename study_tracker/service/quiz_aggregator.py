"""퀴즈 집계 - 생성된 퀴즈 초안 저장, 퀴즈 + 문항 + 응답 삭제"""
from typing import Optional
import logging

from ..database import Database
from ..database.schemas import QuestionCreate, QuizCreate, QuizWithQuestions
from .rollback import CreatedRows
from .schemas import QuizDraft

logger = logging.getLogger(__name__)


async def create_quiz_with_questions(db: Database, user_id: str, draft: QuizDraft) -> Optional[QuizWithQuestions]:
    """퀴즈 생성 후 문항을 순서대로 하나씩 생성

    문항 생성이 실패하면 이번 호출에서 만든 문항과 퀴즈를 역순으로 삭제한 뒤
    원래 오류를 올립니다.
    """
    created = CreatedRows("QuizAggregator")
    try:
        quiz = await db.quizzes.create(QuizCreate(user_id=user_id, title=draft.title))
        created.add(db.quizzes, quiz.id)

        for question in draft.questions:
            row = await db.questions.create(QuestionCreate(quiz_id=quiz.id, **question.model_dump()))
            created.add(db.questions, row.id)
    except Exception as e:
        logger.error(f"[QuizAggregator] ❌ 퀴즈 생성 실패, {len(created)}건 되돌림: {e}")
        await created.undo()
        raise

    logger.info(f"[QuizAggregator] ✅ 퀴즈 생성: {quiz.id} (문항 {len(draft.questions)}개)")
    return await db.quizzes.find_by_id_with_questions(quiz.id)


async def delete_quiz(db: Database, quiz_id: str) -> bool:
    """응답 -> 문항 -> 퀴즈 순으로 하나씩 삭제

    중간에 실패하면 남은 자식과 부모는 그대로 두고 오류를 올립니다.
    """
    try:
        questions = await db.questions.find_by_quiz_id(quiz_id)
        for question in questions:
            answers = await db.answers.find_by_question_id(question.id)
            for answer in answers:
                await db.answers.delete_by_id(answer.id)
            await db.questions.delete_by_id(question.id)

        deleted = await db.quizzes.delete_by_id(quiz_id)
        logger.info(f"[QuizAggregator] 퀴즈 삭제: {quiz_id} (문항 {len(questions)}개)")
        return deleted
    except Exception as e:
        logger.error(f"[QuizAggregator] ❌ 퀴즈 삭제 실패 ({quiz_id}): {e}")
        raise
