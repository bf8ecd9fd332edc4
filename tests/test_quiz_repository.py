"""QuizRepository / QuestionRepository / AnswerRepository 테스트"""
from types import SimpleNamespace

import pytest

from study_tracker.database import BackendError
from study_tracker.database.schemas import OptionLetter


def question_payload(quiz_id, statement, correct):
    return {
        "quiz_id": quiz_id,
        "statement": statement,
        "option_a": "a",
        "option_b": "b",
        "option_c": "c",
        "option_d": "d",
        "correct_option": correct,
    }


async def seed_quiz(db):
    """Quiz 1: q1(A) q2(B) q3(C) / Quiz 2: 문항 없음

    응답: ana q1=A(정답) q2=C(오답), bruno q1=B(오답) q2=B(정답), carla q2=B(정답)
    """
    ana = await db.users.create({"name": "Ana", "email": "ana@x.com"})
    bruno = await db.users.create({"name": "Bruno", "email": "bruno@x.com"})
    carla = await db.users.create({"name": "Carla", "email": "carla@x.com"})

    quiz = await db.quizzes.create({"user_id": ana.id, "title": "Quiz 1"})
    empty = await db.quizzes.create({"user_id": ana.id, "title": "Quiz 2"})
    q1 = await db.questions.create(question_payload(quiz.id, "Q one", "A"))
    q2 = await db.questions.create(question_payload(quiz.id, "Q two", "B"))
    q3 = await db.questions.create(question_payload(quiz.id, "Q three", "C"))

    await db.answers.create_with_validation(ana.id, q1.id, OptionLetter.A)
    await db.answers.create_with_validation(ana.id, q2.id, OptionLetter.C)
    await db.answers.create_with_validation(bruno.id, q1.id, OptionLetter.B)
    await db.answers.create_with_validation(bruno.id, q2.id, OptionLetter.B)
    await db.answers.create_with_validation(carla.id, q2.id, OptionLetter.B)

    return SimpleNamespace(ana=ana, bruno=bruno, carla=carla, quiz=quiz, empty=empty, q1=q1, q2=q2, q3=q3)


# ============================================
# 1. quizzes
# ============================================

@pytest.mark.asyncio
async def test_get_quiz_stats(db):
    s = await seed_quiz(db)

    stats = await db.quizzes.get_quiz_stats(s.quiz.id)

    assert stats.total_questions == 3
    assert stats.total_answers == 5
    assert stats.correct_answers == 3
    assert stats.wrong_answers == 2
    assert stats.accuracy_percentage == 60


@pytest.mark.asyncio
async def test_get_quiz_stats_without_questions_skips_answer_queries(db, client):
    s = await seed_quiz(db)
    answer_selects = client.count_calls("answers", "select")

    stats = await db.quizzes.get_quiz_stats(s.empty.id)

    assert stats.total_questions == 0
    assert stats.total_answers == 0
    assert stats.accuracy_percentage == 0
    assert client.count_calls("answers", "select") == answer_selects


@pytest.mark.asyncio
async def test_find_with_stats_and_complete(db):
    s = await seed_quiz(db)

    with_stats = {q.title: q.stats for q in await db.quizzes.find_with_stats(s.ana.id)}
    complete = await db.quizzes.find_complete_by_id(s.quiz.id)

    assert with_stats["Quiz 1"].total_answers == 5
    assert with_stats["Quiz 2"].total_questions == 0
    assert [q.statement for q in complete.questions] == ["Q one", "Q two", "Q three"]
    assert complete.stats.correct_answers == 3
    assert await db.quizzes.find_complete_by_id("missing") is None


@pytest.mark.asyncio
async def test_quiz_finders(db):
    s = await seed_quiz(db)

    assert len(await db.quizzes.find_by_user_id(s.ana.id)) == 2
    assert (await db.quizzes.find_by_title("Quiz 2")).id == s.empty.id
    assert await db.quizzes.count_by_user_id(s.ana.id) == 2
    assert [q.title for q in await db.quizzes.find_recent(1)] == ["Quiz 2"]
    with_questions = await db.quizzes.find_by_user_id_with_questions(s.ana.id)
    assert [len(q.questions) for q in with_questions] == [0, 3]
    assert await db.quizzes.is_owner(s.quiz.id, s.ana.id) is True
    assert await db.quizzes.is_owner(s.quiz.id, s.bruno.id) is False
    assert await db.quizzes.is_owner("missing", s.ana.id) is False


@pytest.mark.asyncio
async def test_duplicate_quiz_copies_questions_in_one_insert(db, client):
    s = await seed_quiz(db)
    inserts = client.count_calls("questions", "insert")

    copy = await db.quizzes.duplicate_quiz(s.quiz.id, "Quiz 1 (copy)", s.bruno.id)

    copied = await db.questions.find_by_quiz_id(copy.id)
    assert copy.user_id == s.bruno.id
    assert [(q.statement, q.correct_option) for q in copied] == [
        ("Q one", OptionLetter.A), ("Q two", OptionLetter.B), ("Q three", OptionLetter.C),
    ]
    assert client.count_calls("questions", "insert") == inserts + 1
    assert await db.quizzes.duplicate_quiz("missing", "x", s.bruno.id) is None


@pytest.mark.asyncio
async def test_duplicate_quiz_removes_new_quiz_when_copy_fails(db, client):
    s = await seed_quiz(db)
    client.fail_on("questions", "insert")

    with pytest.raises(BackendError):
        await db.quizzes.duplicate_quiz(s.quiz.id, "Broken copy", s.bruno.id)

    assert await db.quizzes.find_by_title("Broken copy") is None


@pytest.mark.asyncio
async def test_find_popular_orders_by_answer_count(db):
    s = await seed_quiz(db)
    other = await db.quizzes.create({"user_id": s.bruno.id, "title": "Quiz 3"})
    await db.questions.create(question_payload(other.id, "Lonely", "D"))

    popular = await db.quizzes.find_popular()

    assert [(q.title, q.total_answers) for q in popular] == [("Quiz 1", 5), ("Quiz 3", 0)]


# ============================================
# 2. questions
# ============================================

@pytest.mark.asyncio
async def test_get_question_stats_with_distribution(db):
    s = await seed_quiz(db)

    stats = await db.questions.get_question_stats(s.q2.id)

    assert stats.total_answers == 3
    assert stats.correct_answers == 2
    assert stats.wrong_answers == 1
    assert stats.accuracy_percentage == 67
    assert (stats.distribution.A, stats.distribution.B, stats.distribution.C, stats.distribution.D) == (0, 2, 1, 0)


@pytest.mark.asyncio
async def test_most_difficult_and_easiest(db):
    s = await seed_quiz(db)

    difficult = await db.questions.find_most_difficult(3)
    easiest = await db.questions.find_easiest(2)

    assert [(q.statement, q.accuracy_percentage) for q in difficult] == [
        ("Q three", 0), ("Q one", 50), ("Q two", 67),
    ]
    assert [q.statement for q in easiest] == ["Q two", "Q one"]


@pytest.mark.asyncio
async def test_question_finders(db, client):
    s = await seed_quiz(db)
    client.seed("questions", quiz_id=s.quiz.id, statement="Draft", option_a="a", option_b="b",
                option_c="c", option_d="d")

    assert [q.statement for q in await db.questions.find_without_correct_option()] == ["Draft"]
    assert [q.id for q in await db.questions.find_by_correct_option(OptionLetter.A)] == [s.q1.id]
    assert (await db.questions.find_by_statement("Q two")).id == s.q2.id
    assert await db.questions.count_by_quiz_id(s.quiz.id) == 4
    assert len((await db.questions.find_by_id_with_answers(s.q1.id)).answers) == 2
    assert [len(q.answers) for q in await db.questions.find_by_quiz_id_with_answers(s.quiz.id)] == [2, 3, 0, 0]
    assert {q.quiz.title for q in await db.questions.find_with_quiz()} == {"Quiz 1"}


@pytest.mark.asyncio
async def test_update_and_delete_by_statement(db):
    s = await seed_quiz(db)

    updated = await db.questions.update_by_statement("Q three", {"correct_option": "D"})
    assert updated.correct_option == OptionLetter.D

    assert await db.questions.delete_by_statement("Q three") is True
    assert await db.questions.find_by_statement("Q three") is None


@pytest.mark.asyncio
async def test_answered_and_unanswered_by_user(db):
    s = await seed_quiz(db)

    answered = await db.questions.find_answered_by_user(s.ana.id)
    unanswered = await db.questions.find_unanswered_by_user_in_quiz(s.ana.id, s.quiz.id)

    assert sorted(q.statement for q in answered) == ["Q one", "Q two"]
    assert all(q.user_answer.user_id == s.ana.id for q in answered)
    assert [q.id for q in unanswered] == [s.q3.id]
    assert await db.questions.find_unanswered_by_user_in_quiz(s.ana.id, s.empty.id) == []


@pytest.mark.asyncio
async def test_duplicate_to_quiz_and_option_validation(db):
    s = await seed_quiz(db)

    copy = await db.questions.duplicate_to_quiz(s.q1.id, s.empty.id)

    assert copy.quiz_id == s.empty.id
    assert copy.id != s.q1.id
    assert copy.statement == "Q one"
    assert copy.correct_option == OptionLetter.A
    assert await db.questions.duplicate_to_quiz("missing", s.empty.id) is None
    assert db.questions.is_valid_option("C") is True
    assert db.questions.is_valid_option("E") is False
    assert db.questions.is_valid_option(None) is False


# ============================================
# 3. answers
# ============================================

@pytest.mark.asyncio
async def test_create_with_validation_computes_correctness(db):
    s = await seed_quiz(db)

    right = await db.answers.create_with_validation(s.carla.id, s.q3.id, OptionLetter.C)
    wrong = await db.answers.create_with_validation(s.carla.id, s.q1.id, "D")

    assert right.is_correct is True
    assert wrong.is_correct is False
    assert wrong.chosen_option == OptionLetter.D


@pytest.mark.asyncio
async def test_create_with_validation_missing_question(db, client):
    s = await seed_quiz(db)
    inserts = client.count_calls("answers", "insert")

    assert await db.answers.create_with_validation(s.ana.id, "missing", OptionLetter.A) is None
    assert client.count_calls("answers", "insert") == inserts


@pytest.mark.asyncio
async def test_update_answer_recomputes_correctness(db):
    s = await seed_quiz(db)
    before = await db.answers.find_by_user_and_question(s.ana.id, s.q2.id)

    updated = await db.answers.update_answer(s.ana.id, s.q2.id, OptionLetter.B)

    assert updated.is_correct is True
    assert updated.chosen_option == OptionLetter.B
    assert updated.answered_at != before.answered_at
    assert await db.answers.update_answer(s.ana.id, s.q3.id, OptionLetter.C) is None
    assert await db.answers.update_answer(s.ana.id, "missing", OptionLetter.C) is None


@pytest.mark.asyncio
async def test_answer_finders_and_counts(db):
    s = await seed_quiz(db)

    assert len(await db.answers.find_by_user_id(s.ana.id)) == 2
    assert len(await db.answers.find_by_question_id(s.q2.id)) == 3
    assert len(await db.answers.find_correct_by_user_id(s.bruno.id)) == 1
    assert len(await db.answers.find_incorrect_by_user_id(s.bruno.id)) == 1
    assert await db.answers.count_correct_by_user_id(s.carla.id) == 1
    assert await db.answers.count_incorrect_by_user_id(s.carla.id) == 0
    assert await db.answers.has_answered(s.ana.id, s.q1.id) is True
    assert await db.answers.has_answered(s.ana.id, s.q3.id) is False


@pytest.mark.asyncio
async def test_delete_by_user_and_question(db):
    s = await seed_quiz(db)

    assert await db.answers.delete_by_user_and_question(s.ana.id, s.q1.id) is True
    assert await db.answers.delete_by_user_and_question(s.ana.id, s.q1.id) is False


@pytest.mark.asyncio
async def test_answer_user_stats(db):
    s = await seed_quiz(db)

    stats = await db.answers.get_user_stats(s.ana.id)

    assert (stats.total_answers, stats.correct_answers, stats.wrong_answers) == (2, 1, 1)
    assert stats.accuracy_percentage == 50


@pytest.mark.asyncio
async def test_user_quiz_stats_and_completion(db):
    s = await seed_quiz(db)

    partial = await db.answers.get_user_quiz_stats(s.ana.id, s.quiz.id)
    await db.answers.create_with_validation(s.ana.id, s.q3.id, OptionLetter.C)
    finished = await db.answers.get_user_quiz_stats(s.ana.id, s.quiz.id)

    assert (partial.total_answers, partial.total_questions, partial.completed) == (2, 3, False)
    assert (finished.total_answers, finished.correct_answers, finished.completed) == (3, 2, True)
    assert finished.accuracy_percentage == 67


@pytest.mark.asyncio
async def test_find_by_user_in_quiz_filters_through_questions(db):
    s = await seed_quiz(db)
    other = await db.quizzes.create({"user_id": s.bruno.id, "title": "Other"})
    elsewhere = await db.questions.create(question_payload(other.id, "Elsewhere", "A"))
    await db.answers.create_with_validation(s.ana.id, elsewhere.id, OptionLetter.A)

    found = await db.answers.find_by_user_in_quiz(s.ana.id, s.quiz.id)

    assert len(found) == 2
    assert all(a.question.quiz_id == s.quiz.id for a in found)


@pytest.mark.asyncio
async def test_find_recent_by_user_id_embeds_question_and_quiz(db):
    s = await seed_quiz(db)

    recent = await db.answers.find_recent_by_user_id(s.ana.id, limit=1)

    assert len(recent) == 1
    assert recent[0].question_id == s.q2.id
    assert recent[0].question.statement == "Q two"
    assert recent[0].question.quiz.title == "Quiz 1"


@pytest.mark.asyncio
async def test_find_by_date_range(db):
    s = await seed_quiz(db)

    everything = await db.answers.find_by_date_range("2024-01-01", "2024-12-31")
    nothing = await db.answers.find_by_date_range("2030-01-01", "2030-12-31")

    assert len(everything) == 5
    assert everything[0].answered_at >= everything[-1].answered_at
    assert nothing == []


@pytest.mark.asyncio
async def test_get_question_distribution(db):
    s = await seed_quiz(db)

    distribution = await db.answers.get_question_distribution(s.q2.id)

    assert (distribution.A, distribution.B, distribution.C, distribution.D) == (0, 2, 1, 0)
    assert distribution.total == 3


@pytest.mark.asyncio
async def test_find_most_missed_questions(db):
    s = await seed_quiz(db)
    await db.answers.create_with_validation(s.ana.id, s.q2.id, OptionLetter.D)
    await db.answers.create_with_validation(s.ana.id, s.q3.id, OptionLetter.A)

    missed = await db.answers.find_most_missed_questions(s.ana.id)

    assert [(m.question.statement, len(m.answers)) for m in missed] == [("Q two", 2), ("Q three", 1)]
    assert missed[0].question.quiz.title == "Quiz 1"


@pytest.mark.asyncio
async def test_get_quiz_progress(db):
    s = await seed_quiz(db)

    progress = await db.answers.get_quiz_progress(s.ana.id)

    assert len(progress) == 1
    item = progress[0]
    assert item.quiz.title == "Quiz 1"
    assert item.total_questions == 3
    assert item.answered_correct == 1
    assert item.answered_incorrect == 1
    assert item.unanswered == 1
    assert item.completion_percentage == 67
    assert item.accuracy_percentage == 50
    assert await db.answers.get_quiz_progress("nobody") == []
