"""Database Pydantic Schemas

테이블마다 세 가지 스키마를 둡니다.
- 행 스키마 (예: Schedule): select 결과 1행
- 생성 스키마 (예: ScheduleCreate): insert payload
- 수정 스키마 (예: ScheduleUpdate): update payload, 명시적으로 설정한 필드만 전송
"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TableSchema(BaseModel):
    """모든 테이블 스키마의 공통 설정 (알 수 없는 컬럼은 무시)"""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# ============================================
# Enum
# ============================================

class ActivityStatus(str, Enum):
    """활동 상태 (전이 순서는 강제하지 않음)"""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class OptionLetter(str, Enum):
    """객관식 보기 (A~D)"""
    A = "A"
    B = "B"
    C = "C"
    D = "D"


class TextKind(str, Enum):
    TEXT = "text"
    SUMMARY = "summary"


# ============================================
# 1. users 테이블 스키마
# ============================================

class User(TableSchema):
    """users 테이블 스키마"""
    id: str
    name: str
    email: str
    created_at: Optional[str] = None


class UserCreate(TableSchema):
    # 인증 서비스가 발급한 id를 그대로 쓰는 경우에만 지정
    id: Optional[str] = None
    name: str
    email: str


class UserUpdate(TableSchema):
    name: Optional[str] = None
    email: Optional[str] = None


class UserRef(TableSchema):
    """조인으로 포함되는 users 요약"""
    id: Optional[str] = None
    name: Optional[str] = None


# ============================================
# 2. schedules / activities 테이블 스키마
# ============================================

class Schedule(TableSchema):
    """schedules 테이블 스키마 (시작/종료일은 저장하지 않고 계산)"""
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    created_at: str


class ScheduleCreate(TableSchema):
    user_id: str
    title: str
    description: Optional[str] = None


class ScheduleUpdate(TableSchema):
    title: Optional[str] = None
    description: Optional[str] = None


class ScheduleRef(TableSchema):
    id: Optional[str] = None
    title: Optional[str] = None
    user_id: Optional[str] = None


class Activity(TableSchema):
    """activities 테이블 스키마"""
    id: str
    schedule_id: str
    title: str
    description: Optional[str] = None
    start_date: str
    end_date: Optional[str] = None
    status: ActivityStatus = ActivityStatus.PENDING


class ActivityCreate(TableSchema):
    schedule_id: str
    title: str
    description: Optional[str] = None
    start_date: str
    end_date: Optional[str] = None
    status: ActivityStatus = ActivityStatus.PENDING


class ActivityUpdate(TableSchema):
    title: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    status: Optional[ActivityStatus] = None


class ScheduleWithActivities(Schedule):
    activities: List[Activity] = Field(default_factory=list)


class ScheduleWithUser(Schedule):
    user: Optional[UserRef] = Field(default=None, alias="users")


class ActivityWithSchedule(Activity):
    schedule: Optional[ScheduleRef] = Field(default=None, alias="schedules")


# ============================================
# 3. goals 테이블 스키마
# ============================================

class Goal(TableSchema):
    """goals 테이블 스키마"""
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    expected_value: Optional[float] = None
    due_date: Optional[str] = None
    achieved: bool = False


class GoalCreate(TableSchema):
    user_id: str
    title: str
    description: Optional[str] = None
    expected_value: Optional[float] = None
    due_date: Optional[str] = None
    achieved: bool = False


class GoalUpdate(TableSchema):
    title: Optional[str] = None
    description: Optional[str] = None
    expected_value: Optional[float] = None
    due_date: Optional[str] = None
    achieved: Optional[bool] = None


class GoalWithUser(Goal):
    user: Optional[UserRef] = Field(default=None, alias="users")


# ============================================
# 4. progress 테이블 스키마
# ============================================

class Progress(TableSchema):
    """progress 테이블 스키마 ((user, date) 당 1건이 관례지만 강제하지 않음)"""
    id: str
    user_id: str
    date: str
    hours_studied: float = 0


class ProgressCreate(TableSchema):
    user_id: str
    date: str
    hours_studied: float


class ProgressUpdate(TableSchema):
    date: Optional[str] = None
    hours_studied: Optional[float] = None


class ProgressWithUser(Progress):
    user: Optional[UserRef] = Field(default=None, alias="users")


# ============================================
# 5. quizzes / questions / answers 테이블 스키마
# ============================================

class Quiz(TableSchema):
    """quizzes 테이블 스키마"""
    id: str
    user_id: str
    title: str
    created_at: Optional[str] = None


class QuizCreate(TableSchema):
    user_id: str
    title: str


class QuizUpdate(TableSchema):
    title: Optional[str] = None


class QuizRef(TableSchema):
    id: Optional[str] = None
    title: Optional[str] = None
    created_at: Optional[str] = None


class Question(TableSchema):
    """questions 테이블 스키마"""
    id: str
    quiz_id: str
    statement: str
    option_a: str
    option_b: str
    option_c: str
    option_d: str
    # 보기 4개 중 하나여야 하지만 DB가 강제하지 않으므로 None 허용
    correct_option: Optional[OptionLetter] = None


class QuestionCreate(TableSchema):
    quiz_id: str
    statement: str
    option_a: str
    option_b: str
    option_c: str
    option_d: str
    correct_option: OptionLetter


class QuestionUpdate(TableSchema):
    statement: Optional[str] = None
    option_a: Optional[str] = None
    option_b: Optional[str] = None
    option_c: Optional[str] = None
    option_d: Optional[str] = None
    correct_option: Optional[OptionLetter] = None


class Answer(TableSchema):
    """answers 테이블 스키마"""
    id: str
    question_id: str
    user_id: str
    chosen_option: OptionLetter
    is_correct: bool
    answered_at: Optional[str] = None


class AnswerCreate(TableSchema):
    question_id: str
    user_id: str
    chosen_option: OptionLetter
    is_correct: bool


class AnswerUpdate(TableSchema):
    chosen_option: Optional[OptionLetter] = None
    is_correct: Optional[bool] = None
    answered_at: Optional[str] = None


class AnswerRef(TableSchema):
    id: Optional[str] = None
    user_id: Optional[str] = None
    chosen_option: Optional[OptionLetter] = None
    is_correct: Optional[bool] = None
    answered_at: Optional[str] = None


class QuestionRef(TableSchema):
    id: Optional[str] = None
    quiz_id: Optional[str] = None
    statement: Optional[str] = None
    correct_option: Optional[OptionLetter] = None
    quiz: Optional[QuizRef] = Field(default=None, alias="quizzes")


class QuizWithQuestions(Quiz):
    questions: List[Question] = Field(default_factory=list)


class QuestionWithQuiz(Question):
    quiz: Optional[QuizRef] = Field(default=None, alias="quizzes")


class QuestionWithAnswers(Question):
    answers: List[Answer] = Field(default_factory=list)


class AnswerWithQuestion(Answer):
    question: Optional[QuestionRef] = Field(default=None, alias="questions")


# ============================================
# 6. texts / conversations 테이블 스키마
# ============================================

class Text(TableSchema):
    """texts 테이블 스키마 (생성형 콘텐츠로 만든 글/요약)"""
    id: str
    user_id: str
    title: str
    content: str
    kind: TextKind = TextKind.TEXT
    original_prompt: str = ""
    saved: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class TextCreate(TableSchema):
    user_id: str
    title: str
    content: str
    kind: TextKind = TextKind.TEXT
    original_prompt: str
    saved: bool = False


class TextUpdate(TableSchema):
    title: Optional[str] = None
    content: Optional[str] = None
    kind: Optional[TextKind] = None
    original_prompt: Optional[str] = None
    saved: Optional[bool] = None
    updated_at: Optional[str] = None


class TextRef(TableSchema):
    id: Optional[str] = None
    title: Optional[str] = None


class Conversation(TableSchema):
    """conversations 테이블 스키마 (텍스트에 대한 후속 질의/응답)"""
    id: str
    text_id: str
    prompt: str
    response: str
    created_at: Optional[str] = None


class ConversationCreate(TableSchema):
    text_id: str
    prompt: str
    response: str


class ConversationUpdate(TableSchema):
    prompt: Optional[str] = None
    response: Optional[str] = None


class TextWithConversations(Text):
    conversations: List[Conversation] = Field(default_factory=list)


class ConversationWithText(Conversation):
    text: Optional[TextRef] = Field(default=None, alias="texts")


# ============================================
# 7. 사용자 중심 조인
# ============================================

class UserWithSchedules(User):
    schedules: List[Schedule] = Field(default_factory=list)


class UserWithRelations(User):
    schedules: List[ScheduleWithActivities] = Field(default_factory=list)
    goals: List[Goal] = Field(default_factory=list)
    progress: List[Progress] = Field(default_factory=list)
    quizzes: List[Quiz] = Field(default_factory=list)


# ============================================
# 8. 파생 통계 스키마 (DB에 저장되지 않음)
# ============================================

class ScheduleStats(BaseModel):
    total_activities: int = 0
    pending_activities: int = 0
    in_progress_activities: int = 0
    done_activities: int = 0


class UserStats(BaseModel):
    total_schedules: int = 0
    total_goals: int = 0
    achieved_goals: int = 0
    total_hours_studied: float = 0
    total_quizzes: int = 0


class UserPage(BaseModel):
    items: List[User] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10
    total_pages: int = 0


class GoalStats(BaseModel):
    total: int = 0
    achieved: int = 0
    not_achieved: int = 0
    achieved_percentage: int = 0
    due_soon: int = 0
    overdue: int = 0


class BestStudyDay(BaseModel):
    date: str
    hours: float


class ProgressStats(BaseModel):
    total_hours: float = 0
    total_days: int = 0
    average_hours_per_day: float = 0
    best_day: Optional[BestStudyDay] = None
    last_days: int = 0
    hours_last_days: float = 0


class QuizStats(BaseModel):
    total_questions: int = 0
    total_answers: int = 0
    correct_answers: int = 0
    wrong_answers: int = 0
    accuracy_percentage: int = 0


class QuizWithStats(Quiz):
    stats: QuizStats = Field(default_factory=QuizStats)


class QuizComplete(QuizWithQuestions):
    stats: QuizStats = Field(default_factory=QuizStats)


class QuizPopularity(Quiz):
    total_answers: int = 0


class OptionDistribution(BaseModel):
    A: int = 0
    B: int = 0
    C: int = 0
    D: int = 0


class AnswerDistribution(OptionDistribution):
    total: int = 0


class QuestionStats(BaseModel):
    total_answers: int = 0
    correct_answers: int = 0
    wrong_answers: int = 0
    accuracy_percentage: int = 0
    distribution: OptionDistribution = Field(default_factory=OptionDistribution)


class QuestionWithAccuracy(Question):
    accuracy_percentage: int = 0


class AnsweredQuestion(Question):
    user_answer: Optional[AnswerRef] = None


class AnswerStats(BaseModel):
    total_answers: int = 0
    correct_answers: int = 0
    wrong_answers: int = 0
    accuracy_percentage: int = 0


class UserQuizStats(AnswerStats):
    completed: bool = False
    total_questions: int = 0


class MissedQuestion(BaseModel):
    question: Optional[QuestionWithQuiz] = None
    answers: List[Answer] = Field(default_factory=list)


class QuizProgress(BaseModel):
    quiz: QuizRef
    total_questions: int = 0
    answered_correct: int = 0
    answered_incorrect: int = 0
    unanswered: int = 0
    completion_percentage: int = 0
    accuracy_percentage: int = 0
