"""데이터 접근 계층 전역 상수 정의

이 파일에 정의된 상수를 변경하면 전체 리포지토리/집계 로직에 반영됩니다.
"""

# =============================================================================
# 기한 관련 상수
# =============================================================================

# "곧 마감" 판단 기준 일수
DUE_SOON_DAYS = 7
"""오늘부터 N일 이내에 마감되는 목표/활동을 '곧 마감'으로 분류
- 변경 시 영향: activity_repository.py, goal_repository.py
"""

# 최근 학습 집계 기간
LAST_DAYS_WINDOW = 7
"""진행 통계에서 '최근 N일' 학습 시간을 계산하는 기간
- 변경 시 영향: progress_repository.py (get_user_progress_stats)
"""

# =============================================================================
# 조회 개수 관련 상수
# =============================================================================

RECENT_LIMIT = 10
"""최근 항목 조회 시 기본 개수 (find_recent, find_recent_by_user_id)"""

RANKING_LIMIT = 10
"""난이도/인기 순위 조회 시 기본 개수 (find_most_difficult, find_popular 등)"""

DEFAULT_PAGE_SIZE = 10
"""페이지네이션 기본 크기 (user_repository.find_with_pagination)"""

# =============================================================================
# 텍스트 관련 상수
# =============================================================================

TITLE_MAX_LENGTH = 50
"""프롬프트에서 추출한 제목의 최대 길이 (접두어 제외)"""

CONTEXT_TEXT_LIMIT = 300
CONTEXT_PROMPT_LIMIT = 160
CONTEXT_RESPONSE_LIMIT = 220
CONTEXT_MAX_CONVERSATIONS = 3
"""대화 컨텍스트 생성 시 원문/질문/응답 자르기 기준과 포함할 최근 대화 수
- 변경 시 영향: text_aggregator.py (build_conversation_context)
"""
