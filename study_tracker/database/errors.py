"""데이터 접근 계층 예외

- "행 없음"은 예외가 아니라 None 으로 표현합니다 (find_by_id, update_by_id 등).
- 그 외 원격 저장소 실패는 모두 BackendError 로 감싸서 올립니다.
"""
from typing import Any, Optional

# PostgREST: single() 요청에 0건(또는 복수 건)이 반환됨
NO_ROWS_CODE = "PGRST116"

# PostgreSQL 제약 조건 위반 코드
NOT_NULL_VIOLATION = "23502"
FOREIGN_KEY_VIOLATION = "23503"
UNIQUE_VIOLATION = "23505"


class StudyTrackerError(Exception):
    """패키지 공통 베이스 예외"""


class ConfigurationError(StudyTrackerError):
    """Supabase 접속 설정 누락"""


class InvalidFilterError(StudyTrackerError, ValueError):
    """잘못된 필터 (선언되지 않은 컬럼, 일괄 수정/삭제에 조건 없음)"""

    def __init__(self, table: str, message: str):
        self.table = table
        super().__init__(f"{table}: {message}")


class BackendError(StudyTrackerError):
    """원격 저장소 오류 (네트워크, 권한, 잘못된 쿼리, 제약 조건 위반)

    Attributes:
        operation: 시도한 리포지토리 연산 이름 (예: "find_by_id")
        table: 대상 테이블 이름
        code: PostgREST / PostgreSQL 오류 코드 (없으면 None)
        message: 원본 오류 메시지
        details: 원본 오류 상세
    """

    def __init__(
        self,
        operation: str,
        table: str,
        message: str,
        code: Optional[str] = None,
        details: Any = None,
    ):
        self.operation = operation
        self.table = table
        self.message = message
        self.code = code
        self.details = details
        super().__init__(f"[{table}.{operation}] {message}" + (f" (code={code})" if code else ""))

    @property
    def is_unique_violation(self) -> bool:
        return self.code == UNIQUE_VIOLATION

    @property
    def is_foreign_key_violation(self) -> bool:
        return self.code == FOREIGN_KEY_VIOLATION

    @property
    def is_constraint_violation(self) -> bool:
        """FK / UNIQUE / NOT NULL 위반 여부 (타입으로 구분하지 않고 코드로 확인)"""
        return self.code in (NOT_NULL_VIOLATION, FOREIGN_KEY_VIOLATION, UNIQUE_VIOLATION)


class ConcurrentUpdateError(BackendError):
    """읽기-쓰기 사이에 다른 호출자가 같은 행을 변경함 (compare-and-set 실패)"""
