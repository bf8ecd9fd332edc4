"""다단계 생성의 보상(undo) 처리

부모 -> 자식 순서로 만든 행을 기록해 두었다가, 중간에 실패하면
역순으로 삭제합니다. 삭제 실패는 로그만 남기고 원래 오류를 가리지 않습니다.
"""
from typing import List, Tuple
import logging

from ..database.base_repository import SupabaseRepository

logger = logging.getLogger(__name__)


class CreatedRows:
    """이번 호출에서 생성한 (리포지토리, id) 기록"""

    def __init__(self, tag: str):
        self.tag = tag
        self._rows: List[Tuple[SupabaseRepository, str]] = []

    def add(self, repository: SupabaseRepository, record_id: str) -> None:
        self._rows.append((repository, record_id))

    def __len__(self) -> int:
        return len(self._rows)

    async def undo(self) -> int:
        """생성 역순으로 삭제, 삭제에 성공한 행 수 반환"""
        undone = 0
        for repository, record_id in reversed(self._rows):
            try:
                await repository.delete_by_id(record_id)
                undone += 1
            except Exception as e:
                logger.error(f"[{self.tag}] ❌ 보상 삭제 실패: {repository.table_name}.{record_id} - {e}")
        logger.warning(f"[{self.tag}] 보상 삭제 {undone}/{len(self._rows)}건 완료")
        self._rows.clear()
        return undone
