"""texts 테이블 리포지토리"""
from typing import List, Optional
import logging

from supabase import AsyncClient

from ..config import get_now
from .base_repository import SupabaseRepository
from .errors import ConcurrentUpdateError
from .schemas import Text, TextCreate, TextUpdate, TextKind, TextWithConversations

logger = logging.getLogger(__name__)

WITH_CONVERSATIONS_SELECT = """
    *,
    conversations (
        id,
        text_id,
        prompt,
        response,
        created_at
    )
"""


class TextRepository(SupabaseRepository[Text, TextCreate, TextUpdate]):

    def __init__(self, client: AsyncClient):
        super().__init__(client, "texts", Text, TextCreate, TextUpdate)

    def _latest_first(self, query):
        return query.order("created_at", desc=True)

    async def find_by_user_id(self, user_id: str) -> List[Text]:
        """사용자 텍스트 (최신순)"""
        query = self._latest_first(self._table().select("*").eq("user_id", user_id))
        return await self._fetch_many("find_by_user_id", query)

    async def find_saved_by_user_id(self, user_id: str) -> List[Text]:
        query = self._latest_first(
            self._table().select("*").eq("user_id", user_id).eq("saved", "true")
        )
        return await self._fetch_many("find_saved_by_user_id", query)

    async def find_by_user_id_and_kind(self, user_id: str, kind: TextKind) -> List[Text]:
        query = self._latest_first(
            self._table().select("*").eq("user_id", user_id).eq("kind", TextKind(kind).value)
        )
        return await self._fetch_many("find_by_user_id_and_kind", query)

    async def toggle_saved(self, text_id: str) -> Optional[Text]:
        """saved 플래그 반전 (compare-and-set)

        읽은 값과 같을 때만 쓰도록 조건을 걸어서, 그 사이 다른 호출자가
        값을 바꿨다면 덮어쓰지 않고 ConcurrentUpdateError 를 올립니다.

        Returns:
            갱신된 텍스트, 텍스트가 없으면 None
        """
        current = await self.find_by_id(text_id)
        if current is None:
            return None

        payload = TextUpdate(saved=not current.saved, updated_at=get_now().isoformat())
        query = self._table() \
            .update(self._dump_update(payload)) \
            .eq("id", text_id) \
            .eq("saved", "true" if current.saved else "false")
        response = await self._execute("toggle_saved", query)
        if response.data:
            return self._to_model(response.data[0])

        # 조건에 맞는 행이 없음: 삭제되었거나 값이 바뀜
        latest = await self.find_by_id(text_id)
        if latest is None:
            return None
        logger.warning(f"[TextRepo] toggle_saved 충돌: {text_id} (saved={latest.saved})")
        raise ConcurrentUpdateError(
            "toggle_saved",
            self.table_name,
            f"saved 값이 읽은 뒤 변경되었습니다 (읽은 값={current.saved}, 현재 값={latest.saved})",
        )

    async def find_by_id_with_conversations(self, text_id: str) -> Optional[TextWithConversations]:
        query = self._table().select(WITH_CONVERSATIONS_SELECT).eq("id", text_id)
        return await self._fetch_one("find_by_id_with_conversations", query, TextWithConversations)

    async def find_by_user_id_with_conversations(self, user_id: str) -> List[TextWithConversations]:
        query = self._latest_first(self._table().select(WITH_CONVERSATIONS_SELECT).eq("user_id", user_id))
        return await self._fetch_many("find_by_user_id_with_conversations", query, TextWithConversations)
