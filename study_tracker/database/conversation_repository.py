"""conversations 테이블 리포지토리"""
from typing import List, Optional

from supabase import AsyncClient

from .base_repository import SupabaseRepository
from .schemas import Conversation, ConversationCreate, ConversationUpdate, ConversationWithText


class ConversationRepository(SupabaseRepository[Conversation, ConversationCreate, ConversationUpdate]):

    def __init__(self, client: AsyncClient):
        super().__init__(client, "conversations", Conversation, ConversationCreate, ConversationUpdate)

    async def find_by_text_id(self, text_id: str) -> List[Conversation]:
        """텍스트의 대화 (오래된 순)"""
        query = self._table().select("*").eq("text_id", text_id).order("created_at")
        return await self._fetch_many("find_by_text_id", query)

    async def find_with_text(self) -> List[ConversationWithText]:
        query = self._table().select("*, texts!inner (title)")
        return await self._fetch_many("find_with_text", query, ConversationWithText)

    async def count_by_text_id(self, text_id: str) -> int:
        return await self.count({"text_id": text_id})

    async def find_latest_by_text_id(self, text_id: str) -> Optional[Conversation]:
        query = self._table().select("*") \
            .eq("text_id", text_id) \
            .order("created_at", desc=True) \
            .limit(1)
        rows = await self._fetch_many("find_latest_by_text_id", query)
        return rows[0] if rows else None
